from __future__ import annotations

from typing import MutableMapping

from ..domain.exceptions import ConfigurationError
from ..domain.models import CommitRecord, CommitSummary, FrontierWindow, RepositoryIdentity
from ..ports import LoggerPort, RepositoryHostPort
from .diff_service import DiffService


MAX_PAGE_SIZE = 100


class FrontierTracker:
    """Computes which commits of a repository are new since its watermark.

    The watermark is the SHA of the newest commit already processed. The
    tracker returns the contiguous newest-first prefix of the history that
    lies above the watermark, capped at ``max_commits``, and the SHA the
    watermark should advance to once that batch has been handled.
    """

    def __init__(
        self,
        *,
        host: RepositoryHostPort,
        diff_service: DiffService,
        logger: LoggerPort,
        max_commits: int,
    ) -> None:
        if max_commits < 1:
            raise ConfigurationError(f"max_commits must be at least 1, got {max_commits}")
        self._host = host
        self._diff_service = diff_service
        self._logger = logger
        self._max_commits = max_commits

    @property
    def max_commits(self) -> int:
        return self._max_commits

    def compute_window(
        self,
        repo: RepositoryIdentity,
        watermark: str | None,
    ) -> FrontierWindow:
        """Compute the new-commit window for a repository.

        Args:
            repo: Repository to inspect
            watermark: Last processed commit SHA, or None on first run

        Returns:
            FrontierWindow with enriched commits, newest first

        Raises:
            NoCommitsFoundError: On first run against an empty repository
            HostError: If listing commits or fetching a diff fails
        """
        if watermark is None:
            # First run: record HEAD, do not backfill history
            head = self._host.get_latest_commit_sha(repo)
            return FrontierWindow(
                repository=repo,
                previous_watermark=None,
                commits=[],
                new_watermark=head,
                first_run=True,
            )

        summaries = self._collect(repo, watermark)
        commits = [self._enrich(repo, summary) for summary in summaries]

        new_watermark = commits[0].sha if commits else watermark
        return FrontierWindow(
            repository=repo,
            previous_watermark=watermark,
            commits=commits,
            new_watermark=new_watermark,
        )

    def advance(
        self,
        state: MutableMapping[str, str],
        window: FrontierWindow,
    ) -> bool:
        """Apply a window's watermark to the in-memory state.

        Returns:
            True if the stored watermark changed
        """
        if not window.advances:
            return False
        state[window.repository.key] = window.new_watermark  # type: ignore[assignment]
        return True

    def _collect(self, repo: RepositoryIdentity, watermark: str) -> list[CommitSummary]:
        page_size = min(self._max_commits, MAX_PAGE_SIZE)
        collected: list[CommitSummary] = []
        found = False

        for summary in self._host.list_recent_commits(repo, page_size=page_size):
            if summary.sha == watermark:
                found = True
                break
            collected.append(summary)
            if len(collected) >= self._max_commits:
                break

        if not found and len(collected) < self._max_commits:
            # History ran out before the watermark: rewritten or truncated history
            self._logger.warning(
                "watermark_not_found",
                type="watermark_not_found",
                repo=repo.key,
                watermark=watermark,
                fetched=len(collected),
            )
        return collected

    def _enrich(self, repo: RepositoryIdentity, summary: CommitSummary) -> CommitRecord:
        diff_result = self._diff_service.truncate(self._host.get_commit_diff(repo, summary.sha))
        if diff_result.was_truncated:
            self._logger.debug(
                "diff_truncated",
                type="diff_truncated",
                repo=repo.key,
                sha=summary.sha,
                full_len=diff_result.full_len,
                included_len=diff_result.included_len,
            )

        pull_request = self._host.get_associated_pull_request(repo, summary.sha)
        return CommitRecord.from_summary(summary, diff=diff_result.text, pull_request=pull_request)
