from __future__ import annotations

from typing import Sequence

from ..domain.exceptions import ConfigurationError
from ..domain.models import (
    CommitRecord,
    DetectedVulnerability,
    RepositoryIdentity,
    RunError,
    RunOutput,
)
from ..ports import ClassifierPort, IssueEmitterPort, LoggerPort, StateStorePort
from .frontier_tracker import FrontierTracker


class RunOrchestrator:
    """Drives one monitoring cycle across all configured repositories.

    Repositories and commits are processed sequentially. Failures below
    repository granularity are logged, recorded in the run output and
    never abort the run. State is loaded once and saved once at the end
    (and optionally after every repository whose watermark moved).
    """

    def __init__(
        self,
        *,
        tracker: FrontierTracker,
        classifier: ClassifierPort,
        state_store: StateStorePort,
        logger: LoggerPort,
        issue_emitter: IssueEmitterPort | None = None,
        checkpoint_each_repository: bool = False,
    ) -> None:
        self._tracker = tracker
        self._classifier = classifier
        self._state_store = state_store
        self._logger = logger
        self._issue_emitter = issue_emitter
        self._checkpoint = checkpoint_each_repository

    def run(self, repositories: Sequence[RepositoryIdentity]) -> RunOutput:
        """Execute the monitoring cycle.

        Args:
            repositories: Repositories to monitor, in processing order

        Returns:
            Aggregated run output

        Raises:
            ConfigurationError: If the repository list is empty or has duplicates
        """
        _validate_repositories(repositories)

        state = self._state_store.load(repositories)
        output = RunOutput()

        self._logger.info(
            "run_started",
            type="run_started",
            repositories=[r.key for r in repositories],
            max_commits=self._tracker.max_commits,
            create_issues=self._issue_emitter is not None,
        )

        for repo in repositories:
            changed = self._process_repository(repo, state, output)
            if changed and self._checkpoint:
                self._checkpoint_save(repo, state, output)

        self._save(state)

        self._logger.info(
            "run_finished",
            type="run_finished",
            analyzed_commits=output.analyzed_commits,
            vulnerabilities_found=output.vulnerabilities_found,
            issues_created=output.issues_created,
            errors=len(output.errors),
        )
        return output

    def _process_repository(
        self,
        repo: RepositoryIdentity,
        state: dict[str, str],
        output: RunOutput,
    ) -> bool:
        watermark = state.get(repo.key)
        self._logger.info("repo_started", type="repo_started", repo=repo.key, watermark=watermark)

        try:
            window = self._tracker.compute_window(repo, watermark)
        except Exception as e:
            self._logger.error(
                "repo_failed",
                exc_info=True,
                type="repo_failed",
                repo=repo.key,
                error=str(e),
            )
            output.errors.append(RunError(repository_key=repo.key, stage="fetch", message=str(e)))
            return False

        output.processed_repositories.append(repo.key)

        if window.first_run:
            self._logger.info(
                "repo_first_run",
                type="repo_first_run",
                repo=repo.key,
                head=window.new_watermark,
            )
        else:
            self._logger.info(
                "window_computed",
                type="window_computed",
                repo=repo.key,
                since=watermark,
                count=len(window.commits),
            )

        for commit in window.commits:
            self._process_commit(repo, commit, output)

        changed = self._tracker.advance(state, window)
        if changed:
            self._logger.info(
                "watermark_advanced",
                type="watermark_advanced",
                repo=repo.key,
                previous=window.previous_watermark,
                current=window.new_watermark,
            )
        return changed

    def _process_commit(
        self,
        repo: RepositoryIdentity,
        commit: CommitRecord,
        output: RunOutput,
    ) -> None:
        output.analyzed_commits += 1

        try:
            verdict = self._classifier.classify(commit)
        except Exception as e:
            self._logger.warning(
                "classify_failed",
                type="classify_failed",
                repo=repo.key,
                sha=commit.sha,
                error=str(e),
            )
            output.errors.append(
                RunError(repository_key=repo.key, stage="classify", message=str(e), commit_sha=commit.sha)
            )
            return

        self._logger.info(
            "commit_analyzed",
            type="commit_analyzed",
            repo=repo.key,
            sha=commit.sha,
            vulnerable=verdict.is_vulnerability_patch,
        )
        if not verdict.is_vulnerability_patch:
            return

        self._logger.warning(
            "vulnerability_detected",
            type="vulnerability_detected",
            repo=repo.key,
            sha=commit.sha,
            vulnerability_type=verdict.vulnerability_type,
            severity=verdict.severity,
        )
        detection = DetectedVulnerability(repository=repo, commit=commit, verdict=verdict)

        if self._issue_emitter is not None:
            try:
                detection.issue_url = self._issue_emitter.emit(repo, commit, verdict)
            except Exception as e:
                self._logger.warning(
                    "issue_failed",
                    type="issue_failed",
                    repo=repo.key,
                    sha=commit.sha,
                    error=str(e),
                )
                output.errors.append(
                    RunError(repository_key=repo.key, stage="issue", message=str(e), commit_sha=commit.sha)
                )
            else:
                output.issues_created += 1
                self._logger.info(
                    "issue_created",
                    type="issue_created",
                    repo=repo.key,
                    sha=commit.sha,
                    issue_url=detection.issue_url,
                )

        output.vulnerabilities_found += 1
        output.results.append(detection)

    def _checkpoint_save(self, repo: RepositoryIdentity, state: dict[str, str], output: RunOutput) -> None:
        # Non-fatal: the final save writes the same mapping.
        try:
            self._save(state)
        except Exception as e:
            self._logger.error(
                "state_save_failed",
                exc_info=True,
                type="state_save_failed",
                repo=repo.key,
                error=str(e),
            )
            output.errors.append(RunError(repository_key=repo.key, stage="state", message=str(e)))

    def _save(self, state: dict[str, str]) -> None:
        self._state_store.save(state)
        self._logger.info("state_saved", type="state_saved", entries=len(state))


def _validate_repositories(repositories: Sequence[RepositoryIdentity]) -> None:
    if not repositories:
        raise ConfigurationError("At least one repository must be configured")

    seen: set[str] = set()
    for repo in repositories:
        if repo.key in seen:
            raise ConfigurationError(f"Duplicate repository in configuration: {repo.key}")
        seen.add(repo.key)
