from __future__ import annotations

from typing import Any, Iterator, Mapping, Protocol, Sequence

from .domain.models import (
    CommitRecord,
    CommitSummary,
    PullRequestContext,
    RepositoryIdentity,
    Verdict,
)


class RepositoryHostPort(Protocol):
    """Port for the source-control hosting API.

    Implementations raise HostError subclasses on API or network failures.
    """

    def list_recent_commits(
        self,
        repo: RepositoryIdentity,
        *,
        page_size: int,
    ) -> Iterator[CommitSummary]:
        """Yield commit summaries newest first, paging lazily.

        Callers stop iterating once they have what they need, so no more
        pages are requested than necessary.
        """
        ...

    def get_latest_commit_sha(self, repo: RepositoryIdentity) -> str:
        """Return the newest commit SHA.

        Raises:
            NoCommitsFoundError: If the repository has no commits
        """
        ...

    def get_commit_diff(self, repo: RepositoryIdentity, sha: str) -> str:
        """Return the unified diff text for a commit."""
        ...

    def get_associated_pull_request(
        self,
        repo: RepositoryIdentity,
        sha: str,
    ) -> PullRequestContext | None:
        """Return the first pull request associated with a commit, if any."""
        ...

    def create_issue(
        self,
        target: RepositoryIdentity,
        *,
        title: str,
        body: str,
        labels: Sequence[str],
    ) -> str:
        """Create an issue and return its URL.

        Raises:
            IssueCreationError: If the host rejects the request
        """
        ...


class ClassifierPort(Protocol):
    """Port for the classification oracle."""

    def classify(self, commit: CommitRecord) -> Verdict:
        """Classify a commit.

        Malformed responses yield a negative verdict; transport failures
        raise ClassificationError.
        """
        ...


class IssueEmitterPort(Protocol):
    """Port for turning a positive verdict into a tracking artifact."""

    def emit(self, repo: RepositoryIdentity, commit: CommitRecord, verdict: Verdict) -> str:
        """Create the tracking issue and return its URL."""
        ...


class StateStorePort(Protocol):
    """Port for durable watermark state."""

    def load(self, configured: Sequence[RepositoryIdentity]) -> dict[str, str]:
        """Load the watermark mapping; never raises for missing or corrupt storage."""
        ...

    def save(self, state: Mapping[str, str]) -> None:
        """Persist the full watermark mapping."""
        ...


class RunLogStorePort(Protocol):
    """Port for reading run log files."""

    def read_log(self, run_id: str, verbose: bool) -> list[str]:
        """Read and format the log of a single run."""
        ...

    def summarize_all(self, verbose: bool) -> list[str]:
        """Summarize all runs as a table."""
        ...


class LoggerPort(Protocol):
    """Port for structured logging.

    Extra keyword arguments are attached to the log record as structured
    fields. Implementations handle JSON serialization and formatting.
    """

    def debug(self, message: str, **kwargs: Any) -> None:
        ...

    def info(self, message: str, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, **kwargs: Any) -> None:
        ...

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        ...

    def exception(self, message: str, **kwargs: Any) -> None:
        ...
