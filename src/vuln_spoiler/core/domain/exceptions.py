"""Domain exceptions for vuln_spoiler."""

from __future__ import annotations


class VulnSpoilerError(Exception):
    """Base class for all vuln_spoiler errors."""


class ConfigurationError(VulnSpoilerError):
    """Raised for invalid run configuration.

    Configuration errors are fatal: they abort the run before any repository
    is processed.
    """


class HostError(VulnSpoilerError):
    """Raised when the source-control host API fails.

    Host errors are recoverable at repository granularity.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class HostAuthError(HostError):
    """Authentication or authorization failure (401/403)."""


class HostNotFoundError(HostError):
    """Requested resource does not exist (404)."""


class HostRateLimitError(HostError):
    """Host API rate limit exceeded."""


class NoCommitsFoundError(HostError):
    """Raised when a repository has no commits at all."""

    def __init__(self, repository: str) -> None:
        self.repository = repository
        super().__init__(f"No commits found for {repository}")


class ClassificationError(VulnSpoilerError):
    """Raised when the classification oracle cannot be reached.

    Unparseable responses never raise; they are normalized to a negative
    verdict instead.
    """


class IssueCreationError(VulnSpoilerError):
    """Raised when a tracking issue could not be created."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
