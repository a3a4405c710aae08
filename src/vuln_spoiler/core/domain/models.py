from __future__ import annotations

import re
from dataclasses import dataclass, field

from .exceptions import ConfigurationError


_SLUG_PART = re.compile(r"[A-Za-z0-9_.-]+")

SEVERITIES = ("Critical", "High", "Medium", "Low")

OT_CATEGORIES = (
    "protocol-parsing",
    "plc-logic-injection",
    "auth-bypass",
    "command-injection",
    "insecure-defaults",
    "input-validation",
    "sis-bypass",
    "info-disclosure",
    "dos-control-system",
    "insecure-update",
)

PURDUE_LAYERS = ("L0", "L1", "L2", "L3", "L4", "L5")


@dataclass(frozen=True)
class RepositoryIdentity:
    """A monitored repository.

    The ``key`` ("owner/name") is the stable lookup key for watermark state.
    """
    owner: str
    name: str

    @property
    def key(self) -> str:
        """Returns owner/name format."""
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        """Returns GitHub HTTPS URL."""
        return f"https://github.com/{self.key}"

    @classmethod
    def parse(cls, slug: str) -> "RepositoryIdentity":
        """Parse an ``owner/name`` string.

        Raises:
            ConfigurationError: If the slug is not exactly two valid parts
        """
        parts = slug.split("/") if isinstance(slug, str) else []
        if len(parts) != 2 or not all(_is_valid_part(p) for p in parts):
            raise ConfigurationError(
                f'Invalid repository format. Expected "owner/repo", got: {slug!r}'
            )
        return cls(owner=parts[0], name=parts[1])

    def __str__(self) -> str:
        return self.key


def _is_valid_part(part: str) -> bool:
    return bool(_SLUG_PART.fullmatch(part)) and part not in (".", "..")


@dataclass(frozen=True)
class PullRequestContext:
    number: int
    title: str
    body: str | None
    url: str
    labels: tuple[str, ...] = ()
    merged_at: str | None = None


@dataclass(frozen=True)
class CommitSummary:
    """One entry of a newest-first commit listing (no diff yet)."""
    sha: str
    message: str
    author: str
    date: str
    url: str


@dataclass(frozen=True)
class CommitRecord:
    """A commit enriched with its diff and pull request, ready for classification."""
    sha: str
    message: str
    author: str
    date: str
    url: str
    diff: str
    pull_request: PullRequestContext | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @classmethod
    def from_summary(
        cls,
        summary: CommitSummary,
        *,
        diff: str,
        pull_request: PullRequestContext | None,
    ) -> "CommitRecord":
        return cls(
            sha=summary.sha,
            message=summary.message,
            author=summary.author,
            date=summary.date,
            url=summary.url,
            diff=diff,
            pull_request=pull_request,
        )


@dataclass(frozen=True)
class Verdict:
    """Classification oracle judgment for one commit.

    If ``is_vulnerability_patch`` is False every other field is None.
    """
    is_vulnerability_patch: bool
    vulnerability_type: str | None = None
    severity: str | None = None  # "Critical", "High", "Medium", "Low"
    description: str | None = None
    affected_code: str | None = None
    proof_of_concept: str | None = None
    ot_category: str | None = None
    affected_protocol: str | None = None
    purdue_layer: str | None = None  # "L0" .. "L5"
    safety_impact: str | None = None

    @classmethod
    def negative(cls) -> "Verdict":
        return cls(is_vulnerability_patch=False)


@dataclass
class DetectedVulnerability:
    repository: RepositoryIdentity
    commit: CommitRecord
    verdict: Verdict
    issue_url: str | None = None


@dataclass(frozen=True)
class RunError:
    """A non-fatal error recorded during a run.

    ``stage`` is one of "fetch", "classify", "issue" or "state".
    """
    repository_key: str
    stage: str
    message: str
    commit_sha: str | None = None


@dataclass
class FrontierWindow:
    """New commits for one repository and the watermark they advance to."""
    repository: RepositoryIdentity
    previous_watermark: str | None
    commits: list[CommitRecord]
    new_watermark: str | None
    first_run: bool = False

    @property
    def advances(self) -> bool:
        return self.new_watermark is not None and self.new_watermark != self.previous_watermark


@dataclass
class RunOutput:
    analyzed_commits: int = 0
    vulnerabilities_found: int = 0
    issues_created: int = 0
    results: list[DetectedVulnerability] = field(default_factory=list)
    errors: list[RunError] = field(default_factory=list)
    processed_repositories: list[str] = field(default_factory=list)
