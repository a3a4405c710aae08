"""Shared test fixtures and fakes for vuln_spoiler tests."""
from typing import Iterator, Mapping, Sequence

import pytest

from vuln_spoiler.core.domain.exceptions import HostError, IssueCreationError, NoCommitsFoundError
from vuln_spoiler.core.domain.models import (
    CommitRecord,
    CommitSummary,
    PullRequestContext,
    RepositoryIdentity,
    Verdict,
)


def sha(label: str) -> str:
    """Deterministic 40-char hex SHA for a short label like 'c1'."""
    return label.encode().hex().ljust(40, "0")[:40]


def make_summary(label: str, message: str | None = None) -> CommitSummary:
    return CommitSummary(
        sha=sha(label),
        message=message or f"commit {label}",
        author="Alice",
        date="2026-01-01T00:00:00Z",
        url=f"https://github.com/acme/plc/commit/{sha(label)}",
    )


def make_commit(label: str = "c1", *, diff: str = "diff --git a/x b/x", pull_request=None) -> CommitRecord:
    return CommitRecord.from_summary(make_summary(label), diff=diff, pull_request=pull_request)


def positive_verdict(**overrides) -> Verdict:
    fields = dict(
        is_vulnerability_patch=True,
        vulnerability_type="Buffer overflow in Modbus parser",
        severity="High",
        description="Unchecked length field.",
        affected_code="memcpy(buf, pdu, len);",
        proof_of_concept="Send FC 0x10 with length 0xFFFF",
        ot_category="protocol-parsing",
        affected_protocol="Modbus/TCP",
        purdue_layer="L1",
        safety_impact=None,
    )
    fields.update(overrides)
    return Verdict(**fields)


class FakeLogger:
    """Fake logger that records (level, message, fields) tuples."""

    def __init__(self):
        self.records: list[tuple[str, str, dict]] = []

    def debug(self, message: str, **kwargs) -> None:
        self.records.append(("debug", message, kwargs))

    def info(self, message: str, **kwargs) -> None:
        self.records.append(("info", message, kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self.records.append(("warning", message, kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        self.records.append(("error", message, kwargs))

    def exception(self, message: str, **kwargs) -> None:
        self.records.append(("error", message, kwargs))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for (lvl, m, _) in self.records if level is None or lvl == level]

    def find(self, message: str) -> list[dict]:
        return [fields for (_, m, fields) in self.records if m == message]


class FakeHost:
    """In-memory repository host.

    ``histories`` maps repository keys to newest-first commit labels.
    """

    def __init__(self, histories: Mapping[str, Sequence[str]] | None = None):
        self.histories = {k: list(v) for k, v in (histories or {}).items()}
        self.fail_listing: set[str] = set()
        self.fail_diff: set[str] = set()
        self.pull_requests: dict[str, PullRequestContext] = {}
        self.diffs: dict[str, str] = {}
        self.list_calls: list[tuple[str, int]] = []
        self.yielded = 0
        self.diff_calls: list[str] = []
        self.issues: list[dict] = []
        self.fail_issue = False

    def push(self, repo_key: str, *labels: str) -> None:
        """Add new commits on top of a history (first label becomes the newest)."""
        self.histories[repo_key] = list(labels) + self.histories.get(repo_key, [])

    def list_recent_commits(self, repo: RepositoryIdentity, *, page_size: int) -> Iterator[CommitSummary]:
        self.list_calls.append((repo.key, page_size))
        if repo.key in self.fail_listing:
            raise HostError(f"listing failed for {repo.key}", status_code=500)
        for label in self.histories.get(repo.key, []):
            self.yielded += 1
            yield make_summary(label)

    def get_latest_commit_sha(self, repo: RepositoryIdentity) -> str:
        if repo.key in self.fail_listing:
            raise HostError(f"listing failed for {repo.key}", status_code=500)
        history = self.histories.get(repo.key) or []
        if not history:
            raise NoCommitsFoundError(repo.key)
        return sha(history[0])

    def get_commit_diff(self, repo: RepositoryIdentity, commit_sha: str) -> str:
        self.diff_calls.append(commit_sha)
        if commit_sha in self.fail_diff:
            raise HostError("diff failed", status_code=502)
        return self.diffs.get(commit_sha, f"diff for {commit_sha[:7]}")

    def get_associated_pull_request(self, repo: RepositoryIdentity, commit_sha: str):
        return self.pull_requests.get(commit_sha)

    def create_issue(self, target: RepositoryIdentity, *, title: str, body: str, labels: Sequence[str]) -> str:
        if self.fail_issue:
            raise IssueCreationError("issue rejected", status_code=422)
        self.issues.append({"target": target.key, "title": title, "body": body, "labels": list(labels)})
        return f"https://github.com/{target.key}/issues/{len(self.issues)}"


class FakeClassifier:
    """Classifier returning scripted verdicts keyed by commit SHA."""

    def __init__(self, verdicts: Mapping[str, Verdict] | None = None, failing: Sequence[str] = ()):
        self.verdicts = dict(verdicts or {})
        self.failing = set(failing)
        self.calls: list[str] = []

    def classify(self, commit: CommitRecord) -> Verdict:
        self.calls.append(commit.sha)
        if commit.sha in self.failing:
            raise RuntimeError("oracle unavailable")
        return self.verdicts.get(commit.sha, Verdict.negative())


class FakeIssueEmitter:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.emitted: list[tuple[str, str]] = []

    def emit(self, repo: RepositoryIdentity, commit: CommitRecord, verdict: Verdict) -> str:
        if self.fail:
            raise IssueCreationError("issue rejected", status_code=422)
        self.emitted.append((repo.key, commit.sha))
        return f"https://github.com/acme/advisories/issues/{len(self.emitted)}"


class FakeStateStore:
    """In-memory state store that keeps every saved snapshot."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self.data = dict(initial or {})
        self.saves: list[dict[str, str]] = []
        self.load_calls = 0

    def load(self, configured: Sequence[RepositoryIdentity]) -> dict[str, str]:
        self.load_calls += 1
        return dict(self.data)

    def save(self, state: Mapping[str, str]) -> None:
        self.data = dict(state)
        self.saves.append(dict(state))


class FakeRunLogStore:
    def __init__(self):
        self.read_calls = []
        self.summarize_calls = []

    def read_log(self, run_id: str, verbose: bool) -> list[str]:
        self.read_calls.append((run_id, verbose))
        return [f"Run:    {run_id}"]

    def summarize_all(self, verbose: bool) -> list[str]:
        self.summarize_calls.append(verbose)
        return ["Run  Repos", "run-1  2"]


@pytest.fixture
def logger():
    return FakeLogger()


@pytest.fixture
def repo():
    return RepositoryIdentity(owner="acme", name="plc")
