from __future__ import annotations

from ..core.domain.models import CommitRecord, RepositoryIdentity, Verdict
from ..core.ports import RepositoryHostPort
from ..core.services import IssueRenderer


class GitHubIssueEmitter:
    """Opens one tracking issue per positive verdict in the target repository."""

    def __init__(
        self,
        *,
        host: RepositoryHostPort,
        renderer: IssueRenderer,
        target: RepositoryIdentity,
    ) -> None:
        self._host = host
        self._renderer = renderer
        self._target = target

    @property
    def target(self) -> RepositoryIdentity:
        return self._target

    def emit(self, repo: RepositoryIdentity, commit: CommitRecord, verdict: Verdict) -> str:
        issue = self._renderer.render(repo, commit, verdict)
        return self._host.create_issue(
            self._target,
            title=issue.title,
            body=issue.body,
            labels=issue.labels,
        )
