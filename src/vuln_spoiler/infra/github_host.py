"""GitHub REST API client for commit listing, diffs, pull requests and issues."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator, Sequence

import httpx

from ..core.domain.exceptions import (
    HostAuthError,
    HostError,
    HostNotFoundError,
    HostRateLimitError,
    IssueCreationError,
    NoCommitsFoundError,
)
from ..core.domain.models import CommitSummary, PullRequestContext, RepositoryIdentity
from ..core.ports import LoggerPort


MAX_PAGE_SIZE = 100
DIFF_MEDIA_TYPE = "application/vnd.github.diff"


class GitHubHost:
    """Repository host backed by the GitHub REST API."""

    def __init__(
        self,
        *,
        logger: LoggerPort,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            logger: Structured logger
            token: GitHub token (optional for public repositories)
            api_url: API base URL, e.g. for GitHub Enterprise
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self._logger = logger
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    def list_recent_commits(
        self,
        repo: RepositoryIdentity,
        *,
        page_size: int,
    ) -> Iterator[CommitSummary]:
        per_page = max(1, min(page_size, MAX_PAGE_SIZE))
        page = 1
        while True:
            items = self._list_commits(repo, per_page=per_page, page=page)
            if not isinstance(items, list) or not items:
                return
            for item in items:
                yield _commit_summary(item)
            if len(items) < per_page:
                return
            page += 1

    def get_latest_commit_sha(self, repo: RepositoryIdentity) -> str:
        items = self._list_commits(repo, per_page=1, page=1)
        if not isinstance(items, list) or not items:
            raise NoCommitsFoundError(repo.key)
        return items[0]["sha"]

    def _list_commits(self, repo: RepositoryIdentity, *, per_page: int, page: int) -> Any:
        """One page of the commit listing; an empty repository yields ``[]``.

        GitHub answers 409 Conflict ("Git Repository is empty.") instead of an
        empty page.
        """
        try:
            return self._request(
                "GET",
                f"repos/{repo.owner}/{repo.name}/commits",
                params={"per_page": per_page, "page": page},
            )
        except HostError as e:
            if e.status_code == 409:
                return []
            raise

    def get_commit_diff(self, repo: RepositoryIdentity, sha: str) -> str:
        diff = self._request(
            "GET",
            f"repos/{repo.owner}/{repo.name}/commits/{sha}",
            accept=DIFF_MEDIA_TYPE,
        )
        return diff if isinstance(diff, str) else ""

    # -------------------------------------------------------------------------
    # Pull requests
    # -------------------------------------------------------------------------

    def get_associated_pull_request(
        self,
        repo: RepositoryIdentity,
        sha: str,
    ) -> PullRequestContext | None:
        try:
            prs = self._request("GET", f"repos/{repo.owner}/{repo.name}/commits/{sha}/pulls")
        except HostError as e:
            self._logger.warning(
                "pull_request_lookup_failed",
                type="pull_request_lookup_failed",
                repo=repo.key,
                sha=sha,
                error=str(e),
            )
            return None

        if not isinstance(prs, list) or not prs:
            return None
        return _pull_request(prs[0])

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    def create_issue(
        self,
        target: RepositoryIdentity,
        *,
        title: str,
        body: str,
        labels: Sequence[str],
    ) -> str:
        try:
            issue = self._request(
                "POST",
                f"repos/{target.owner}/{target.name}/issues",
                json_data={"title": title, "body": body, "labels": list(labels)},
            )
        except HostError as e:
            raise IssueCreationError(
                f"Failed to create issue in {target.key}: {e}",
                status_code=e.status_code,
            ) from e

        url = issue.get("html_url") if isinstance(issue, dict) else None
        if not isinstance(url, str):
            raise IssueCreationError(f"Issue created in {target.key} but no URL was returned")
        return url

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        accept: str | None = None,
    ) -> Any:
        """Make a request and map HTTP failures to HostError subclasses.

        Returns:
            Decoded JSON, or raw text when a non-JSON media type was requested
        """
        headers = {"Accept": accept} if accept else None
        try:
            response = self._client.request(
                method,
                f"/{endpoint}",
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.RequestError as e:
            raise HostError(f"Network error connecting to GitHub: {e}") from e

        status = response.status_code
        if status == 401:
            raise HostAuthError("Authentication failed. Check your GitHub token.", status_code=401)
        if status == 403:
            if "rate limit" in response.text.lower():
                raise HostRateLimitError("GitHub API rate limit exceeded", status_code=403)
            raise HostAuthError("Access forbidden. Check token permissions.", status_code=403)
        if status == 404:
            raise HostNotFoundError(f"Resource not found: {endpoint}", status_code=404)
        if status == 429:
            raise HostRateLimitError("GitHub API rate limit exceeded", status_code=429)
        if status >= 400:
            raise HostError(f"GitHub API error: {status}", status_code=status)

        if accept is not None:
            return response.text
        if status == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise HostError(f"Malformed JSON from GitHub for {endpoint}") from e


def _commit_summary(item: dict[str, Any]) -> CommitSummary:
    commit = item.get("commit") or {}
    author = commit.get("author") or {}
    return CommitSummary(
        sha=item["sha"],
        message=commit.get("message") or "",
        author=author.get("name") or "Unknown",
        date=author.get("date") or datetime.now(timezone.utc).isoformat(),
        url=item.get("html_url") or "",
    )


def _pull_request(pr: dict[str, Any]) -> PullRequestContext:
    labels: list[str] = []
    for label in pr.get("labels") or []:
        if isinstance(label, str):
            labels.append(label)
        elif isinstance(label, dict):
            labels.append(label.get("name") or "")
    return PullRequestContext(
        number=pr["number"],
        title=pr.get("title") or "",
        body=pr.get("body"),
        url=pr.get("html_url") or "",
        labels=tuple(labels),
        merged_at=pr.get("merged_at"),
    )
