"""Tests for GitHubHost against an httpx mock transport."""
import json

import httpx
import pytest

from vuln_spoiler.core.domain.exceptions import (
    HostAuthError,
    HostError,
    HostNotFoundError,
    HostRateLimitError,
    IssueCreationError,
    NoCommitsFoundError,
)
from vuln_spoiler.core.domain.models import RepositoryIdentity
from vuln_spoiler.infra.github_host import DIFF_MEDIA_TYPE, GitHubHost

from tests.vuln_spoiler.conftest import FakeLogger


REPO = RepositoryIdentity(owner="acme", name="plc")


def commit_item(i: int) -> dict:
    return {
        "sha": f"{i:040x}",
        "html_url": f"https://github.com/acme/plc/commit/{i:040x}",
        "commit": {
            "message": f"commit {i}",
            "author": {"name": "Alice", "date": "2026-01-01T00:00:00Z"},
        },
    }


def make_host(handler, logger=None, token="ghp_test"):
    return GitHubHost(
        logger=logger or FakeLogger(),
        token=token,
        transport=httpx.MockTransport(handler),
    )


def test_list_recent_commits_pages_lazily():
    requests = []
    history = [commit_item(i) for i in range(250, 0, -1)]

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        per_page = int(request.url.params["per_page"])
        page = int(request.url.params["page"])
        start = (page - 1) * per_page
        return httpx.Response(200, json=history[start:start + per_page])

    host = make_host(handler)
    it = host.list_recent_commits(REPO, page_size=100)
    first = [next(it) for _ in range(100)]

    assert len(requests) == 1
    assert first[0].sha == f"{250:040x}"

    rest = list(it)
    assert len(first) + len(rest) == 250
    assert [int(r.url.params["page"]) for r in requests] == [1, 2, 3]
    assert requests[0].url.path == "/repos/acme/plc/commits"


def test_list_recent_commits_clamps_page_size():
    seen = []

    def handler(request):
        seen.append(int(request.url.params["per_page"]))
        return httpx.Response(200, json=[])

    host = make_host(handler)
    list(host.list_recent_commits(REPO, page_size=500))
    list(host.list_recent_commits(REPO, page_size=0))

    assert seen == [100, 1]


def test_commit_summary_defaults():
    def handler(request):
        return httpx.Response(200, json=[{"sha": "a" * 40, "commit": {"message": None, "author": None}}])

    summary = next(make_host(handler).list_recent_commits(REPO, page_size=1))

    assert summary.author == "Unknown"
    assert summary.message == ""
    assert summary.date


def test_get_latest_commit_sha():
    def handler(request):
        assert request.url.params["per_page"] == "1"
        return httpx.Response(200, json=[commit_item(7)])

    assert make_host(handler).get_latest_commit_sha(REPO) == f"{7:040x}"


def test_get_latest_commit_sha_empty_repository():
    host = make_host(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(NoCommitsFoundError, match="No commits found for acme/plc"):
        host.get_latest_commit_sha(REPO)


def test_get_latest_commit_sha_conflict_means_empty_repository():
    host = make_host(lambda request: httpx.Response(409, json={"message": "Git Repository is empty."}))

    with pytest.raises(NoCommitsFoundError):
        host.get_latest_commit_sha(REPO)


def test_list_recent_commits_empty_repository_yields_nothing():
    host = make_host(lambda request: httpx.Response(409, json={"message": "Git Repository is empty."}))

    assert list(host.list_recent_commits(REPO, page_size=50)) == []


def test_conflict_outside_commit_listing_stays_host_error():
    host = make_host(lambda request: httpx.Response(409, json={"message": "conflict"}))

    with pytest.raises(HostError) as excinfo:
        host.get_commit_diff(REPO, "abc")
    assert excinfo.value.status_code == 409
    assert not isinstance(excinfo.value, NoCommitsFoundError)


def test_get_commit_diff_requests_diff_media_type():
    def handler(request):
        assert request.headers["Accept"] == DIFF_MEDIA_TYPE
        assert request.url.path == "/repos/acme/plc/commits/abc"
        return httpx.Response(200, text="diff --git a/x b/x\n+1")

    assert make_host(handler).get_commit_diff(REPO, "abc") == "diff --git a/x b/x\n+1"


def test_authorization_header():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer ghp_test"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
        return httpx.Response(200, json=[commit_item(1)])

    make_host(handler).get_latest_commit_sha(REPO)


def test_associated_pull_request_takes_first():
    def handler(request):
        assert request.url.path == "/repos/acme/plc/commits/abc/pulls"
        return httpx.Response(200, json=[
            {
                "number": 12,
                "title": "Fix bounds",
                "body": "details",
                "html_url": "https://github.com/acme/plc/pull/12",
                "labels": [{"name": "security"}, "bug"],
                "merged_at": "2026-01-02T00:00:00Z",
            },
            {"number": 13, "title": "other", "html_url": "https://github.com/acme/plc/pull/13"},
        ])

    pr = make_host(handler).get_associated_pull_request(REPO, "abc")

    assert pr.number == 12
    assert pr.labels == ("security", "bug")
    assert pr.merged_at == "2026-01-02T00:00:00Z"


def test_associated_pull_request_none_when_empty():
    host = make_host(lambda request: httpx.Response(200, json=[]))

    assert host.get_associated_pull_request(REPO, "abc") is None


def test_associated_pull_request_failure_is_logged_and_ignored():
    logger = FakeLogger()
    host = make_host(lambda request: httpx.Response(500), logger=logger)

    assert host.get_associated_pull_request(REPO, "abc") is None
    assert logger.find("pull_request_lookup_failed")[0]["sha"] == "abc"


@pytest.mark.parametrize(
    "status,text,exc",
    [
        (401, "", HostAuthError),
        (403, "Resource not accessible", HostAuthError),
        (403, "API rate limit exceeded", HostRateLimitError),
        (404, "", HostNotFoundError),
        (429, "", HostRateLimitError),
        (502, "", HostError),
    ],
)
def test_error_mapping(status, text, exc):
    host = make_host(lambda request: httpx.Response(status, text=text))

    with pytest.raises(exc) as info:
        host.get_latest_commit_sha(REPO)
    assert info.value.status_code == status


def test_network_error_becomes_host_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(HostError, match="Network error"):
        make_host(handler).get_latest_commit_sha(REPO)


def test_create_issue():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"html_url": "https://github.com/acme/advisories/issues/5"})

    target = RepositoryIdentity(owner="acme", name="advisories")
    url = make_host(handler).create_issue(target, title="t", body="b", labels=["vulnerability", "severity:high"])

    assert url == "https://github.com/acme/advisories/issues/5"
    assert captured["method"] == "POST"
    assert captured["path"] == "/repos/acme/advisories/issues"
    assert captured["body"] == {"title": "t", "body": "b", "labels": ["vulnerability", "severity:high"]}


def test_create_issue_failure():
    host = make_host(lambda request: httpx.Response(422, json={"message": "Validation Failed"}))

    with pytest.raises(IssueCreationError) as info:
        host.create_issue(REPO, title="t", body="b", labels=[])
    assert info.value.status_code == 422


def test_create_issue_without_url():
    host = make_host(lambda request: httpx.Response(201, json={"number": 1}))

    with pytest.raises(IssueCreationError):
        host.create_issue(REPO, title="t", body="b", labels=[])
