from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel

from vuln_spoiler.core.domain.models import DetectedVulnerability, RepositoryIdentity, RunError, RunOutput
from vuln_spoiler.shared.to_jsonable import to_jsonable

from tests.vuln_spoiler.conftest import make_commit, positive_verdict


def test_basic_values_pass_through():
    assert to_jsonable({"a": [1, 2.5, None, True, "x"]}) == {"a": [1, 2.5, None, True, "x"]}


def test_tuples_paths_and_datetimes():
    when = datetime(2026, 1, 1, tzinfo=timezone.utc)

    assert to_jsonable((Path("/tmp/state.json"), when)) == ["/tmp/state.json", "2026-01-01T00:00:00+00:00"]


def test_nested_dataclasses():
    output = RunOutput(analyzed_commits=1, vulnerabilities_found=1)
    output.results.append(
        DetectedVulnerability(
            repository=RepositoryIdentity(owner="acme", name="plc"),
            commit=make_commit("c1"),
            verdict=positive_verdict(),
        )
    )
    output.errors.append(RunError(repository_key="acme/hmi", stage="fetch", message="boom"))

    data = to_jsonable(output)

    assert data["analyzed_commits"] == 1
    assert data["results"][0]["repository"] == {"owner": "acme", "name": "plc"}
    assert data["results"][0]["verdict"]["severity"] == "High"
    assert data["results"][0]["commit"]["pull_request"] is None
    assert data["errors"][0]["stage"] == "fetch"


def test_pydantic_models():
    class Model(BaseModel):
        name: str

    assert to_jsonable(Model(name="x")) == {"name": "x"}


def test_fallback_to_str():
    class Opaque:
        __slots__ = ()

        def __str__(self):
            return "opaque"

    assert to_jsonable(Opaque()) == "opaque"
