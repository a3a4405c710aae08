import os
from pathlib import Path
import pytest
from tests.helpers import mark_by_dir


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # Keep developer settings and CI variables out of config-driven tests
    for key in list(os.environ):
        if key.startswith("VULN_SPOILER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    yield


TESTS = Path(__file__).parent

def pytest_collection_modifyitems(config, items):
    # Mark tests by directory structure
    mark_by_dir(items, TESTS / "vuln_spoiler" / "core", pytest.mark.unit)
    mark_by_dir(items, TESTS / "vuln_spoiler" / "infra", pytest.mark.integration)
    mark_by_dir(items, TESTS / "vuln_spoiler" / "app", pytest.mark.e2e)
    mark_by_dir(items, TESTS / "vuln_spoiler" / "shared", pytest.mark.unit)
