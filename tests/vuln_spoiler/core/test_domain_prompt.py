"""Tests for the classification prompt."""
from vuln_spoiler.core.domain.models import OT_CATEGORIES, PullRequestContext
from vuln_spoiler.core.domain.prompt import PR_BODY_MAX_CHARS, build_pr_section, build_prompt

from tests.vuln_spoiler.conftest import make_commit


def test_prompt_contains_commit_details_inside_markers():
    commit = make_commit("c1", diff="--- a/modbus.c\n+++ b/modbus.c\n+if (len > MAX) return -1;")

    prompt = build_prompt(commit=commit)

    begin = prompt.index("----- BEGIN COMMIT -----")
    end = prompt.index("----- END COMMIT -----")
    assert begin < prompt.index(commit.sha) < end
    assert begin < prompt.index("if (len > MAX) return -1;") < end
    assert "Alice" in prompt


def test_prompt_lists_every_ot_category_and_response_keys():
    prompt = build_prompt(commit=make_commit())

    for category in OT_CATEGORIES:
        assert f"`{category}`" in prompt
    for key in ("isVulnerabilityPatch", "proofOfConcept", "otCategory", "purdueLayer", "safetyImpact"):
        assert f'"{key}"' in prompt


def test_prompt_without_pull_request_has_no_pr_section():
    prompt = build_prompt(commit=make_commit(pull_request=None))

    assert "Associated Pull Request" not in prompt


def test_pr_section_truncates_long_body():
    pr = PullRequestContext(
        number=42,
        title="Fix parser",
        body="x" * (PR_BODY_MAX_CHARS + 50),
        url="https://github.com/acme/plc/pull/42",
        labels=("security", "bug"),
    )

    section = build_pr_section(pr)

    assert "**PR #42:** Fix parser" in section
    assert "security, bug" in section
    assert "x" * PR_BODY_MAX_CHARS + "..." in section
    assert "x" * (PR_BODY_MAX_CHARS + 1) not in section


def test_pr_section_without_labels_or_body():
    pr = PullRequestContext(number=1, title="t", body=None, url="https://github.com/a/b/pull/1")

    section = build_pr_section(pr)

    assert "**Labels:** None" in section
    assert "Description" not in section
