from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from ..domain.models import CommitRecord, RepositoryIdentity, Verdict


TITLE_MAX_CHARS = 256
PR_BODY_MAX_CHARS = 500
FOOTER = "*This issue was automatically created by vuln-spoiler.*"

_MARKDOWN_SPECIALS = re.compile(r"([\\`*_{}\[\]()#+!|<>~])")
_MENTION = re.compile(r"@(?=[A-Za-z0-9])")
_BACKTICK_RUN = re.compile(r"`+")
_SAFE_URL = re.compile(r"https://[^\s<>()\"'`]+")


@dataclass(frozen=True)
class RenderedIssue:
    title: str
    body: str
    labels: list[str]


class IssueRenderer:
    """Renders a positive verdict into a GitHub issue.

    Every value that comes from the monitored repository or from the
    classifier is untrusted and goes through escaping before it is embedded.
    """

    def render(
        self,
        repo: RepositoryIdentity,
        commit: CommitRecord,
        verdict: Verdict,
        *,
        detected_at: datetime | None = None,
    ) -> RenderedIssue:
        detected_at = detected_at or datetime.now(timezone.utc)
        vuln_type = verdict.vulnerability_type or "Security Patch Detected"
        title = _single_line(f"[Vulnerability] {repo.key}: {vuln_type}")[:TITLE_MAX_CHARS]

        severity_label = (verdict.severity or "unknown").lower()
        labels = ["vulnerability", f"severity:{severity_label}"]

        commit_ref = _link(commit.short_sha, commit.url)
        lines = [
            "## Potential Security Vulnerability Detected",
            "",
            f"**Repository:** [{escape_inline(repo.key)}]({repo.url})",
            f"**Commit:** {commit_ref}",
            f"**Author:** {escape_inline(commit.author)}",
            f"**Date:** {escape_inline(commit.date)}",
            "",
            "### Commit Message",
            code_block(commit.message),
        ]
        lines.extend(self._pr_section(commit))
        lines.extend([
            "",
            "### Analysis",
            "",
            f"**Vulnerability Type:** {escape_inline(verdict.vulnerability_type or 'Unknown')}",
            f"**Severity:** {escape_inline(verdict.severity or 'Unknown')}",
        ])
        if verdict.ot_category:
            lines.append(f"**OT Category:** {escape_inline(verdict.ot_category)}")
        if verdict.affected_protocol:
            lines.append(f"**Affected Protocol:** {escape_inline(verdict.affected_protocol)}")
        if verdict.purdue_layer:
            lines.append(f"**Purdue Layer:** {escape_inline(verdict.purdue_layer)}")
        if verdict.safety_impact:
            lines.append(f"**Safety Impact:** {escape_inline(verdict.safety_impact)}")
        lines.extend([
            "",
            "### Description",
            escape_block(verdict.description) if verdict.description else "No description available.",
            "",
            "### Affected Code",
            code_block(verdict.affected_code) if verdict.affected_code else "Not specified",
            "",
            "### Proof of Concept",
            code_block(verdict.proof_of_concept) if verdict.proof_of_concept else "Not specified",
            "",
            "---",
            FOOTER,
            f"*Detected at: {detected_at.isoformat()}*",
            "",
        ])
        return RenderedIssue(title=title, body="\n".join(lines), labels=labels)

    def _pr_section(self, commit: CommitRecord) -> list[str]:
        pr = commit.pull_request
        if pr is None:
            return []

        labels = ", ".join(escape_inline(label) for label in pr.labels) if pr.labels else "None"
        section = [
            "",
            "### Pull Request",
            f"**PR:** {_link(f'#{pr.number} - {pr.title}', pr.url)}",
            f"**Labels:** {labels}",
        ]
        if pr.body:
            body = pr.body[:PR_BODY_MAX_CHARS]
            if len(pr.body) > PR_BODY_MAX_CHARS:
                body += "..."
            section.extend(["", "**Description:**", escape_block(body)])
        return section


def escape_block(text: str) -> str:
    """Escape Markdown and neutralise @-mentions, keeping line breaks."""
    text = _MARKDOWN_SPECIALS.sub(r"\\\1", text)
    return _MENTION.sub("@\u200b", text)


def escape_inline(text: str) -> str:
    """Escape a value for use inside a single Markdown line."""
    return escape_block(_single_line(text))


def code_block(text: str) -> str:
    """Wrap text in a fence longer than any backtick run it contains."""
    longest = max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}\n{text}\n{fence}"


def safe_url(url: str | None) -> str | None:
    """Return url only when it is a plain https URL."""
    if url and _SAFE_URL.fullmatch(url):
        return url
    return None


def _link(text: str, url: str | None) -> str:
    label = escape_inline(text)
    target = safe_url(url)
    return f"[{label}]({target})" if target else label


def _single_line(text: str) -> str:
    return " ".join(text.split())
