"""CLI output formatting utilities for human-readable display."""

from __future__ import annotations

import json
from typing import Any

from ..core.domain.models import RunOutput
from ..shared.to_jsonable import to_jsonable


def run_output_to_dict(output: RunOutput, *, include_diffs: bool = False) -> dict[str, Any]:
    """Convert a RunOutput to JSON-ready data.

    Commit diffs are dropped unless requested; they can be large.
    """
    data = to_jsonable(output)
    if not include_diffs:
        for result in data["results"]:
            result["commit"].pop("diff", None)
    return data


def format_run_output(output: RunOutput) -> str:
    """Format run output for human-readable CLI output.

    Args:
        output: Aggregated run output

    Returns:
        Formatted string for display
    """
    lines = []
    lines.append("=" * 80)
    lines.append("RUN SUMMARY")
    lines.append("=" * 80)

    lines.append(f"\nRepositories processed: {len(output.processed_repositories)}")
    lines.append(f"Analyzed commits:       {output.analyzed_commits}")
    lines.append(f"Vulnerabilities found:  {output.vulnerabilities_found}")
    lines.append(f"Issues created:         {output.issues_created}")

    if output.results:
        lines.append("\n" + "-" * 80)
        lines.append("DETECTIONS")
        lines.append("-" * 80)
        for i, result in enumerate(output.results, 1):
            verdict = result.verdict
            lines.append(
                f"\n{i}. {result.repository.key}@{result.commit.short_sha}: "
                f"{verdict.vulnerability_type or 'Security Patch Detected'} "
                f"({verdict.severity or 'Unknown'})"
            )
            if verdict.ot_category or verdict.purdue_layer:
                lines.append(
                    f"   OT: {verdict.ot_category or '-'} / {verdict.purdue_layer or '-'}"
                )
            lines.append(f"   Commit: {result.commit.url}")
            if result.issue_url:
                lines.append(f"   Issue:  {result.issue_url}")

    if output.errors:
        lines.append("\n" + "-" * 80)
        lines.append("ERRORS")
        lines.append("-" * 80)
        for err in output.errors:
            where = err.repository_key
            if err.commit_sha:
                where += f"@{err.commit_sha[:7]}"
            lines.append(f"  [{err.stage}] {where}: {err.message}")

    lines.append("\n" + "=" * 80)

    return "\n".join(lines)


def format_state(state: dict[str, str]) -> str:
    """Format watermark state as aligned ``repository  sha`` lines."""
    if not state:
        return "No state recorded."
    width = max(len(key) for key in state)
    return "\n".join(f"{key.ljust(width)}  {sha}" for key, sha in state.items())


def format_github_output(output: RunOutput) -> str:
    """Render the run outputs in the GitHub Actions ``$GITHUB_OUTPUT`` format."""
    results = json.dumps(run_output_to_dict(output)["results"], ensure_ascii=False)
    return (
        f"vulnerabilities-found={output.vulnerabilities_found}\n"
        f"issues-created={output.issues_created}\n"
        f"analyzed-commits={output.analyzed_commits}\n"
        f"results={results}\n"
    )
