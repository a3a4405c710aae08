from __future__ import annotations

import datetime as _dt
import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Detection:
    repo: str
    sha: str
    severity: str = ""
    vulnerability_type: str = ""
    issue_url: str = ""


@dataclass
class RunSummary:
    run_id: str
    run_date: str = ""
    model: str = ""
    repositories: list[str] = field(default_factory=list)
    analyzed_commits: int = 0
    vulnerabilities_found: int = 0
    issues_created: int = 0
    errors: int = 0
    total_tokens: int = 0
    detections: list[Detection] = field(default_factory=list)
    done: bool = False


def parse_log_file(fp: Path) -> RunSummary:
    """Parse a single run log into a summary.

    Counters are accumulated from per-commit events so that an interrupted
    run still reports what it did; the ``run_finished`` totals win when the
    run completed.
    """
    summary = RunSummary(run_id=fp.stem)

    for line in fp.read_text(encoding="utf-8").splitlines():
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(obj, dict):
            continue

        msg = obj.get("message")

        if msg == "run_started":
            repos = obj.get("repositories")
            if isinstance(repos, list):
                summary.repositories = [str(r) for r in repos]
            if isinstance(obj.get("time"), str) and not summary.run_date:
                summary.run_date = _format_time(obj["time"])

        elif msg == "llm_input":
            model = obj.get("model")
            if isinstance(model, str) and not summary.model:
                summary.model = model

        elif msg == "llm_usage":
            tokens = obj.get("total_tokens")
            if isinstance(tokens, int):
                summary.total_tokens += tokens

        elif msg == "commit_analyzed":
            summary.analyzed_commits += 1

        elif msg == "classify_failed":
            summary.analyzed_commits += 1
            summary.errors += 1

        elif msg in ("repo_failed", "issue_failed", "state_save_failed"):
            summary.errors += 1

        elif msg == "vulnerability_detected":
            summary.vulnerabilities_found += 1
            summary.detections.append(
                Detection(
                    repo=str(obj.get("repo") or ""),
                    sha=str(obj.get("sha") or ""),
                    severity=str(obj.get("severity") or ""),
                    vulnerability_type=str(obj.get("vulnerability_type") or ""),
                )
            )

        elif msg == "issue_created":
            summary.issues_created += 1
            url = obj.get("issue_url")
            sha = obj.get("sha")
            for detection in summary.detections:
                if detection.sha == sha and isinstance(url, str):
                    detection.issue_url = url

        elif msg == "run_finished":
            summary.done = True
            for attr in ("analyzed_commits", "vulnerabilities_found", "issues_created", "errors"):
                value = obj.get(attr)
                if isinstance(value, int):
                    setattr(summary, attr, value)

    if not summary.run_date:
        ts = fp.stat().st_mtime
        summary.run_date = _dt.datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")

    return summary


def summarize_logs(logs_dir: Path) -> dict[str, RunSummary]:
    try:
        files = sorted([p for p in logs_dir.glob("*.jsonl") if p.is_file()])
    except FileNotFoundError:
        files = []

    items = [parse_log_file(fp) for fp in files]
    items.sort(key=lambda s: s.run_date or "", reverse=True)
    return {s.run_id: s for s in items}


def format_summary_table(summaries: dict[str, RunSummary], verbose: bool = False) -> list[str]:
    if not summaries:
        return ["No logs found."]

    rows: list[tuple[str, str, str, str, str, str, str, str]] = []
    for run_id, s in summaries.items():
        rows.append((
            run_id,
            str(len(s.repositories)),
            str(s.analyzed_commits),
            str(s.vulnerabilities_found),
            str(s.issues_created),
            str(s.errors),
            s.run_date or "",
            "" if s.done else "incomplete",
        ))

    run_w = max(3, max(len(r[0]) for r in rows))
    repos_w = max(5, max(len(r[1]) for r in rows))
    commits_w = max(7, max(len(r[2]) for r in rows))
    vulns_w = max(5, max(len(r[3]) for r in rows))
    issues_w = max(6, max(len(r[4]) for r in rows))
    errors_w = max(6, max(len(r[5]) for r in rows))

    header = "  ".join([
        'Run'.ljust(run_w),
        'Repos'.rjust(repos_w),
        'Commits'.rjust(commits_w),
        'Vulns'.rjust(vulns_w),
        'Issues'.rjust(issues_w),
        'Errors'.rjust(errors_w),
        'RunDate',
    ])
    lines: list[str] = [header]
    for run_id, repos, commits, vulns, issues, errors, run_date, status in rows:
        parts = [
            run_id.ljust(run_w),
            repos.rjust(repos_w),
            commits.rjust(commits_w),
            vulns.rjust(vulns_w),
            issues.rjust(issues_w),
            errors.rjust(errors_w),
            run_date,
        ]
        if status:
            parts.append(status)
        lines.append("  ".join(parts))

        if verbose:
            for d in summaries[run_id].detections:
                lines.append(f"    {_detection_line(d)}")
    return lines


def format_single_summary(summary: RunSummary) -> list[str]:
    """Render a concise multi-line summary for a single run."""
    lines: list[str] = [f"Run:    {summary.run_id}"]
    if summary.run_date:
        lines.append(f"Date:   {summary.run_date}")
    if summary.model:
        lines.append(f"Model:  {summary.model}")
    if summary.repositories:
        lines.append(f"Repos:  {', '.join(summary.repositories)}")
    lines.append(f"Analyzed commits:      {summary.analyzed_commits}")
    lines.append(f"Vulnerabilities found: {summary.vulnerabilities_found}")
    lines.append(f"Issues created:        {summary.issues_created}")
    if summary.errors:
        lines.append(f"Errors:                {summary.errors}")
    if summary.total_tokens:
        lines.append(f"Tokens:                {summary.total_tokens}")
    if not summary.done:
        lines.append("Status: incomplete (no run_finished event)")
    if summary.detections:
        lines.append("Detections:")
        for d in summary.detections:
            lines.append(f"  {_detection_line(d)}")
    return lines


def _detection_line(d: Detection) -> str:
    line = f"{d.repo}@{d.sha[:7]}  {d.severity or 'Unknown'}  {d.vulnerability_type or 'Security Patch Detected'}"
    if d.issue_url:
        line += f"  {d.issue_url}"
    return line


def _format_time(value: str) -> str:
    try:
        parsed = _dt.datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S")
