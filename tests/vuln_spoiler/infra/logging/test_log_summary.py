"""Tests for run log summaries."""
import json

from vuln_spoiler.infra.logging.log_summary import (
    format_single_summary,
    format_summary_table,
    parse_log_file,
    summarize_logs,
)


def write_log(path, events):
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n", encoding="utf-8")


COMPLETE_RUN = [
    {"message": "run_started", "time": "2026-03-01T12:00:00+00:00", "repositories": ["acme/plc", "acme/hmi"]},
    {"message": "llm_input", "model": "claude-sonnet-4-20250514"},
    {"message": "llm_usage", "total_tokens": 100},
    {"message": "commit_analyzed", "repo": "acme/plc", "sha": "a" * 40},
    {"message": "vulnerability_detected", "repo": "acme/plc", "sha": "a" * 40, "severity": "High", "vulnerability_type": "Auth bypass"},
    {"message": "issue_created", "repo": "acme/plc", "sha": "a" * 40, "issue_url": "https://github.com/acme/adv/issues/1"},
    {"message": "llm_usage", "total_tokens": 50},
    {"message": "classify_failed", "repo": "acme/plc", "sha": "b" * 40},
    {"message": "run_finished", "analyzed_commits": 2, "vulnerabilities_found": 1, "issues_created": 1, "errors": 1},
]


def test_parse_complete_run(tmp_path):
    fp = tmp_path / "run-20260301-120000.jsonl"
    write_log(fp, COMPLETE_RUN)

    summary = parse_log_file(fp)

    assert summary.run_id == "run-20260301-120000"
    assert summary.run_date == "2026-03-01 12:00:00"
    assert summary.model == "claude-sonnet-4-20250514"
    assert summary.repositories == ["acme/plc", "acme/hmi"]
    assert summary.total_tokens == 150
    assert (summary.analyzed_commits, summary.vulnerabilities_found, summary.issues_created, summary.errors) == (2, 1, 1, 1)
    assert summary.done is True
    assert summary.detections[0].issue_url == "https://github.com/acme/adv/issues/1"


def test_parse_interrupted_run_counts_events(tmp_path):
    fp = tmp_path / "run-x.jsonl"
    write_log(fp, COMPLETE_RUN[:-1])
    with fp.open("a", encoding="utf-8") as fh:
        fh.write("not json\n")

    summary = parse_log_file(fp)

    assert summary.done is False
    assert summary.analyzed_commits == 2
    assert summary.errors == 1


def test_interrupted_run_counts_failed_saves_as_errors(tmp_path):
    fp = tmp_path / "run-3.jsonl"
    write_log(fp, [
        {"message": "run_started", "repositories": ["acme/plc"]},
        {"message": "state_save_failed", "repo": "acme/plc", "error": "disk full"},
    ])

    summary = parse_log_file(fp)

    assert summary.errors == 1
    assert summary.done is False


def test_summary_table(tmp_path):
    write_log(tmp_path / "run-a.jsonl", COMPLETE_RUN)

    lines = format_summary_table(summarize_logs(tmp_path), verbose=True)

    assert lines[0].split() == ["Run", "Repos", "Commits", "Vulns", "Issues", "Errors", "RunDate"]
    assert lines[1].startswith("run-a")
    assert "acme/plc@aaaaaaa" in lines[2]


def test_summary_table_empty(tmp_path):
    assert format_summary_table(summarize_logs(tmp_path / "missing")) == ["No logs found."]


def test_single_summary(tmp_path):
    fp = tmp_path / "run-a.jsonl"
    write_log(fp, COMPLETE_RUN)

    lines = format_single_summary(parse_log_file(fp))

    assert lines[0] == "Run:    run-a"
    assert "Vulnerabilities found: 1" in lines
    assert any("Auth bypass" in line for line in lines)
