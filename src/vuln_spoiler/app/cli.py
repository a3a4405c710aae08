from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .cli_formatter import format_github_output, format_run_output, format_state, run_output_to_dict
from .config import AppConfig, with_overrides
from .main import logs as logs_facade
from .main import run_monitor, show_state
from ..core.domain.exceptions import ConfigurationError

load_dotenv()

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _new_run_id() -> str:
    return datetime.now(timezone.utc).strftime("run-%Y%m%d-%H%M%S")


def _load_config() -> AppConfig:
    try:
        return AppConfig()
    except ValidationError as e:
        typer.echo(f"Error: invalid configuration:\n{e}", err=True)
        raise typer.Exit(code=2)


@app.command()
def run(
    repo: list[str] | None = typer.Option(None, "--repo", "-r", help="Repository to monitor (owner/name); repeatable. Overrides the configured list."),
    max_commits: int | None = typer.Option(None, "--max-commits", "-n", help="Maximum commits analyzed per repository"),
    no_issues: bool = typer.Option(False, "--no-issues", help="Do not open tracking issues"),
    issue_repo: str | None = typer.Option(None, "--issue-repo", help="Repository receiving issues (owner/name)"),
    state_file: Path | None = typer.Option(None, "--state-file", help="Watermark state file"),
    provider: str | None = typer.Option(None, "--provider", case_sensitive=False, help="LLM provider (anthropic, openai)"),
    model: str | None = typer.Option(None, "--model", help="Model name"),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level", case_sensitive=False),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
    github_output: Path | None = typer.Option(None, "--github-output", envvar="GITHUB_OUTPUT", help="Append step outputs to this file (GitHub Actions)"),
):
    """Run one monitoring cycle over the configured repositories."""
    config = _load_config()

    run_id = _new_run_id()
    config = with_overrides(config, "runtime", run_id=run_id)
    config = with_overrides(config, "logging", level=log_level.upper(), console_output=True)
    log_file = config.directories.logs_dir / f"{run_id}.jsonl"

    if not json_output:
        typer.echo(f"Starting run: {run_id}")
        typer.echo(f"Log file: {log_file}")

    try:
        output = run_monitor(
            repositories=repo or None,
            max_commits=max_commits,
            create_issues=False if no_issues else None,
            issue_repo=issue_repo,
            state_file=state_file,
            provider=provider.lower() if provider else None,
            model=model,
            config=config,
        )
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    if json_output:
        typer.echo(json.dumps(run_output_to_dict(output), ensure_ascii=False, indent=2))
    else:
        typer.echo(format_run_output(output))

    if github_output is not None:
        with github_output.open("a", encoding="utf-8") as fh:
            fh.write(format_github_output(output))


@app.command()
def state(
    state_file: Path | None = typer.Option(None, "--state-file", help="Watermark state file"),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
):
    """Show the persisted per-repository watermarks."""
    config = _load_config()
    try:
        watermarks = show_state(state_file=state_file, config=config)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    if json_output:
        typer.echo(json.dumps(watermarks, ensure_ascii=False, indent=2))
    else:
        typer.echo(format_state(watermarks))


@app.command()
def logs(
    run_id: str = typer.Argument(None, help="Optional run ID. If omitted, lists summaries of all runs."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show raw log lines, or detections in the summary."),
):
    """Show run logs - either for a specific run or a summary of all runs."""
    config = _load_config()
    try:
        lines = logs_facade(run_id, verbose, config=config)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    for line in lines:
        typer.echo(line)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
