from __future__ import annotations

from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from .config import (
    AppConfig,
    parse_repositories,
    resolve_issue_target,
    resolve_state_path,
    validate_for_run,
    with_overrides,
)
from .container import Container
from ..core.domain.exceptions import ConfigurationError
from ..core.domain.models import RunOutput


def _create_container(config: AppConfig | None = None) -> Container:
    """Create and initialize a container.

    Args:
        config: Optional config. If None, loads from environment variables.

    Returns:
        Initialized container instance

    Raises:
        ConfigurationError: If the state file path is invalid
    """
    container = Container()

    if config is None:
        # Load from environment variables (BaseSettings default behavior)
        config = AppConfig()

    container.config.from_pydantic(config)
    container.state_path.override(
        resolve_state_path(config.monitor.state_file, default=config.directories.default_state_file)
    )
    container.init_resources()

    return container


def run_monitor(
    *,
    repositories: Sequence[str] | None = None,
    max_commits: int | None = None,
    create_issues: bool | None = None,
    issue_repo: str | None = None,
    state_file: Path | None = None,
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
    github_token: str | None = None,
    config: AppConfig | None = None,
) -> RunOutput:
    """Run one monitoring cycle.

    Keyword arguments override the corresponding configuration values.

    Args:
        repositories: "owner/name" strings to monitor instead of the configured list
        max_commits: Per-repository commit cap
        create_issues: Whether to open tracking issues
        issue_repo: Repository receiving issues ("owner/name")
        state_file: Watermark state file
        provider: LLM provider override
        model: LLM model override
        api_key: LLM API key override
        github_token: GitHub token override
        config: Optional config for testing. If None, loads from env vars.

    Returns:
        Aggregated run output

    Raises:
        ConfigurationError: If the configuration is incomplete or invalid
    """
    if config is None:
        config = AppConfig()

    repo_keys: list[str] | None = None
    if repositories is not None:
        try:
            repo_keys = [repo.key for repo in parse_repositories(list(repositories))]
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    try:
        config = with_overrides(
            config,
            "monitor",
            repositories=repo_keys,
            max_commits=max_commits,
            create_issues=create_issues,
            issue_repo=issue_repo,
            state_file=state_file,
        )
        config = with_overrides(config, "llm", provider_name=provider, model_name=model, api_key=api_key)
        config = with_overrides(config, "github", token=github_token)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid run parameters: {e}") from e

    repos = validate_for_run(config)
    target = resolve_issue_target(config)

    container = _create_container(config)
    try:
        if target is not None:
            container.issue_target.override(target)
        uc = container.run_uc()
        return uc.execute(repositories=repos)
    finally:
        container.shutdown_resources()


def show_state(
    *,
    state_file: Path | None = None,
    config: AppConfig | None = None,
) -> dict[str, str]:
    """Return the persisted watermarks.

    Args:
        state_file: Watermark state file override
        config: Optional config for testing. If None, loads from env vars.
    """
    if config is None:
        config = AppConfig()
    try:
        config = with_overrides(config, "monitor", state_file=state_file)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid state-file: {e}") from e

    container = _create_container(config)
    try:
        uc = container.state_uc()
        return uc.execute(config.monitor.repository_identities())
    finally:
        container.shutdown_resources()


def logs(
    run_id: str | None = None,
    verbose: bool = False,
    config: AppConfig | None = None,
) -> list[str]:
    """Show run logs.

    Args:
        run_id: Optional run ID. If None, shows summary of all runs.
        verbose: Show raw lines for one run, or detections in the summary table
        config: Optional config for testing. If None, loads from env vars.

    Returns:
        List of log lines
    """
    container = _create_container(config)
    try:
        uc = container.logs_uc()
        return uc.execute(run_id, verbose)
    finally:
        container.shutdown_resources()
