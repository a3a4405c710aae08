from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, Any, Mapping, get_args

from platformdirs import PlatformDirs
from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ..core.domain.exceptions import ConfigurationError
from ..core.domain.models import RepositoryIdentity
from ..infra.llm_adapters import Provider


APP_NAME = "vuln_spoiler"


def _default_home() -> Path:
    """Get default home directory using platformdirs."""
    return Path(PlatformDirs(appname=APP_NAME, appauthor=False).user_data_dir)


class DirectoryConfig(BaseSettings):
    """Directory configuration with computed paths."""

    model_config = SettingsConfigDict(env_prefix="VULN_SPOILER_DIRECTORIES__")

    home: Path = Field(
        default_factory=_default_home,
        description="Base directory for all vuln_spoiler data",
    )

    @computed_field
    @property
    def logs_dir(self) -> Path:
        """Logs directory for run logs."""
        path = self.home / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @computed_field
    @property
    def default_state_file(self) -> Path:
        """State file used when no explicit state file is configured."""
        return self.home / "state.json"


class LLMConfig(BaseSettings):
    """LLM configuration."""

    model_config = SettingsConfigDict(env_prefix="VULN_SPOILER_LLM__")

    api_key: str | None = Field(
        default=None,
        description="LLM API key (Anthropic or OpenAI)",
    )

    provider_name: str = Field(
        default="anthropic",
        description="LLM provider (anthropic, openai)",
    )

    model_name: str = Field(
        default="claude-sonnet-4-20250514",
        description="LLM model name",
    )

    max_output_tokens: int = Field(
        default=2048,
        ge=1,
        description="Maximum tokens in a classification response",
    )

    max_retries: int = Field(
        default=2,
        ge=0,
        description="SDK-level retries for transient provider errors",
    )


class GitHubConfig(BaseSettings):
    """GitHub configuration."""

    model_config = SettingsConfigDict(env_prefix="VULN_SPOILER_GITHUB__")

    token: str | None = Field(
        default=None,
        description="GitHub token used for reading commits and creating issues",
    )

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (override for GitHub Enterprise)",
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds",
    )


class MonitorConfig(BaseSettings):
    """Monitoring settings: what to watch and what to do on detections."""

    model_config = SettingsConfigDict(env_prefix="VULN_SPOILER_MONITOR__")

    repositories: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description=(
            'Repositories to monitor. Either a JSON array of "owner/name" strings '
            'or {"owner": ..., "repo": ...} objects, or a comma separated list.'
        ),
    )

    max_commits: int = Field(
        default=50,
        ge=1,
        description="Maximum commits analyzed per repository per run",
    )

    create_issues: bool = Field(
        default=True,
        description="Open a tracking issue for every detected vulnerability patch",
    )

    issue_repo: str | None = Field(
        default=None,
        description='Repository receiving issues ("owner/name"); defaults to $GITHUB_REPOSITORY',
    )

    state_file: Path | None = Field(
        default=None,
        description="Watermark state file; defaults to <home>/state.json",
    )

    diff_max_chars: int = Field(
        default=15_000,
        ge=1,
        description="Maximum diff characters sent to the classifier (tail-truncated)",
    )

    checkpoint_each_repository: bool = Field(
        default=False,
        description="Save state after every repository whose watermark moved",
    )

    @field_validator("repositories", mode="before")
    @classmethod
    def _parse_repositories(cls, value: Any) -> list[str]:
        return [repo.key for repo in parse_repositories(value)]

    @field_validator("issue_repo")
    @classmethod
    def _check_issue_repo(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        try:
            return RepositoryIdentity.parse(value.strip()).key
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

    def repository_identities(self) -> list[RepositoryIdentity]:
        return [RepositoryIdentity.parse(key) for key in self.repositories]


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="VULN_SPOILER_LOGGING__")

    logger_name: str = Field(default=APP_NAME, description="Logger name")
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    console_output: bool = Field(default=False, description="Mirror log events to stderr")


class RuntimeConfig(BaseSettings):
    """Per-invocation values set by the CLI or facade, not by the environment."""

    model_config = SettingsConfigDict(env_prefix="VULN_SPOILER_RUNTIME__")

    run_id: str | None = Field(default=None, description="Run identifier; names the JSONL log file")


class AppConfig(BaseSettings):
    """Root application configuration.

    All configuration is loaded from environment variables with VULN_SPOILER_ prefix.
    Use double underscore for nested config: VULN_SPOILER_LLM__API_KEY

    Example env vars:
        # Required
        export VULN_SPOILER_GITHUB__TOKEN=ghp_xxxxxxxxxxxxx
        export VULN_SPOILER_LLM__API_KEY=sk-ant-xxxxxxxxxxxxx
        export VULN_SPOILER_MONITOR__REPOSITORIES='["openplc/OpenPLC_v3", "FreeOpcUa/opcua-asyncio"]'

        # Optional (with defaults)
        export VULN_SPOILER_LLM__PROVIDER_NAME=anthropic
        export VULN_SPOILER_LLM__MODEL_NAME=claude-sonnet-4-20250514
        export VULN_SPOILER_MONITOR__MAX_COMMITS=50
        export VULN_SPOILER_MONITOR__CREATE_ISSUES=true
        export VULN_SPOILER_MONITOR__ISSUE_REPO=my-org/ot-advisories
        export VULN_SPOILER_DIRECTORIES__HOME=/custom/path
    """

    model_config = SettingsConfigDict(
        env_prefix="VULN_SPOILER_",
        env_nested_delimiter="__",
        frozen=True,
        extra="forbid",
    )

    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)


def parse_repositories(value: Any) -> list[RepositoryIdentity]:
    """Parse a repository list from config or CLI input.

    Accepts a JSON array string, a comma or newline separated string, or a
    list whose items are ``"owner/name"`` strings or ``{"owner", "repo"}``
    mappings. Duplicates are rejected.

    Raises:
        ValueError: On any malformed entry
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid repositories input: {e}") from e
        else:
            value = [part for part in text.replace("\n", ",").split(",") if part.strip()]

    if not isinstance(value, (list, tuple)):
        raise ValueError("Invalid repositories input: expected a list")

    repos: list[RepositoryIdentity] = []
    seen: set[str] = set()
    for item in value:
        repo = _parse_repository_entry(item)
        if repo.key in seen:
            raise ValueError(f"Duplicate repository in configuration: {repo.key}")
        seen.add(repo.key)
        repos.append(repo)
    return repos


def _parse_repository_entry(item: Any) -> RepositoryIdentity:
    if isinstance(item, RepositoryIdentity):
        return item
    if isinstance(item, Mapping):
        owner, name = item.get("owner"), item.get("repo", item.get("name"))
        if not isinstance(owner, str) or not isinstance(name, str) or not owner or not name:
            raise ValueError(
                'Each entry must be an object with non-empty "owner" and "repo" string fields'
            )
        item = f"{owner}/{name}"
    if not isinstance(item, str):
        raise ValueError(f"Invalid repository entry: {item!r}")
    try:
        return RepositoryIdentity.parse(item.strip())
    except ConfigurationError as e:
        raise ValueError(str(e)) from e


def resolve_state_path(raw: Path | str | None, *, default: Path) -> Path:
    """Resolve the state file location.

    Raises:
        ConfigurationError: If the path is empty, contains NUL bytes or
            names an existing directory
    """
    if raw is None:
        return default
    text = str(raw)
    if not text.strip() or "\0" in text:
        raise ConfigurationError("Invalid state-file path")
    path = Path(text).expanduser()
    if path.is_dir():
        raise ConfigurationError(f"state-file path must point to a file, not a directory. Got: {text}")
    return path


def resolve_issue_target(
    config: AppConfig,
    environ: Mapping[str, str] | None = None,
) -> RepositoryIdentity | None:
    """Return the repository that receives issues, or None when issues are disabled.

    Falls back to ``$GITHUB_REPOSITORY`` (set inside GitHub Actions).

    Raises:
        ConfigurationError: If issues are enabled but no valid target is known
    """
    if not config.monitor.create_issues:
        return None
    env = os.environ if environ is None else environ
    slug = config.monitor.issue_repo or env.get("GITHUB_REPOSITORY")
    if not slug:
        raise ConfigurationError(
            "Issue creation is enabled but no issue repository is configured "
            "(set VULN_SPOILER_MONITOR__ISSUE_REPO or pass --issue-repo)"
        )
    return RepositoryIdentity.parse(slug)


def validate_for_run(config: AppConfig) -> list[RepositoryIdentity]:
    """Check everything a run needs before any repository is touched.

    Returns:
        The configured repositories, in order

    Raises:
        ConfigurationError: On missing credentials or repositories
    """
    if not config.llm.api_key:
        raise ConfigurationError("API key required via VULN_SPOILER_LLM__API_KEY")
    if not config.github.token:
        raise ConfigurationError("GitHub token required via VULN_SPOILER_GITHUB__TOKEN")
    if config.llm.provider_name not in get_args(Provider):
        raise ConfigurationError(
            f"Unsupported LLM provider: {config.llm.provider_name!r} (expected one of {', '.join(get_args(Provider))})"
        )
    repos = config.monitor.repository_identities()
    if not repos:
        raise ConfigurationError(
            "At least one repository is required via VULN_SPOILER_MONITOR__REPOSITORIES or --repo"
        )
    return repos


def with_overrides(config: AppConfig, section: str, **values: Any) -> AppConfig:
    """Return a copy of config with non-None values replaced in one section.

    AppConfig is frozen; runtime parameters (CLI options, facade arguments)
    are applied through copies. The section is re-validated, so overrides go
    through the same field validators as environment values.

    Raises:
        pydantic.ValidationError: If an override is invalid
    """
    updates = {k: v for k, v in values.items() if v is not None}
    if not updates:
        return config
    current = getattr(config, section)
    fields = {name: getattr(current, name) for name in type(current).model_fields}
    section_config = type(current).model_validate({**fields, **updates})
    return config.model_copy(update={section: section_config})
