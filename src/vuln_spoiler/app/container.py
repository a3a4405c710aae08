from __future__ import annotations

from dependency_injector import containers, providers

from ..core.usecases.run import RunMonitorUseCase
from ..core.usecases.state import ShowStateUseCase
from ..core.usecases.logs import LogsUseCase
from ..core.services import (
    DiffService,
    FrontierTracker,
    IssueRenderer,
    JsonExtractor,
    RunOrchestrator,
    VerdictParser,
)
from ..infra.classifier import LLMClassifier
from ..infra.github_host import GitHubHost
from ..infra.issue_emitter import GitHubIssueEmitter
from ..infra.logging import RunLogger
from ..infra.run_log_store import RunLogStore
from ..infra.state_store import JsonStateStore


def _close_host(host: GitHubHost):
    yield host
    host.close()


def _issue_emitter(*, host, renderer, target):
    if target is None:
        return None
    return GitHubIssueEmitter(host=host, renderer=renderer, target=target)


class Container(containers.DeclarativeContainer):
    """DI container with Pydantic BaseSettings support.

    ``state_path`` and ``issue_target`` are resolved by the caller (CLI or
    facade) and overridden before use.
    """

    # Populated with container.config.from_pydantic(AppConfig(...))
    config = providers.Configuration()

    state_path = providers.Object(None)
    issue_target = providers.Object(None)

    # Logger (Resource: manages lifecycle with init/shutdown)
    logger = providers.Resource(
        RunLogger,
        run_id=config.runtime.run_id,
        logs_dir=config.directories.logs_dir,
        logger_name=config.logging.logger_name,
        console_output=config.logging.console_output,
        level=config.logging.level,
    )

    github_host = providers.Resource(
        _close_host,
        host=providers.Singleton(
            GitHubHost,
            logger=logger,
            token=config.github.token,
            api_url=config.github.api_url,
            timeout=config.github.timeout,
        ),
    )

    state_store = providers.Singleton(
        JsonStateStore,
        path=state_path,
        logger=logger,
    )

    run_log_store = providers.Singleton(
        RunLogStore,
        logs_dir=config.directories.logs_dir,
    )

    # Domain services
    diff_service = providers.Factory(
        DiffService,
        max_chars=config.monitor.diff_max_chars,
    )

    json_extractor = providers.Singleton(JsonExtractor)

    verdict_parser = providers.Singleton(
        VerdictParser,
        json_extractor=json_extractor,
    )

    issue_renderer = providers.Singleton(IssueRenderer)

    classifier = providers.Factory(
        LLMClassifier,
        provider=config.llm.provider_name,
        model=config.llm.model_name,
        api_key=config.llm.api_key,
        logger=logger,
        parser=verdict_parser,
        max_output_tokens=config.llm.max_output_tokens,
        max_retries=config.llm.max_retries,
    )

    issue_emitter = providers.Factory(
        _issue_emitter,
        host=github_host,
        renderer=issue_renderer,
        target=issue_target,
    )

    tracker = providers.Factory(
        FrontierTracker,
        host=github_host,
        diff_service=diff_service,
        logger=logger,
        max_commits=config.monitor.max_commits,
    )

    orchestrator = providers.Factory(
        RunOrchestrator,
        tracker=tracker,
        classifier=classifier,
        state_store=state_store,
        logger=logger,
        issue_emitter=issue_emitter,
        checkpoint_each_repository=config.monitor.checkpoint_each_repository,
    )

    # Use cases
    run_uc = providers.Factory(
        RunMonitorUseCase,
        orchestrator=orchestrator,
    )

    state_uc = providers.Factory(
        ShowStateUseCase,
        state_store=state_store,
    )

    logs_uc = providers.Factory(
        LogsUseCase,
        log_store=run_log_store,
    )
