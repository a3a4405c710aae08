from __future__ import annotations

from typing import Sequence

from ..domain.models import RepositoryIdentity, RunOutput
from ..services import RunOrchestrator


class RunMonitorUseCase:
    """Use case for one monitoring cycle.

    Thin orchestration layer that delegates to RunOrchestrator.
    """

    def __init__(self, *, orchestrator: RunOrchestrator) -> None:
        self._orchestrator = orchestrator

    def execute(self, *, repositories: Sequence[RepositoryIdentity]) -> RunOutput:
        """Run the monitor over the given repositories.

        Args:
            repositories: Repositories to monitor

        Returns:
            Aggregated run output
        """
        return self._orchestrator.run(repositories)
