from __future__ import annotations

from typing import Sequence

from ..domain.models import RepositoryIdentity
from ..ports import StateStorePort


class ShowStateUseCase:
    def __init__(self, *, state_store: StateStorePort) -> None:
        self._state_store = state_store

    def execute(self, repositories: Sequence[RepositoryIdentity] = ()) -> dict[str, str]:
        """Return persisted watermarks sorted by repository key."""
        state = self._state_store.load(repositories)
        return dict(sorted(state.items()))
