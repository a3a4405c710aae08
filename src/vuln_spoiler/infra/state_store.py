from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Mapping, Sequence

from ..core.domain.exceptions import ConfigurationError
from ..core.domain.models import RepositoryIdentity
from ..core.ports import LoggerPort


_COMMIT_ID = re.compile(r"[0-9a-fA-F]{7,64}")


class JsonStateStore:
    """Watermark state persisted as a flat JSON object.

    File format: ``{"owner/name": "<commit sha>", ...}``. A missing key means
    the repository was never processed.
    """

    def __init__(self, *, path: Path, logger: LoggerPort) -> None:
        self._path = path
        self._logger = logger

    @property
    def path(self) -> Path:
        return self._path

    def load(self, configured: Sequence[RepositoryIdentity]) -> dict[str, str]:
        """Load and validate the watermark mapping.

        Missing or unreadable storage yields an empty mapping. Entries with a
        malformed key or commit id are dropped. Well-formed entries for
        repositories that are not configured are kept so they survive the
        next save, but nothing reads them.
        """
        if not self._path.exists():
            self._logger.info("state_missing", type="state_missing", path=str(self._path))
            return {}

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._logger.warning(
                "state_unreadable",
                type="state_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return {}

        if not isinstance(data, dict):
            self._logger.warning(
                "state_unreadable",
                type="state_unreadable",
                path=str(self._path),
                error=f"expected a JSON object, got {type(data).__name__}",
            )
            return {}

        configured_keys = {repo.key for repo in configured}
        state: dict[str, str] = {}
        unconfigured: list[str] = []
        for key, value in data.items():
            if not _valid_key(key) or not isinstance(value, str) or not _COMMIT_ID.fullmatch(value):
                self._logger.warning(
                    "state_entry_rejected",
                    type="state_entry_rejected",
                    key=str(key),
                )
                continue
            if key not in configured_keys:
                unconfigured.append(key)
            state[key] = value

        if unconfigured:
            self._logger.debug(
                "state_unconfigured_entries",
                type="state_unconfigured_entries",
                keys=sorted(unconfigured),
            )
        return state

    def save(self, state: Mapping[str, str]) -> None:
        """Persist state atomically to avoid partial writes."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(dict(state), handle, indent=2, sort_keys=True)
                handle.write("\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise


def _valid_key(key: object) -> bool:
    if not isinstance(key, str):
        return False
    try:
        RepositoryIdentity.parse(key)
    except ConfigurationError:
        return False
    return True
