from __future__ import annotations

from dataclasses import dataclass


TRUNCATION_MARKER = "\n\n... [diff truncated]"


@dataclass
class DiffResult:
    """Result of diff truncation with metadata."""
    text: str
    full_len: int
    included_len: int
    was_truncated: bool


class DiffService:
    """Domain service for bounding diff size before classification.

    Diffs longer than ``max_chars`` keep their head and get a marker appended.
    """

    def __init__(self, *, max_chars: int) -> None:
        self._max_chars = max_chars

    def truncate(self, diff: str) -> DiffResult:
        """Truncate a diff to the configured size.

        Args:
            diff: Raw unified diff text

        Returns:
            DiffResult with the (possibly truncated) text
        """
        if len(diff) <= self._max_chars:
            return DiffResult(
                text=diff,
                full_len=len(diff),
                included_len=len(diff),
                was_truncated=False,
            )

        text = diff[: self._max_chars] + TRUNCATION_MARKER
        return DiffResult(
            text=text,
            full_len=len(diff),
            included_len=len(text),
            was_truncated=True,
        )
