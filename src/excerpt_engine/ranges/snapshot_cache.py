"""Keeps each range's cached text in step with the live document."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from excerpt_engine.runtime import telemetry

from .errors import DocumentUnavailableError
from .models import FileKey, LineRange


class TextSource(Protocol):
    """Read access to live documents, supplied by the host."""

    def get_text(self, file_key: FileKey, start_line: int, end_line: int) -> Optional[str]:
        """Return lines ``start_line..end_line`` joined by newlines, or ``None``."""
        ...


class TextSnapshotCache:
    """Pure refresh of ``LineRange.content`` from a :class:`TextSource`.

    A failed read keeps whatever content was cached before, so ranges loaded
    from disk stay usable while their file is closed.
    """

    def __init__(self, source: Optional[TextSource] = None) -> None:
        self.source = source

    def read(self, file_key: FileKey, start_line: int, end_line: int) -> Optional[str]:
        if self.source is None:
            return None
        try:
            return self.source.get_text(file_key, start_line, end_line)
        except DocumentUnavailableError as exc:
            telemetry.record_event(
                "cache.read_unavailable",
                level="debug",
                data={"file": file_key, "reason": str(exc)},
            )
            return None

    def refresh(self, file_key: FileKey, ranges: Iterable[LineRange]) -> int:
        """Re-read every range; returns how many got fresh content."""

        refreshed = 0
        for line_range in ranges:
            text = self.read(file_key, line_range.start_line, line_range.end_line)
            if text is None:
                continue
            line_range.content = text
            refreshed += 1
        return refreshed


__all__ = ["TextSource", "TextSnapshotCache"]
