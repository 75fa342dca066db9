"""Adapter boundary types for hosts that embed the engine."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from excerpt_engine.ranges import DocumentUnavailableError, FileKey, LineSpan, TextSource

SelectionSpan = Tuple[FileKey, int, int]  # (file, start_line, end_line)


class HostCollaborator(Protocol):
    """Everything the engine needs from the editor that hosts it."""

    def get_active_selection_span(self) -> Optional[SelectionSpan]:
        """Return the focused file and its selected lines, or ``None`` without an editor."""
        ...

    def get_text(self, file_key: FileKey, start_line: int, end_line: int) -> Optional[str]:
        """Return the live text of the lines, or ``None``/raise
        ``DocumentUnavailableError`` when the file is not readable."""
        ...

    def set_highlight(self, file_key: FileKey, spans: Sequence[LineSpan]) -> None:
        """Replace every highlight drawn for ``file_key``."""
        ...

    def write_clipboard(self, text: str) -> None:
        ...


__all__ = [
    "DocumentUnavailableError",
    "HostCollaborator",
    "SelectionSpan",
    "TextSource",
]
