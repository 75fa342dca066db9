"""Error taxonomy for the range engine. None of these is fatal."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from .models import FileKey, LineRange


class ExcerptEngineError(RuntimeError):
    """Base class for every recoverable engine error."""


class OverlapError(ExcerptEngineError):
    """Raised when an added range intersects ranges already in the set."""

    def __init__(self, start_line: int, end_line: int, conflicts: Iterable[LineRange]):
        conflicts_tuple = tuple(conflicts)
        spans = [conflict.span for conflict in conflicts_tuple]
        super().__init__(
            f"Range ({start_line}, {end_line}) overlaps existing ranges {spans}"
        )
        self.start_line = start_line
        self.end_line = end_line
        self.conflicts = conflicts_tuple


class NotFoundError(ExcerptEngineError):
    """Raised when an unselect/remove targets nothing; callers treat it as a no-op."""

    def __init__(self, message: str, *, file_key: Optional[FileKey] = None) -> None:
        super().__init__(message)
        self.file_key = file_key


class PersistenceError(ExcerptEngineError):
    """Raised when the snapshot cannot be read from or written to storage."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class MalformedSnapshotError(ExcerptEngineError):
    """Raised for a single snapshot entry that cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        file_key: Optional[FileKey] = None,
        entry: Any = None,
    ) -> None:
        super().__init__(message)
        self.file_key = file_key
        self.entry = entry


class DocumentUnavailableError(ExcerptEngineError):
    """Raised by hosts when a document or line span cannot be read right now."""

    def __init__(self, file_key: FileKey, message: str = "document is not readable"):
        super().__init__(f"{file_key}: {message}")
        self.file_key = file_key


__all__ = [
    "ExcerptEngineError",
    "DocumentUnavailableError",
    "OverlapError",
    "NotFoundError",
    "PersistenceError",
    "MalformedSnapshotError",
]
