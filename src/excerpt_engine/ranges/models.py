"""Core value types for line-range tracking."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

FileKey = str  # absolute path of the tracked file
LineSpan = Tuple[int, int]  # inclusive (start_line, end_line)


class SelectionPolicy(str, Enum):
    """How ``select`` treats a span that touches existing ranges."""

    REJECT = "reject"  # overlap-rejecting add
    TOGGLE = "toggle"  # exact match removes, otherwise add


class CollapsePolicy(str, Enum):
    """What happens to a range whose end would fall below its start after an edit."""

    DROP = "drop"
    CLAMP = "clamp"


def spans_overlap(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Closed-interval intersection test shared by every range operation."""

    return start <= other_end and end >= other_start


@dataclass(slots=True)
class LineRange:
    """Inclusive, 0-indexed span of whole lines with a cached copy of its text.

    ``content`` may be stale; it is what gets reproduced when the file is not
    open in the host.
    """

    start_line: int
    end_line: int
    content: str = ""

    def __post_init__(self) -> None:
        _validate_span(self.start_line, self.end_line)

    @property
    def span(self) -> LineSpan:
        return (self.start_line, self.end_line)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def overlaps(self, start: int, end: int) -> bool:
        return spans_overlap(start, end, self.start_line, self.end_line)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startLine": self.start_line,
            "endLine": self.end_line,
            "content": self.content,
        }


@dataclass(frozen=True, slots=True)
class EditDescription:
    """Line-granular edit: ``[changed_start_line, changed_end_line]`` replaced
    by ``inserted_line_count`` lines."""

    changed_start_line: int
    changed_end_line: int
    inserted_line_count: int

    def __post_init__(self) -> None:
        _validate_span(self.changed_start_line, self.changed_end_line)
        if self.inserted_line_count < 0:
            raise ValueError("inserted_line_count cannot be negative")

    @property
    def replaced_line_count(self) -> int:
        return self.changed_end_line - self.changed_start_line + 1

    @property
    def delta(self) -> int:
        return self.inserted_line_count - self.replaced_line_count

    @classmethod
    def from_text(cls, start_line: int, end_line: int, text: str) -> "EditDescription":
        """Build an edit from replacement text, counting its lines like an editor does."""

        return cls(start_line, end_line, len(text.split("\n")))


def _validate_span(start: int, end: int) -> None:
    if start < 0:
        raise ValueError(f"start line must be non-negative, got {start}")
    if end < start:
        raise ValueError(f"end line {end} is before start line {start}")


__all__ = [
    "FileKey",
    "LineSpan",
    "LineRange",
    "EditDescription",
    "SelectionPolicy",
    "CollapsePolicy",
    "spans_overlap",
]
