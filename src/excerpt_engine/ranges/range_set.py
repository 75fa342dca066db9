"""Per-file ordered collection of non-overlapping line ranges."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

from .errors import OverlapError
from .models import LineRange, LineSpan


class RangeSet:
    """Ranges of one file, kept sorted ascending by ``start_line``.

    Every mutating call leaves the set free of overlaps, except bounds
    rewritten directly by :class:`~excerpt_engine.ranges.translator.EditTranslator`;
    callers restore the invariant with :meth:`normalize` afterwards.
    """

    __slots__ = ("_ranges",)

    def __init__(self, ranges: Iterable[LineRange] = ()) -> None:
        self._ranges: List[LineRange] = []
        for line_range in ranges:
            self.add(line_range.start_line, line_range.end_line, line_range.content)

    def __len__(self) -> int:
        return len(self._ranges)

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def __iter__(self) -> Iterator[LineRange]:
        return iter(tuple(self._ranges))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RangeSet):
            return NotImplemented
        return self._ranges == other._ranges

    def __repr__(self) -> str:
        return f"RangeSet({self.spans()!r})"

    @property
    def ranges(self) -> Tuple[LineRange, ...]:
        return tuple(self._ranges)

    def spans(self) -> Tuple[LineSpan, ...]:
        return tuple(line_range.span for line_range in self._ranges)

    def conflicts(self, start_line: int, end_line: int) -> List[LineRange]:
        return [r for r in self._ranges if r.overlaps(start_line, end_line)]

    def query(self, start_line: int, end_line: int) -> bool:
        """True when any stored range fully or partially intersects the probe."""

        return any(r.overlaps(start_line, end_line) for r in self._ranges)

    def find_exact(self, start_line: int, end_line: int) -> Optional[LineRange]:
        for line_range in self._ranges:
            if line_range.span == (start_line, end_line):
                return line_range
        return None

    def add(self, start_line: int, end_line: int, content: str = "") -> LineRange:
        conflicts = self.conflicts(start_line, end_line)
        if conflicts:
            raise OverlapError(start_line, end_line, conflicts)
        line_range = LineRange(start_line, end_line, content)
        self._ranges.append(line_range)
        self._sort()
        return line_range

    def toggle(
        self, start_line: int, end_line: int, content: str = ""
    ) -> Optional[LineRange]:
        """Remove an exact ``(start, end)`` match, otherwise ``add``.

        Returns the added range, or ``None`` when a match was removed.
        """

        existing = self.find_exact(start_line, end_line)
        if existing is not None:
            self.remove(existing)
            return None
        return self.add(start_line, end_line, content)

    def remove_overlapping(self, start_line: int, end_line: int) -> List[LineRange]:
        removed = self.conflicts(start_line, end_line)
        if removed:
            self._ranges = [
                r for r in self._ranges if not r.overlaps(start_line, end_line)
            ]
        return removed

    def remove(self, line_range: LineRange) -> None:
        for index, candidate in enumerate(self._ranges):
            if candidate is line_range:
                del self._ranges[index]
                return
        raise ValueError(f"{line_range!r} is not in this set")

    def clear(self) -> List[LineRange]:
        removed, self._ranges = self._ranges, []
        return removed

    def normalize(self) -> List[LineRange]:
        """Re-sort and merge ranges that overlap after their bounds were shifted.

        The earlier range absorbs the later one and keeps its own content until
        the caller refreshes it. Returns the ranges that absorbed another.
        """

        self._sort()
        merged: List[LineRange] = []
        grown: List[LineRange] = []
        for line_range in self._ranges:
            if merged and merged[-1].overlaps(line_range.start_line, line_range.end_line):
                previous = merged[-1]
                if line_range.end_line > previous.end_line:
                    previous.end_line = line_range.end_line
                if not any(previous is r for r in grown):
                    grown.append(previous)
                continue
            merged.append(line_range)
        self._ranges = merged
        return grown

    def _sort(self) -> None:
        self._ranges.sort(key=lambda line_range: line_range.start_line)


__all__ = ["RangeSet"]
