"""Rewrite stored range bounds in response to line-level edits."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from .models import CollapsePolicy, EditDescription, LineRange
from .range_set import RangeSet


@dataclass(slots=True)
class TranslationReport:
    """Ranges whose bounds moved and ranges removed as collapsed."""

    touched: List[LineRange] = field(default_factory=list)
    dropped: List[LineRange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.touched or self.dropped)

    def merge(self, other: "TranslationReport") -> None:
        known = {id(r) for r in self.touched}
        self.touched.extend(r for r in other.touched if id(r) not in known)
        self.dropped.extend(other.dropped)
        gone = {id(r) for r in other.dropped}
        self.touched = [r for r in self.touched if id(r) not in gone]


class EditTranslator:
    """Shifts every range of one file so it keeps tracking the same lines.

    The translator only moves bounds. It never re-reads the document and it
    does not restore the non-overlap invariant; see ``RangeSet.normalize``.
    """

    def __init__(self, *, collapse_policy: CollapsePolicy = CollapsePolicy.DROP) -> None:
        self.collapse_policy = collapse_policy

    def translate(self, range_set: RangeSet, edit: EditDescription) -> TranslationReport:
        report = TranslationReport()
        delta = edit.delta
        for line_range in range_set:
            if line_range.end_line < edit.changed_start_line:
                continue
            collapsed = self._translate_range(line_range, edit, delta)
            if collapsed and self.collapse_policy is CollapsePolicy.DROP:
                range_set.remove(line_range)
                report.dropped.append(line_range)
            else:
                report.touched.append(line_range)
        return report

    def translate_batch(
        self, range_set: RangeSet, edits: Iterable[EditDescription]
    ) -> TranslationReport:
        """Apply edits in host order; each one sees the previous edit's result."""

        report = TranslationReport()
        for edit in edits:
            report.merge(self.translate(range_set, edit))
        return report

    @staticmethod
    def _translate_range(
        line_range: LineRange, edit: EditDescription, delta: int
    ) -> bool:
        """Move ``line_range`` in place. Returns True when it collapsed."""

        if line_range.start_line > edit.changed_end_line:
            line_range.start_line += delta
            line_range.end_line += delta
            return False
        if line_range.end_line < edit.changed_start_line:
            return False
        if (
            edit.inserted_line_count == 0
            and edit.changed_start_line <= line_range.start_line
            and edit.changed_end_line >= line_range.end_line
        ):
            # every line of the range was deleted
            line_range.start_line = line_range.end_line = edit.changed_start_line
            return True

        if edit.changed_start_line <= line_range.start_line:
            line_range.start_line = max(0, line_range.start_line + delta)
        raw_end = line_range.end_line + delta
        line_range.end_line = max(line_range.start_line, raw_end)
        return raw_end < line_range.start_line


__all__ = ["EditTranslator", "TranslationReport"]
