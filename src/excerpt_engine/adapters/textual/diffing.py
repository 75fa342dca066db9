"""Turn before/after document text into line-granular edit descriptions."""

from __future__ import annotations

import difflib
from typing import List, Sequence

from excerpt_engine.ranges import EditDescription


def split_lines(text: str) -> List[str]:
    """Lines as an editor shows them; a trailing newline yields a final empty line."""

    return text.split("\n")


def line_edits(old_lines: Sequence[str], new_lines: Sequence[str]) -> List[EditDescription]:
    """Edits that turn ``old_lines`` into ``new_lines``, in application order.

    Each edit is expressed against the document after the previous edits,
    which is what ``Store.apply_edit`` expects. A pure insertion before line
    ``i`` becomes a replacement of line ``i`` by the new lines plus itself;
    lines appended after the last line touch no existing line and produce
    no edit.
    """

    matcher = difflib.SequenceMatcher(None, list(old_lines), list(new_lines), autojunk=False)
    edits: List[EditDescription] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        inserted = j2 - j1
        if tag == "insert":
            if i1 >= len(old_lines):
                continue
            edits.append(EditDescription(j1, j1, inserted + 1))
        else:
            edits.append(EditDescription(j1, j1 + (i2 - i1) - 1, inserted))
    return edits


__all__ = ["line_edits", "split_lines"]
