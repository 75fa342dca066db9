"""Pure functions turning Store state into render instructions for hosts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from excerpt_engine.ranges import FileKey, LineSpan
from excerpt_engine.store import Store


@dataclass(frozen=True, slots=True)
class HighlightInstruction:
    """Full highlight set for one file; empty ``spans`` clears the file."""

    file_key: FileKey
    spans: Tuple[LineSpan, ...]


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """One row of the touched-files view."""

    label: str
    file_key: FileKey
    range_count: int


def render_highlights(
    store: Store, file_keys: Optional[Iterable[FileKey]] = None
) -> Tuple[HighlightInstruction, ...]:
    keys = store.file_keys() if file_keys is None else tuple(dict.fromkeys(file_keys))
    instructions = []
    for file_key in keys:
        range_set = store.get(file_key)
        spans = range_set.spans() if range_set else ()
        instructions.append(HighlightInstruction(file_key=file_key, spans=spans))
    return tuple(instructions)


def relative_label(file_key: FileKey, root: Optional[Path | str] = None) -> str:
    """Path of ``file_key`` relative to ``root`` when inside it, else unchanged."""

    if root is None:
        return file_key
    try:
        return Path(file_key).relative_to(Path(root)).as_posix()
    except ValueError:
        return file_key


def render_tree(
    store: Store, root: Optional[Path | str] = None
) -> Tuple[TreeEntry, ...]:
    entries = []
    for file_key in store.file_keys():
        range_set = store.get(file_key)
        entries.append(
            TreeEntry(
                label=relative_label(file_key, root),
                file_key=file_key,
                range_count=len(range_set) if range_set else 0,
            )
        )
    return tuple(entries)


__all__ = [
    "HighlightInstruction",
    "TreeEntry",
    "relative_label",
    "render_highlights",
    "render_tree",
]
