"""Snapshot codec: JSON-compatible mapping <-> ``FileKey -> RangeSet``."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, MutableMapping, Tuple

from excerpt_engine.ranges import (
    FileKey,
    LineRange,
    MalformedSnapshotError,
    OverlapError,
    RangeSet,
)

Snapshot = Dict[str, List[Dict[str, Any]]]

START_KEY = "startLine"
END_KEY = "endLine"
CONTENT_KEY = "content"


def _require_int(entry: Mapping[str, Any], key: str, file_key: FileKey) -> int:
    value = entry.get(key)
    # bool is an int subclass but never a valid line number
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedSnapshotError(
            f"'{key}' must be an integer, got {value!r}", file_key=file_key, entry=entry
        )
    return value


def decode_range(file_key: FileKey, entry: Any) -> LineRange:
    """Decode one ``{startLine, endLine, content}`` object."""

    if not isinstance(entry, Mapping):
        raise MalformedSnapshotError(
            "range entry must be an object", file_key=file_key, entry=entry
        )
    start_line = _require_int(entry, START_KEY, file_key)
    end_line = _require_int(entry, END_KEY, file_key)
    content = entry.get(CONTENT_KEY, "")
    if not isinstance(content, str):
        raise MalformedSnapshotError(
            "'content' must be a string", file_key=file_key, entry=entry
        )
    try:
        return LineRange(start_line, end_line, content)
    except ValueError as exc:
        raise MalformedSnapshotError(str(exc), file_key=file_key, entry=entry) from exc


def decode_snapshot(
    snapshot: Any,
) -> Tuple[MutableMapping[FileKey, RangeSet], List[MalformedSnapshotError]]:
    """Decode a whole snapshot, skipping (and collecting) every bad entry."""

    files: Dict[FileKey, RangeSet] = {}
    problems: List[MalformedSnapshotError] = []
    if not isinstance(snapshot, Mapping):
        problems.append(
            MalformedSnapshotError("snapshot must be an object", entry=snapshot)
        )
        return files, problems

    for file_key, entries in snapshot.items():
        if not isinstance(file_key, str) or not file_key:
            problems.append(
                MalformedSnapshotError("file key must be a non-empty string", entry=file_key)
            )
            continue
        if not isinstance(entries, list):
            problems.append(
                MalformedSnapshotError(
                    "ranges must be a list", file_key=file_key, entry=entries
                )
            )
            continue

        range_set = RangeSet()
        for entry in entries:
            try:
                line_range = decode_range(file_key, entry)
                range_set.add(line_range.start_line, line_range.end_line, line_range.content)
            except MalformedSnapshotError as exc:
                problems.append(exc)
            except OverlapError as exc:
                problems.append(
                    MalformedSnapshotError(str(exc), file_key=file_key, entry=entry)
                )
        if range_set:
            files[file_key] = range_set
    return files, problems


def encode_snapshot(files: Mapping[FileKey, RangeSet]) -> Snapshot:
    """Mapping order is kept; ranges are written ascending by start line."""

    return {
        file_key: [
            line_range.to_dict()
            for line_range in sorted(range_set, key=lambda r: r.start_line)
        ]
        for file_key, range_set in files.items()
        if range_set
    }


__all__ = [
    "Snapshot",
    "decode_range",
    "decode_snapshot",
    "encode_snapshot",
]
