"""Durable homes for store snapshots."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from excerpt_engine.ranges import PersistenceError

from .snapshot import Snapshot


class SnapshotStorage(Protocol):
    """Where the Store reads its snapshot at startup and writes it after mutations."""

    def load(self) -> Optional[Any]:
        """Return the decoded snapshot, or ``None`` when nothing was saved yet."""
        ...

    def save(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot with ``snapshot`` in full."""
        ...


class JsonFileStorage:
    """Pretty-printed UTF-8 JSON file replaced atomically on every save."""

    def __init__(self, path: Path | str, *, indent: int = 2) -> None:
        self.path = Path(path)
        self.indent = indent

    def load(self) -> Optional[Any]:
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(
                f"Failed to read selections file: {exc}", path=str(self.path)
            ) from exc
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(
                f"Selections file is not valid JSON: {exc}", path=str(self.path)
            ) from exc

    def save(self, snapshot: Snapshot) -> None:
        payload = json.dumps(snapshot, indent=self.indent, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            descriptor, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as exc:
            raise PersistenceError(
                f"Failed to write selections file: {exc}", path=str(self.path)
            ) from exc
        try:
            with os.fdopen(descriptor, "w", encoding="utf-8", newline="") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, UnicodeError) as exc:
            raise PersistenceError(
                f"Failed to write selections file: {exc}", path=str(self.path)
            ) from exc
        finally:
            if os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass


class MemoryStorage:
    """Keeps the last saved snapshot in memory; embeds and tests use it."""

    def __init__(self, snapshot: Optional[Any] = None) -> None:
        self.snapshot = snapshot
        self.save_count = 0

    def load(self) -> Optional[Any]:
        return self.snapshot

    def save(self, snapshot: Snapshot) -> None:
        self.snapshot = json.loads(json.dumps(snapshot))
        self.save_count += 1


__all__ = ["SnapshotStorage", "JsonFileStorage", "MemoryStorage"]
