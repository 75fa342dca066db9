"""Authoritative in-memory mapping of files to their selected line ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
)

from excerpt_engine.ranges import (
    CollapsePolicy,
    EditDescription,
    EditTranslator,
    FileKey,
    LineRange,
    NotFoundError,
    OverlapError,
    PersistenceError,
    RangeSet,
    SelectionPolicy,
    TextSnapshotCache,
    TextSource,
)
from excerpt_engine.runtime import telemetry
from excerpt_engine.runtime.settings import EngineSettings

from .snapshot import Snapshot, decode_snapshot, encode_snapshot
from .storage import JsonFileStorage, SnapshotStorage

LOGGER_NAME = "excerpt_engine.store"

REFUSALS = (OverlapError, NotFoundError)


@dataclass(slots=True)
class StoreUpdate:
    """Outcome of one mutating Store call."""

    file_keys: Tuple[FileKey, ...]
    changed: bool = True
    added: Optional[LineRange] = None
    removed: Tuple[LineRange, ...] = ()
    dropped: Tuple[LineRange, ...] = ()
    warning: Optional[PersistenceError] = None


class Store:
    """Owns every ``FileKey -> RangeSet`` entry and writes through on each mutation.

    Files whose set becomes empty are removed rather than kept as empty
    entries. File order is insertion order; ranges inside a file are always
    ascending by start line.
    """

    def __init__(
        self,
        *,
        storage: Optional[SnapshotStorage] = None,
        text_source: Optional[TextSource] = None,
        selection_policy: SelectionPolicy = SelectionPolicy.REJECT,
        collapse_policy: CollapsePolicy = CollapsePolicy.DROP,
    ) -> None:
        self._files: Dict[FileKey, RangeSet] = {}
        self.storage = storage
        self.cache = TextSnapshotCache(text_source)
        self.translator = EditTranslator(collapse_policy=collapse_policy)
        self.selection_policy = selection_policy
        self.last_persist_error: Optional[PersistenceError] = None

    # -- lifecycle ---------------------------------------------------------

    @classmethod
    def hydrate(cls, snapshot: Any, **options: Any) -> "Store":
        """Build a store from a persisted snapshot, skipping malformed entries."""

        store = cls(**options)
        with telemetry.span(
            "store::hydrate", logger_name=LOGGER_NAME, component="store"
        ) as handle:
            files, problems = decode_snapshot(snapshot)
            for problem in problems:
                telemetry.record_event(
                    "store.malformed_entry",
                    level="warning",
                    data={
                        "file": problem.file_key or "?",
                        "entry": problem.entry,
                        "reason": str(problem),
                    },
                    logger_name=LOGGER_NAME,
                )
            handle.add_metadata("files", len(files))
            handle.add_metadata("skipped", len(problems))
        store._files.update(files)
        return store

    @classmethod
    def open(cls, storage: SnapshotStorage, **options: Any) -> "Store":
        """Hydrate from ``storage``; an unreadable store starts empty."""

        try:
            snapshot = storage.load()
        except PersistenceError as exc:
            telemetry.record_event(
                "store.load_failed",
                level="warning",
                data={"path": exc.path or "?", "reason": str(exc)},
                logger_name=LOGGER_NAME,
            )
            snapshot = None
        if snapshot is None:
            return cls(storage=storage, **options)
        return cls.hydrate(snapshot, storage=storage, **options)

    def snapshot(self) -> Snapshot:
        return encode_snapshot(self._files)

    def persist(self) -> Snapshot:
        """Write the full current state to storage and return the snapshot.

        A failed write is recorded in ``last_persist_error`` and logged; the
        in-memory state stays authoritative.
        """

        snapshot = self.snapshot()
        self.last_persist_error = None
        if self.storage is None:
            return snapshot
        try:
            self.storage.save(snapshot)
        except PersistenceError as exc:
            self.last_persist_error = exc
            telemetry.record_event(
                "store.persist_failed",
                level="warning",
                data={"path": exc.path or "?", "reason": str(exc)},
                logger_name=LOGGER_NAME,
            )
        return snapshot

    # -- queries -----------------------------------------------------------

    def __contains__(self, file_key: object) -> bool:
        return file_key in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[FileKey]:
        return iter(tuple(self._files))

    def file_keys(self) -> Tuple[FileKey, ...]:
        return tuple(self._files)

    def get(self, file_key: FileKey) -> Optional[RangeSet]:
        return self._files.get(file_key)

    def query(self, file_key: FileKey, start_line: int, end_line: int) -> bool:
        range_set = self._files.get(file_key)
        return bool(range_set and range_set.query(start_line, end_line))

    def collect(self) -> List[Tuple[FileKey, str]]:
        """Cached content of every range: files in mapping order, ranges ascending."""

        collected: List[Tuple[FileKey, str]] = []
        for file_key, range_set in self._files.items():
            for line_range in sorted(range_set, key=lambda r: r.start_line):
                collected.append((file_key, line_range.content))
        return collected

    # -- mutations ---------------------------------------------------------

    def select(self, file_key: FileKey, line_range: LineRange) -> StoreUpdate:
        """Add (or, under the toggle policy, toggle) ``line_range`` for ``file_key``.

        Raises ``OverlapError`` when the range intersects a stored one; the
        store is left untouched in that case.
        """

        with telemetry.span(
            "store::select",
            logger_name=LOGGER_NAME,
            component="store",
            expected=REFUSALS,
            metadata={"file": file_key, "span": line_range.span},
        ):
            range_set = self._files.get(file_key) or RangeSet()
            start, end = line_range.span
            if self.selection_policy is SelectionPolicy.TOGGLE:
                existing = range_set.find_exact(start, end)
                added = range_set.toggle(start, end, line_range.content)
                removed: Tuple[LineRange, ...] = (existing,) if existing else ()
            else:
                added = range_set.add(start, end, line_range.content)
                removed = ()

            if added is not None:
                self.cache.refresh(file_key, [added])
            self._store_or_prune(file_key, range_set)
            return StoreUpdate(
                file_keys=(file_key,),
                added=added,
                removed=removed,
                warning=self._write_through(),
            )

    def unselect(self, file_key: FileKey, start_line: int, end_line: int) -> StoreUpdate:
        """Remove every range intersecting ``[start_line, end_line]``."""

        with telemetry.span(
            "store::unselect",
            logger_name=LOGGER_NAME,
            component="store",
            expected=REFUSALS,
            metadata={"file": file_key, "span": (start_line, end_line)},
        ):
            range_set = self._require(file_key)
            removed = range_set.remove_overlapping(start_line, end_line)
            if not removed:
                raise NotFoundError(
                    f"No selection intersects lines {start_line}-{end_line}",
                    file_key=file_key,
                )
            self._store_or_prune(file_key, range_set)
            return StoreUpdate(
                file_keys=(file_key,),
                removed=tuple(removed),
                warning=self._write_through(),
            )

    def unselect_all(self, file_key: FileKey) -> StoreUpdate:
        with telemetry.span(
            "store::unselect_all",
            logger_name=LOGGER_NAME,
            component="store",
            expected=REFUSALS,
            metadata={"file": file_key},
        ):
            range_set = self._require(file_key)
            removed = range_set.clear()
            self._store_or_prune(file_key, range_set)
            return StoreUpdate(
                file_keys=(file_key,),
                removed=tuple(removed),
                warning=self._write_through(),
            )

    def remove_file(self, file_key: FileKey) -> StoreUpdate:
        with telemetry.span(
            "store::remove_file",
            logger_name=LOGGER_NAME,
            component="store",
            expected=REFUSALS,
            metadata={"file": file_key},
        ):
            range_set = self._require(file_key)
            del self._files[file_key]
            return StoreUpdate(
                file_keys=(file_key,),
                removed=range_set.ranges,
                warning=self._write_through(),
            )

    def apply_edit(
        self, file_key: FileKey, edits: Iterable[EditDescription]
    ) -> StoreUpdate:
        """Translate the file's ranges through a batch of edits, in host order.

        Overlaps created by the batch are merged afterwards so the store keeps
        its invariant. Edits to files without selections are ignored.
        """

        range_set = self._files.get(file_key)
        if range_set is None:
            return StoreUpdate(file_keys=(), changed=False)

        with telemetry.span(
            "store::apply_edit",
            logger_name=LOGGER_NAME,
            component="store",
            metadata={"file": file_key},
        ) as handle:
            report = self.translator.translate_batch(range_set, edits)
            if not report.changed:
                return StoreUpdate(file_keys=(), changed=False)

            merged = range_set.normalize()
            handle.add_metadata("touched", len(report.touched))
            handle.add_metadata("dropped", len(report.dropped))
            handle.add_metadata("merged", len(merged))
            self.cache.refresh(file_key, range_set)
            self._store_or_prune(file_key, range_set)
            return StoreUpdate(
                file_keys=(file_key,),
                dropped=tuple(report.dropped),
                warning=self._write_through(),
            )

    def refresh_content(self, file_key: Optional[FileKey] = None) -> StoreUpdate:
        """Re-read cached content for one file (or every file) from the live source."""

        targets = self.file_keys() if file_key is None else (file_key,)
        changed: List[FileKey] = []
        for target in targets:
            range_set = self._files.get(target)
            if range_set is None:
                continue
            before = [line_range.content for line_range in range_set]
            self.cache.refresh(target, range_set)
            if before != [line_range.content for line_range in range_set]:
                changed.append(target)
        if not changed:
            return StoreUpdate(file_keys=(), changed=False)
        return StoreUpdate(file_keys=tuple(changed), warning=self._write_through())

    # -- helpers -----------------------------------------------------------

    def _require(self, file_key: FileKey) -> RangeSet:
        range_set = self._files.get(file_key)
        if not range_set:
            raise NotFoundError(f"No selections for {file_key}", file_key=file_key)
        return range_set

    def _store_or_prune(self, file_key: FileKey, range_set: RangeSet) -> None:
        if range_set:
            self._files.setdefault(file_key, range_set)
        else:
            self._files.pop(file_key, None)

    def _write_through(self) -> Optional[PersistenceError]:
        self.persist()
        return self.last_persist_error


def build_store(
    settings: Optional[EngineSettings] = None,
    *,
    text_source: Optional[TextSource] = None,
) -> Store:
    """Open the JSON-backed store described by ``settings`` (env defaults)."""

    settings = settings or EngineSettings.from_env()
    storage = JsonFileStorage(settings.store_path, indent=settings.indent)
    return Store.open(
        storage,
        text_source=text_source,
        selection_policy=settings.selection_policy,
        collapse_policy=settings.collapse_policy,
    )


__all__ = ["Store", "StoreUpdate", "build_store"]
