"""Controller routing host events into the Store and results back to the host."""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Callable, Deque, Dict, Iterable, Optional, Tuple

from excerpt_engine.ranges import EditDescription, FileKey
from excerpt_engine.runtime import telemetry
from excerpt_engine.store import Store, StoreUpdate

from .commands import CommandContext, CommandResult, run_command
from .protocols import HostCollaborator
from .render import TreeEntry, render_highlights, render_tree

LOGGER_NAME = "excerpt_engine.host"

EditBatch = Tuple[FileKey, Tuple[EditDescription, ...]]


class ControllerBus:
    """Minimal event bus letting hosts follow store changes and command results."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


class ExcerptController:
    """Single owner of event handling for one Store and one host.

    Events run to completion one at a time. Edit batches that arrive while an
    event is still being handled (for instance from inside ``set_highlight``)
    are queued and applied once the current event has finished.
    """

    def __init__(
        self,
        store: Store,
        host: HostCollaborator,
        *,
        root: Optional[Path | str] = None,
        bus: Optional[ControllerBus] = None,
    ) -> None:
        self.store = store
        self.host = host
        self.root = root
        self.bus = bus or ControllerBus()
        self._context = CommandContext(store=store, host=host)
        self._dispatching = False
        self._pending_edits: Deque[EditBatch] = deque()

    @property
    def dispatching(self) -> bool:
        return self._dispatching

    def execute(self, command: str, file_key: Optional[FileKey] = None) -> CommandResult:
        if self._dispatching:
            raise RuntimeError(f"Command '{command}' issued while another event is running")
        with telemetry.span(
            f"controller::{command}",
            logger_name=LOGGER_NAME,
            component="controller",
            metadata={"file": file_key or ""},
        ):
            self._dispatching = True
            try:
                result = run_command(self._context, command, file_key)
                if result.file_keys:
                    self._after_mutation(result.file_keys)
            finally:
                self._dispatching = False
        self._drain_pending()
        self.bus.emit("command.result", result)
        return result

    def on_edit(self, file_key: FileKey, edits: Iterable[EditDescription]) -> None:
        """Host notification that ``file_key`` changed; edits are in host order."""

        batch: EditBatch = (file_key, tuple(edits))
        if not batch[1]:
            return
        self._pending_edits.append(batch)
        if self._dispatching:
            telemetry.record_event(
                "controller.edit_deferred",
                level="debug",
                data={"file": file_key, "edits": len(batch[1])},
                logger_name=LOGGER_NAME,
            )
            return
        self._drain_pending()

    def on_document_opened(self, file_key: FileKey) -> None:
        """Refresh cached content and redraw highlights for a newly visible file."""

        if file_key not in self.store:
            return
        self._run(lambda: self.store.refresh_content(file_key))
        self.refresh_highlights([file_key])
        self._drain_pending()

    def refresh_highlights(self, file_keys: Optional[Iterable[FileKey]] = None) -> None:
        for instruction in render_highlights(self.store, file_keys):
            self.host.set_highlight(instruction.file_key, instruction.spans)

    def tree(self) -> Tuple[TreeEntry, ...]:
        return render_tree(self.store, self.root)

    def _drain_pending(self) -> None:
        while self._pending_edits and not self._dispatching:
            file_key, edits = self._pending_edits.popleft()
            self._run(lambda: self.store.apply_edit(file_key, edits))

    def _run(self, operation: Callable[[], StoreUpdate]) -> StoreUpdate:
        self._dispatching = True
        try:
            update = operation()
            if update.changed:
                self._after_mutation(update.file_keys)
            if update.warning is not None:
                self.bus.emit("store.warning", str(update.warning))
        finally:
            self._dispatching = False
        return update

    def _after_mutation(self, file_keys: Tuple[FileKey, ...]) -> None:
        self.refresh_highlights(file_keys)
        self.bus.emit("store.changed", file_keys)


__all__ = ["ControllerBus", "ExcerptController"]
