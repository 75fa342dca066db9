"""Commands exposed to the host's command surface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from excerpt_engine.ranges import (
    DocumentUnavailableError,
    FileKey,
    LineRange,
    NotFoundError,
    OverlapError,
)
from excerpt_engine.runtime import telemetry
from excerpt_engine.store import Store, StoreUpdate

from .protocols import HostCollaborator

SELECT_RANGE = "select-range"
UNSELECT_RANGE = "unselect-range"
UNSELECT_ALL_IN_FILE = "unselect-all-in-file"
UNSELECT_SPECIFIC_FILE = "unselect-specific-file"
CLEAR_FILE_SELECTIONS = "clear-file-selections"
COLLECT_AND_COPY = "collect-and-copy"

OVERLAP_MESSAGE = "This range or part of it is already selected."
NO_EDITOR_MESSAGE = "No active editor"
NO_SELECTIONS_MESSAGE = "No selections for this file"


@dataclass(slots=True)
class CommandResult:
    """Result returned to the host after running a command."""

    ok: bool
    status: str = "ok"
    message: Optional[str] = None
    file_keys: Tuple[FileKey, ...] = ()
    payload: object | None = None


@dataclass(slots=True)
class CommandContext:
    """Services every command handler can access."""

    store: Store
    host: HostCollaborator


CommandHandler = Callable[[CommandContext, Optional[FileKey]], CommandResult]


def run_command(
    context: CommandContext, name: str, file_key: Optional[FileKey] = None
) -> CommandResult:
    handler = _COMMAND_HANDLERS.get(name)
    if handler is None:
        return _failure("command_unknown", f"Unknown command '{name}'")
    result = handler(context, file_key)
    telemetry.record_event(
        "command.run",
        level="info" if result.ok else "warning",
        data={"command": name, "status": result.status},
    )
    return result


def available_commands() -> Tuple[str, ...]:
    return tuple(_COMMAND_HANDLERS)


def _failure(status: str, message: str) -> CommandResult:
    return CommandResult(ok=False, status=status, message=message)


def _success(
    update: StoreUpdate,
    status: str,
    message: Optional[str] = None,
    *,
    payload: object | None = None,
) -> CommandResult:
    if update.warning is not None:
        return CommandResult(
            ok=True,
            status="persist_warning",
            message=f"Selections could not be saved: {update.warning}",
            file_keys=update.file_keys,
            payload=payload,
        )
    return CommandResult(
        ok=True,
        status=status,
        message=message,
        file_keys=update.file_keys,
        payload=payload,
    )


def _read_text(context: CommandContext, file_key: FileKey, start: int, end: int) -> str:
    try:
        return context.host.get_text(file_key, start, end) or ""
    except DocumentUnavailableError:
        return ""


def _select_range(context: CommandContext, file_key: Optional[FileKey]) -> CommandResult:
    del file_key  # selection commands act on the host's active selection
    span = context.host.get_active_selection_span()
    if span is None:
        return _failure("no_editor", NO_EDITOR_MESSAGE)
    target, start, end = span
    content = _read_text(context, target, start, end)
    try:
        update = context.store.select(target, LineRange(start, end, content))
    except OverlapError:
        return _failure("overlap", OVERLAP_MESSAGE)
    if update.added is None:
        return _success(update, "unselected", f"Unselected lines {start + 1}-{end + 1}")
    return _success(
        update,
        "selected",
        f"Selected lines {start + 1}-{end + 1}",
        payload=update.added,
    )


def _unselect_range(context: CommandContext, file_key: Optional[FileKey]) -> CommandResult:
    del file_key
    span = context.host.get_active_selection_span()
    if span is None:
        return _failure("no_editor", NO_EDITOR_MESSAGE)
    target, start, end = span
    if target not in context.store:
        return _failure("not_found", NO_SELECTIONS_MESSAGE)
    try:
        update = context.store.unselect(target, start, end)
    except NotFoundError:
        return _failure("not_found", "No selection in these lines")
    return _success(update, "unselected", f"Removed {len(update.removed)} selection(s)")


def _unselect_all_in_file(
    context: CommandContext, file_key: Optional[FileKey]
) -> CommandResult:
    target = file_key
    if target is None:
        span = context.host.get_active_selection_span()
        if span is None:
            return _failure("no_editor", NO_EDITOR_MESSAGE)
        target = span[0]
    try:
        update = context.store.unselect_all(target)
    except NotFoundError:
        return _failure("not_found", NO_SELECTIONS_MESSAGE)
    return _success(update, "cleared")


def _unselect_specific_file(
    context: CommandContext, file_key: Optional[FileKey]
) -> CommandResult:
    if not file_key:
        return _failure("missing_file", "No file given")
    try:
        update = context.store.remove_file(file_key)
    except NotFoundError:
        return _failure("not_found", NO_SELECTIONS_MESSAGE)
    return _success(update, "cleared")


def _clear_file_selections(
    context: CommandContext, file_key: Optional[FileKey]
) -> CommandResult:
    if not file_key:
        return _failure("missing_file", "No file given")
    try:
        update = context.store.remove_file(file_key)
    except NotFoundError:
        return _failure("not_found", f"No selections found for file: {file_key}")
    return _success(update, "cleared", f"Selections cleared for file: {file_key}")


def _collect_and_copy(
    context: CommandContext, file_key: Optional[FileKey]
) -> CommandResult:
    del file_key
    update = context.store.refresh_content()
    collected = context.store.collect()
    if not collected:
        return _failure("empty", "Nothing is selected")
    text = "\n".join(content for _, content in collected).strip("\n")
    context.host.write_clipboard(text)
    return _success(
        update,
        "copied",
        f"Copied {len(collected)} selection(s)",
        payload=text,
    )


_COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    SELECT_RANGE: _select_range,
    UNSELECT_RANGE: _unselect_range,
    UNSELECT_ALL_IN_FILE: _unselect_all_in_file,
    UNSELECT_SPECIFIC_FILE: _unselect_specific_file,
    CLEAR_FILE_SELECTIONS: _clear_file_selections,
    COLLECT_AND_COPY: _collect_and_copy,
}


__all__ = [
    "CLEAR_FILE_SELECTIONS",
    "COLLECT_AND_COPY",
    "CommandContext",
    "CommandHandler",
    "CommandResult",
    "SELECT_RANGE",
    "UNSELECT_ALL_IN_FILE",
    "UNSELECT_RANGE",
    "UNSELECT_SPECIFIC_FILE",
    "available_commands",
    "run_command",
]
