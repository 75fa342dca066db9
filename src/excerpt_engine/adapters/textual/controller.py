"""In-memory host that bridges Textual widgets and the ExcerptController."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from excerpt_engine.host import (
    CommandResult,
    ExcerptController,
    SelectionSpan,
    TreeEntry,
)
from excerpt_engine.ranges import DocumentUnavailableError, FileKey, LineSpan

from .diffing import line_edits, split_lines


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_highlights: Callable[[FileKey, Tuple[LineSpan, ...]], None] = _noop
    update_tree: Callable[[Tuple[TreeEntry, ...]], None] = _noop
    update_status: Callable[[str], None] = _noop
    copy_to_clipboard: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


class TextualExcerptAdapter:
    """Host collaborator backed by the documents a Textual app has open.

    The app reports whole-text changes; the adapter diffs them against the
    last known lines and forwards line edits to the controller.
    """

    def __init__(self, hooks: TextualUIHooks) -> None:
        self.hooks = hooks
        self.controller: Optional[ExcerptController] = None
        self._documents: Dict[FileKey, List[str]] = {}
        self._highlights: Dict[FileKey, Tuple[LineSpan, ...]] = {}
        self._active: Optional[FileKey] = None
        self._selection: Optional[LineSpan] = None

    def attach(self, controller: ExcerptController) -> None:
        self.controller = controller
        controller.bus.subscribe("store.changed", lambda _payload: self._refresh_tree())
        controller.bus.subscribe(
            "store.warning", lambda payload: self.hooks.update_status(str(payload))
        )
        self._refresh_tree()

    # -- host events ---------------------------------------------------------

    @property
    def active_file(self) -> Optional[FileKey]:
        return self._active

    def document_text(self, file_key: FileKey) -> Optional[str]:
        lines = self._documents.get(file_key)
        return None if lines is None else "\n".join(lines)

    def open_document(self, file_key: FileKey, text: str) -> None:
        self._documents[file_key] = split_lines(text)
        self.activate(file_key)
        if self.controller is not None:
            self.controller.on_document_opened(file_key)

    def show(self, file_key: FileKey, load: Callable[[FileKey], str]) -> str:
        """Activate ``file_key``, opening it with ``load`` first when it is not open.

        Returns the document text. Errors raised by ``load`` propagate and
        leave the open documents unchanged.
        """

        text = self.document_text(file_key)
        if text is None:
            text = load(file_key)
            self.open_document(file_key, text)
        else:
            self.activate(file_key)
        return text

    def close_document(self, file_key: FileKey) -> None:
        self._documents.pop(file_key, None)
        if self._active == file_key:
            self._active = None
            self._selection = None

    def activate(self, file_key: FileKey) -> None:
        if file_key not in self._documents:
            raise KeyError(f"Document '{file_key}' is not open")
        self._active = file_key
        self._selection = None
        self.hooks.update_highlights(file_key, self._highlights.get(file_key, ()))

    def set_selection(self, start_line: int, end_line: int) -> None:
        if start_line > end_line:
            start_line, end_line = end_line, start_line
        self._selection = (max(0, start_line), max(0, end_line))

    def handle_text_change(self, file_key: FileKey, text: str) -> None:
        new_lines = split_lines(text)
        old_lines = self._documents.get(file_key)
        self._documents[file_key] = new_lines
        if old_lines is None or old_lines == new_lines:
            return
        edits = line_edits(old_lines, new_lines)
        self._log("edit ->", file=file_key, edits=len(edits))
        if edits and self.controller is not None:
            self.controller.on_edit(file_key, edits)

    def run_command(self, command: str, file_key: Optional[FileKey] = None) -> CommandResult:
        if self.controller is None:
            raise RuntimeError("Adapter is not attached to a controller")
        self._log("command ->", command=command, file=file_key)
        result = self.controller.execute(command, file_key)
        self._log("result <-", ok=result.ok, status=result.status, message=result.message)
        if result.message:
            self.hooks.update_status(result.message)
        return result

    # -- HostCollaborator ----------------------------------------------------

    def get_active_selection_span(self) -> Optional[SelectionSpan]:
        if self._active is None or self._selection is None:
            return None
        start_line, end_line = self._selection
        return (self._active, start_line, end_line)

    def get_text(self, file_key: FileKey, start_line: int, end_line: int) -> Optional[str]:
        lines = self._documents.get(file_key)
        if lines is None:
            raise DocumentUnavailableError(file_key)
        if start_line >= len(lines):
            raise DocumentUnavailableError(file_key, "range is past the end of the document")
        return "\n".join(lines[start_line : end_line + 1])

    def set_highlight(self, file_key: FileKey, spans: Sequence[LineSpan]) -> None:
        self._highlights[file_key] = tuple(spans)
        if file_key == self._active:
            self.hooks.update_highlights(file_key, self._highlights[file_key])

    def highlights(self, file_key: FileKey) -> Tuple[LineSpan, ...]:
        return self._highlights.get(file_key, ())

    def write_clipboard(self, text: str) -> None:
        self.hooks.copy_to_clipboard(text)

    # -- helpers -------------------------------------------------------------

    def _refresh_tree(self) -> None:
        if self.controller is not None:
            self.hooks.update_tree(self.controller.tree())

    def _log(self, prefix: str, **fields: object) -> None:
        parts = [prefix]
        parts.extend(f"{key}={value!r}" for key, value in fields.items() if value is not None)
        self.hooks.log(" ".join(parts))


__all__ = ["TextualExcerptAdapter", "TextualUIHooks"]
