"""Executable Textual app that hosts the excerpt engine."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when the app is run
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, Vertical
    from textual.widgets import Footer, Header, Static, TextArea, Tree
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use excerpt_engine.adapters.textual.app"
    ) from exc

from excerpt_engine.host import (
    CLEAR_FILE_SELECTIONS,
    COLLECT_AND_COPY,
    SELECT_RANGE,
    UNSELECT_ALL_IN_FILE,
    UNSELECT_RANGE,
    ExcerptController,
    TreeEntry,
)
from excerpt_engine.ranges import FileKey, LineSpan
from excerpt_engine.runtime import telemetry
from excerpt_engine.runtime.settings import (
    EngineSettings,
    parse_collapse_policy,
    parse_selection_policy,
)
from excerpt_engine.store import build_store

from .controller import TextualExcerptAdapter, TextualUIHooks


def _read_file(file_key: FileKey) -> str:
    return Path(file_key).read_text(encoding="utf-8")


def _format_spans(spans: Sequence[LineSpan]) -> str:
    if not spans:
        return "No marked lines"
    return "Marked: " + ", ".join(f"{start + 1}-{end + 1}" for start, end in spans)


class ExcerptApp(App[None]):
    """Editor pane, marked-files tree and status line around one controller."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#selection-tree {
		width: 32;
		border: round $accent;
	}

	#editor {
		height: 1fr;
	}

	#highlight-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("f2", "select_range", "Select"),
        ("f3", "unselect_range", "Unselect"),
        ("f4", "unselect_all", "Clear file"),
        ("f5", "collect", "Copy excerpt"),
        ("f6", "next_file", "Next file"),
        ("f8", "clear_tree_file", "Clear tree file"),
    ]

    def __init__(
        self,
        paths: Sequence[Path],
        *,
        settings: Optional[EngineSettings] = None,
        root: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self._paths: List[FileKey] = [str(path.resolve()) for path in paths]
        self._settings = settings or EngineSettings.from_env()
        self._root = root or Path.cwd()
        self.adapter: TextualExcerptAdapter | None = None
        self.controller: ExcerptController | None = None
        self._editor: TextArea | None = None
        self._tree: Tree[str] | None = None
        self._highlight_widget: Static | None = None
        self._status_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal():
            self._tree = Tree("Selections", id="selection-tree")
            yield self._tree
            with Vertical():
                self._editor = TextArea("", id="editor")
                yield self._editor
                self._highlight_widget = Static("", id="highlight-line")
                yield self._highlight_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        telemetry.configure(preset="quiet")
        hooks = TextualUIHooks(
            update_highlights=self._update_highlights,
            update_tree=self._update_tree,
            update_status=self._update_status,
            copy_to_clipboard=self.copy_to_clipboard,
        )
        self.adapter = TextualExcerptAdapter(hooks)
        store = build_store(self._settings, text_source=self.adapter)
        self.controller = ExcerptController(store, self.adapter, root=self._root)
        self.adapter.attach(self.controller)
        if self._paths:
            self._show_file(self._paths[0])
        else:
            self._update_status("Pass one or more files on the command line")

    # -- actions -------------------------------------------------------------

    def action_select_range(self) -> None:
        self._run(SELECT_RANGE)

    def action_unselect_range(self) -> None:
        self._run(UNSELECT_RANGE)

    def action_unselect_all(self) -> None:
        self._run(UNSELECT_ALL_IN_FILE)

    def action_collect(self) -> None:
        self._run(COLLECT_AND_COPY)

    def action_clear_tree_file(self) -> None:
        if self._tree is None or self._tree.cursor_node is None:
            return
        file_key = self._tree.cursor_node.data
        if file_key:
            self._run(CLEAR_FILE_SELECTIONS, file_key)

    def action_next_file(self) -> None:
        if not self._paths or self.adapter is None:
            return
        current = self.adapter.active_file
        index = self._paths.index(current) + 1 if current in self._paths else 0
        self._show_file(self._paths[index % len(self._paths)])

    # -- widget events -------------------------------------------------------

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.adapter is None or self.adapter.active_file is None:
            return
        self.adapter.handle_text_change(self.adapter.active_file, event.text_area.text)

    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if self.adapter is None:
            return
        start_row = event.selection.start[0]
        end_row = event.selection.end[0]
        self.adapter.set_selection(start_row, end_row)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        file_key = event.node.data
        if file_key:
            self._show_file(file_key)

    # -- hooks ---------------------------------------------------------------

    def _run(self, command: str, file_key: Optional[FileKey] = None) -> None:
        if self.adapter is not None:
            self.adapter.run_command(command, file_key)

    def _show_file(self, file_key: FileKey) -> None:
        if self.adapter is None or self._editor is None:
            return
        try:
            text = self.adapter.show(file_key, _read_file)
        except (OSError, UnicodeDecodeError) as exc:
            self._update_status(f"Cannot open {file_key}: {exc}")
            return
        if file_key not in self._paths:
            self._paths.append(file_key)
        self._editor.load_text(text)
        self.sub_title = file_key

    def _update_highlights(self, file_key: FileKey, spans: Tuple[LineSpan, ...]) -> None:
        del file_key
        if self._highlight_widget:
            self._highlight_widget.update(_format_spans(spans))

    def _update_tree(self, entries: Tuple[TreeEntry, ...]) -> None:
        if self._tree is None:
            return
        self._tree.clear()
        for entry in entries:
            self._tree.root.add_leaf(
                f"{entry.label} ({entry.range_count})", data=entry.file_key
            )
        self._tree.root.expand()

    def _update_status(self, status: str) -> None:
        if self._status_widget:
            self._status_widget.update(status)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mark line ranges across files and copy them as one excerpt."
    )
    parser.add_argument("paths", nargs="*", type=Path, help="Files to open")
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Selections file (default: $EXCERPT_ENGINE_STORE_PATH or selections.json)",
    )
    parser.add_argument(
        "--selection-policy",
        type=parse_selection_policy,
        default=None,
        help="reject (overlap-rejecting add) or toggle (exact-match toggle)",
    )
    parser.add_argument(
        "--collapse-policy",
        type=parse_collapse_policy,
        default=None,
        help="drop or clamp ranges collapsed by an edit",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path(os.environ.get("EXCERPT_ENGINE_ROOT", os.getcwd())),
        help="Directory tree labels are shown relative to",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    settings = EngineSettings.from_env(
        store_path=args.store,
        selection_policy=args.selection_policy,
        collapse_policy=args.collapse_policy,
    )
    app = ExcerptApp(args.paths, settings=settings, root=args.root)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
