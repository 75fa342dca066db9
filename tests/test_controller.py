from typing import List, Sequence, Tuple

import pytest

from excerpt_engine.host import (
    CLEAR_FILE_SELECTIONS,
    SELECT_RANGE,
    UNSELECT_RANGE,
    ExcerptController,
)
from excerpt_engine.ranges import EditDescription, LineRange, LineSpan
from excerpt_engine.store import MemoryStorage, Store

from conftest import FakeHost, numbered_lines


class ReentrantHost(FakeHost):
    """Host whose highlight refresh synchronously reports another edit."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.controller: ExcerptController | None = None
        self.edits_to_fire: List[Tuple[EditDescription, ...]] = []
        self.spans_during_callback: List[Tuple[LineSpan, ...]] = []

    def set_highlight(self, file_key: str, spans: Sequence[LineSpan]) -> None:
        super().set_highlight(file_key, spans)
        if self.controller is not None and self.edits_to_fire:
            self.controller.on_edit(file_key, self.edits_to_fire.pop(0))
            self.spans_during_callback.append(self.controller.store.get(file_key).spans())


def make_controller(host: FakeHost) -> ExcerptController:
    store = Store(storage=MemoryStorage(), text_source=host)
    return ExcerptController(store, host, root="/work")


def test_execute_refreshes_highlights_for_affected_file(host: FakeHost) -> None:
    controller = make_controller(host)
    host.select("/work/a.py", 3, 5)

    result = controller.execute(SELECT_RANGE)

    assert result.ok
    assert host.highlights == {"/work/a.py": ((3, 5),)}


def test_removed_file_gets_empty_highlight(host: FakeHost) -> None:
    controller = make_controller(host)
    host.select("/work/a.py", 3, 5)
    controller.execute(SELECT_RANGE)

    controller.execute(CLEAR_FILE_SELECTIONS, "/work/a.py")

    assert host.highlights["/work/a.py"] == ()


def test_failed_command_does_not_touch_highlights(host: FakeHost) -> None:
    controller = make_controller(host)
    host.select("/work/a.py", 3, 5)

    result = controller.execute(UNSELECT_RANGE)

    assert result.ok is False
    assert host.highlight_calls == []


def test_on_edit_translates_ranges_and_redraws(host: FakeHost) -> None:
    controller = make_controller(host)
    host.select("/work/a.py", 10, 20)
    controller.execute(SELECT_RANGE)

    controller.on_edit("/work/a.py", [EditDescription(0, 0, 3)])

    assert controller.store.get("/work/a.py").spans() == ((12, 22),)
    assert host.highlights["/work/a.py"] == ((12, 22),)
    assert controller.store.storage.snapshot["/work/a.py"][0]["startLine"] == 12


def test_edits_reported_during_dispatch_are_queued_not_recursive() -> None:
    host = ReentrantHost({"/f": numbered_lines(40)})
    controller = make_controller(host)
    host.controller = controller
    host.edits_to_fire.append((EditDescription(0, 0, 2),))
    host.select("/f", 10, 12)

    controller.execute(SELECT_RANGE)

    assert host.spans_during_callback == [((10, 12),)]
    assert controller.store.get("/f").spans() == ((11, 13),)
    assert host.highlights["/f"] == ((11, 13),)
    assert controller.dispatching is False


def test_command_issued_during_dispatch_is_refused(host: FakeHost) -> None:
    controller = make_controller(host)
    errors: List[Exception] = []

    def reenter(_payload: object) -> None:
        try:
            controller.execute(SELECT_RANGE)
        except RuntimeError as exc:
            errors.append(exc)

    controller.bus.subscribe("store.changed", reenter)
    host.select("/work/a.py", 0, 0)

    controller.execute(SELECT_RANGE)

    assert len(errors) == 1
    assert controller.store.get("/work/a.py").spans() == ((0, 0),)


def test_bus_reports_changes_and_results(host: FakeHost) -> None:
    controller = make_controller(host)
    changed: List[object] = []
    results: List[object] = []
    controller.bus.subscribe("store.changed", changed.append)
    controller.bus.subscribe("command.result", results.append)
    host.select("/work/b.py", 1, 1)

    controller.execute(SELECT_RANGE)
    controller.on_edit("/work/b.py", [EditDescription(0, 0, 2)])

    assert changed == [("/work/b.py",), ("/work/b.py",)]
    assert len(results) == 1


def test_document_opened_refreshes_content_and_highlights() -> None:
    host = FakeHost()
    store = Store.hydrate(
        {"/work/a.py": [{"startLine": 1, "endLine": 1, "content": "old"}]},
        storage=MemoryStorage(),
        text_source=host,
    )
    controller = ExcerptController(store, host)

    host.open("/work/a.py", "zero\nfresh\ntwo")
    controller.on_document_opened("/work/a.py")

    assert store.get("/work/a.py").ranges[0] == LineRange(1, 1, "fresh")
    assert host.highlights == {"/work/a.py": ((1, 1),)}
    assert store.storage.snapshot["/work/a.py"][0]["content"] == "fresh"


def test_tree_labels_are_relative_to_root(host: FakeHost) -> None:
    controller = make_controller(host)
    host.select("/work/a.py", 0, 0)
    controller.execute(SELECT_RANGE)
    host.select("/elsewhere/c.py", 0, 0)
    controller.execute(SELECT_RANGE)

    labels = [(entry.label, entry.range_count) for entry in controller.tree()]

    assert labels == [("a.py", 1), ("/elsewhere/c.py", 1)]


def test_empty_edit_batch_is_ignored(host: FakeHost) -> None:
    controller = make_controller(host)

    controller.on_edit("/work/a.py", [])

    assert host.highlight_calls == []


@pytest.mark.parametrize("file_key", ["/work/a.py", "/never-selected.py"])
def test_edit_to_file_without_selections_does_nothing(
    host: FakeHost, file_key: str
) -> None:
    controller = make_controller(host)

    controller.on_edit(file_key, [EditDescription(0, 0, 5)])

    assert host.highlight_calls == []
    assert controller.store.storage.save_count == 0
