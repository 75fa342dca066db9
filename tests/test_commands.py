from excerpt_engine.host import (
    CLEAR_FILE_SELECTIONS,
    COLLECT_AND_COPY,
    SELECT_RANGE,
    UNSELECT_ALL_IN_FILE,
    UNSELECT_RANGE,
    UNSELECT_SPECIFIC_FILE,
    CommandContext,
    available_commands,
    run_command,
)
from excerpt_engine.ranges import PersistenceError, SelectionPolicy
from excerpt_engine.store import MemoryStorage, Store

from conftest import FakeHost


class FailingStorage(MemoryStorage):
    def save(self, snapshot) -> None:
        raise PersistenceError("read-only filesystem")


def make_context(host: FakeHost, **options) -> CommandContext:
    store = Store(storage=MemoryStorage(), text_source=host, **options)
    return CommandContext(store=store, host=host)


def test_command_surface_lists_every_command() -> None:
    assert set(available_commands()) == {
        SELECT_RANGE,
        UNSELECT_RANGE,
        UNSELECT_ALL_IN_FILE,
        UNSELECT_SPECIFIC_FILE,
        CLEAR_FILE_SELECTIONS,
        COLLECT_AND_COPY,
    }


def test_unknown_command_fails() -> None:
    result = run_command(make_context(FakeHost()), "explode")

    assert result.ok is False
    assert result.status == "command_unknown"


def test_select_range_uses_active_selection(host: FakeHost) -> None:
    context = make_context(host)
    host.select("/work/a.py", 2, 4)

    result = run_command(context, SELECT_RANGE)

    assert result.ok is True
    assert result.status == "selected"
    assert result.file_keys == ("/work/a.py",)
    assert context.store.get("/work/a.py").ranges[0].content == "a 2\na 3\na 4"


def test_select_range_without_editor_fails(host: FakeHost) -> None:
    result = run_command(make_context(host), SELECT_RANGE)

    assert result.ok is False
    assert result.message == "No active editor"


def test_select_overlapping_range_reports_message(host: FakeHost) -> None:
    context = make_context(host)
    host.select("/work/a.py", 2, 4)
    run_command(context, SELECT_RANGE)
    host.select("/work/a.py", 4, 8)

    result = run_command(context, SELECT_RANGE)

    assert result.ok is False
    assert result.status == "overlap"
    assert result.message == "This range or part of it is already selected."
    assert context.store.get("/work/a.py").spans() == ((2, 4),)


def test_select_range_toggles_under_toggle_policy(host: FakeHost) -> None:
    context = make_context(host, selection_policy=SelectionPolicy.TOGGLE)
    host.select("/work/a.py", 2, 4)
    run_command(context, SELECT_RANGE)

    result = run_command(context, SELECT_RANGE)

    assert result.ok is True
    assert result.status == "unselected"
    assert "/work/a.py" not in context.store


def test_unselect_range_reports_missing_file_and_missing_range(host: FakeHost) -> None:
    context = make_context(host)
    host.select("/work/a.py", 0, 0)

    missing_file = run_command(context, UNSELECT_RANGE)
    run_command(context, SELECT_RANGE)
    host.select("/work/a.py", 5, 6)
    missing_range = run_command(context, UNSELECT_RANGE)

    assert missing_file.ok is False
    assert missing_file.message == "No selections for this file"
    assert missing_range.ok is False
    assert missing_range.status == "not_found"
    assert context.store.get("/work/a.py").spans() == ((0, 0),)


def test_unselect_range_removes_overlapped_ranges(host: FakeHost) -> None:
    context = make_context(host)
    for start, end in [(0, 1), (3, 4), (8, 9)]:
        host.select("/work/a.py", start, end)
        run_command(context, SELECT_RANGE)
    host.select("/work/a.py", 1, 3)

    result = run_command(context, UNSELECT_RANGE)

    assert result.ok is True
    assert result.message == "Removed 2 selection(s)"
    assert context.store.get("/work/a.py").spans() == ((8, 9),)


def test_unselect_all_in_file_defaults_to_active_file(host: FakeHost) -> None:
    context = make_context(host)
    host.select("/work/b.py", 1, 2)
    run_command(context, SELECT_RANGE)

    result = run_command(context, UNSELECT_ALL_IN_FILE)
    again = run_command(context, UNSELECT_ALL_IN_FILE)

    assert result.ok is True
    assert result.file_keys == ("/work/b.py",)
    assert again.ok is False
    assert again.message == "No selections for this file"


def test_unselect_specific_file_requires_a_file(host: FakeHost) -> None:
    context = make_context(host)

    result = run_command(context, UNSELECT_SPECIFIC_FILE)

    assert result.ok is False
    assert result.status == "missing_file"


def test_clear_file_selections_messages(host: FakeHost) -> None:
    context = make_context(host)
    host.select("/work/a.py", 1, 1)
    run_command(context, SELECT_RANGE)

    cleared = run_command(context, CLEAR_FILE_SELECTIONS, "/work/a.py")
    missing = run_command(context, CLEAR_FILE_SELECTIONS, "/work/a.py")

    assert cleared.message == "Selections cleared for file: /work/a.py"
    assert missing.ok is False
    assert missing.message == "No selections found for file: /work/a.py"


def test_collect_and_copy_writes_ordered_excerpt_to_clipboard(host: FakeHost) -> None:
    context = make_context(host)
    for file_key, start, end in [
        ("/work/a.py", 5, 6),
        ("/work/b.py", 0, 0),
        ("/work/a.py", 1, 1),
    ]:
        host.select(file_key, start, end)
        run_command(context, SELECT_RANGE)

    result = run_command(context, COLLECT_AND_COPY)

    assert result.ok is True
    assert host.clipboard == ["a 1\na 5\na 6\nb 0"]
    assert result.payload == "a 1\na 5\na 6\nb 0"


def test_collect_and_copy_falls_back_to_cached_content(host: FakeHost) -> None:
    context = make_context(host)
    host.select("/work/b.py", 3, 3)
    run_command(context, SELECT_RANGE)
    host.close("/work/b.py")

    run_command(context, COLLECT_AND_COPY)

    assert host.clipboard == ["b 3"]


def test_collect_and_copy_with_nothing_selected_fails(host: FakeHost) -> None:
    result = run_command(make_context(host), COLLECT_AND_COPY)

    assert result.ok is False
    assert host.clipboard == []


def test_persist_failure_is_reported_as_warning(host: FakeHost) -> None:
    store = Store(storage=FailingStorage(), text_source=host)
    context = CommandContext(store=store, host=host)
    host.select("/work/a.py", 0, 0)

    result = run_command(context, SELECT_RANGE)

    assert result.ok is True
    assert result.status == "persist_warning"
    assert "read-only filesystem" in (result.message or "")
    assert store.get("/work/a.py").spans() == ((0, 0),)
