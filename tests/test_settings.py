from pathlib import Path

import pytest

from excerpt_engine.ranges import CollapsePolicy, SelectionPolicy
from excerpt_engine.runtime.settings import (
    EngineSettings,
    parse_collapse_policy,
    parse_selection_policy,
)

ENV_NAMES = (
    "EXCERPT_ENGINE_STORE_PATH",
    "EXCERPT_ENGINE_SELECTION_POLICY",
    "EXCERPT_ENGINE_COLLAPSE_POLICY",
    "EXCERPT_ENGINE_INDENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    settings = EngineSettings.from_env()

    assert settings.store_path == Path("selections.json")
    assert settings.selection_policy is SelectionPolicy.REJECT
    assert settings.collapse_policy is CollapsePolicy.DROP
    assert settings.indent == 2


def test_environment_values_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXCERPT_ENGINE_STORE_PATH", "/tmp/marks.json")
    monkeypatch.setenv("EXCERPT_ENGINE_SELECTION_POLICY", "Toggle")
    monkeypatch.setenv("EXCERPT_ENGINE_COLLAPSE_POLICY", "clamp")
    monkeypatch.setenv("EXCERPT_ENGINE_INDENT", "4")

    settings = EngineSettings.from_env()

    assert settings.store_path == Path("/tmp/marks.json")
    assert settings.selection_policy is SelectionPolicy.TOGGLE
    assert settings.collapse_policy is CollapsePolicy.CLAMP
    assert settings.indent == 4


def test_overrides_win_and_none_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXCERPT_ENGINE_INDENT", "4")

    settings = EngineSettings.from_env(indent=0, store_path=None)

    assert settings.indent == 0
    assert settings.store_path == Path("selections.json")


def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXCERPT_ENGINE_INDENT", "wide")

    with pytest.raises(ValueError, match="EXCERPT_ENGINE_INDENT"):
        EngineSettings.from_env()
    with pytest.raises(ValueError, match="reject, toggle"):
        parse_selection_policy("merge")
    with pytest.raises(ValueError, match="drop, clamp"):
        parse_collapse_policy("shrink")
    with pytest.raises(ValueError):
        EngineSettings(indent=-1)
