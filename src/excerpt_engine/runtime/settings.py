"""Environment-driven engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from excerpt_engine.ranges.models import CollapsePolicy, SelectionPolicy

from .telemetry import ENV_PREFIX

DEFAULT_STORE_FILE = "selections.json"
DEFAULT_INDENT = 2


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_int(name: str, fallback: int) -> int:
    raw = _env(name)
    if raw is None:
        return fallback
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def parse_selection_policy(value: str) -> SelectionPolicy:
    try:
        return SelectionPolicy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in SelectionPolicy)
        raise ValueError(
            f"Unknown selection policy '{value}' (expected one of: {choices})"
        ) from exc


def parse_collapse_policy(value: str) -> CollapsePolicy:
    try:
        return CollapsePolicy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in CollapsePolicy)
        raise ValueError(
            f"Unknown collapse policy '{value}' (expected one of: {choices})"
        ) from exc


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Deployment-level choices for one engine instance."""

    store_path: Path = Path(DEFAULT_STORE_FILE)
    selection_policy: SelectionPolicy = SelectionPolicy.REJECT
    collapse_policy: CollapsePolicy = CollapsePolicy.DROP
    indent: int = DEFAULT_INDENT

    def __post_init__(self) -> None:
        if self.indent < 0:
            raise ValueError("indent cannot be negative")

    @classmethod
    def from_env(cls, **overrides: object) -> "EngineSettings":
        """Read ``EXCERPT_ENGINE_*`` variables; keyword overrides win."""

        values: dict[str, object] = {
            "store_path": Path(_env("STORE_PATH") or DEFAULT_STORE_FILE),
            "selection_policy": parse_selection_policy(
                _env("SELECTION_POLICY") or SelectionPolicy.REJECT.value
            ),
            "collapse_policy": parse_collapse_policy(
                _env("COLLAPSE_POLICY") or CollapsePolicy.DROP.value
            ),
            "indent": _env_int("INDENT", DEFAULT_INDENT),
        }
        values.update({key: val for key, val in overrides.items() if val is not None})
        return cls(**values)  # type: ignore[arg-type]


__all__ = [
    "EngineSettings",
    "DEFAULT_STORE_FILE",
    "parse_selection_policy",
    "parse_collapse_policy",
]
