"""Structured logging for the excerpt engine, backed by telelog.

Store mutations, command outcomes and skipped snapshot entries are reported
here. Output is chosen once per process, either from ``EXCERPT_ENGINE_*``
environment variables or from one of the named presets:

``development``  debug level, coloured console
``production``   info level, buffered file output
``quiet``        warnings only, file output when a log file is configured;
                 used by hosts that own the terminal
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Tuple, Type, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "EXCERPT_ENGINE_"
DEFAULT_LOGGER_NAME = "excerpt_engine"
DEFAULT_PRODUCTION_LOG = "excerpt_engine.log"

Pairs = List[Tuple[str, str]]

_LOGGERS: MutableMapping[str, Any] = {}
_ACTIVE: Optional["TelemetrySettings"] = None
# values pushed per (logger, key); the last one is the live context
_CONTEXT: Dict[Tuple[int, str], List[str]] = {}


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class TelemetrySettings:
    """Where log records go and which ones are kept."""

    level: str = "INFO"
    console: bool = True
    color: bool = True
    json: bool = False
    log_file: str = ""
    buffered: bool = False
    buffer_size: int = 2048
    logger_name: str = DEFAULT_LOGGER_NAME

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        buffer_size = _env("LOG_BUFFER_SIZE")
        return cls(
            level=(_env("LOG_LEVEL") or "INFO").upper(),
            console=not _env_flag("DISABLE_CONSOLE", False),
            color=not _env_flag("NO_COLOR", False),
            json=_env_flag("LOG_JSON", False),
            log_file=_env("LOG_FILE") or "",
            buffered=_env_flag("LOG_BUFFERED", False),
            buffer_size=int(buffer_size) if buffer_size else 2048,
            logger_name=_env("LOGGER") or DEFAULT_LOGGER_NAME,
        )

    def to_config(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.color)
        config.with_json_format(self.json)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        return config


def preset_settings(preset: str) -> TelemetrySettings:
    """Environment settings adjusted for a named preset."""

    base = TelemetrySettings.from_env()
    key = preset.strip().lower()
    if key == "development":
        return replace(base, level="DEBUG", console=True, color=True, json=False)
    if key == "production":
        return replace(
            base,
            level="INFO",
            console=False,
            log_file=base.log_file or DEFAULT_PRODUCTION_LOG,
            buffered=True,
        )
    if key == "quiet":
        return replace(base, level="WARNING", console=False)
    raise ValueError(
        f"Unknown telemetry preset '{preset}' (expected development, production or quiet)"
    )


def configure(
    *,
    settings: Optional[TelemetrySettings] = None,
    preset: Optional[str] = None,
) -> TelemetrySettings:
    """Switch every logger of this package to new output settings.

    ``settings`` and ``preset`` are mutually exclusive; with neither, the
    environment is read again. Loggers handed out earlier are rebuilt on
    their next use.
    """

    global _ACTIVE
    if settings is not None and preset is not None:
        raise ValueError("Pass either settings or preset, not both")
    if preset is not None:
        settings = preset_settings(preset)
    _ACTIVE = settings or TelemetrySettings.from_env()
    _LOGGERS.clear()
    return _ACTIVE


def active_settings() -> TelemetrySettings:
    if _ACTIVE is None:
        return configure()
    return _ACTIVE


def get_logger(name: Optional[str] = None) -> Any:
    """Cached ``telelog.Logger`` built from the active settings."""

    settings = active_settings()
    logger_name = name or settings.logger_name
    logger = _LOGGERS.get(logger_name)
    if logger is None:
        logger = tl.Logger.with_config(logger_name, settings.to_config())
        _LOGGERS[logger_name] = logger
    return logger


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return str(value)


def _pairs(data: Dict[str, Any]) -> Pairs:
    return [(str(key), _text(value)) for key, value in data.items()]


def _log(logger: Any, level: str, message: str, data: Dict[str, Any]) -> None:
    name = level.lower()
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, _pairs(data))
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'")
    plain(f"{message} {data}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Write one ``event::<name>`` record carrying ``data`` as key/value pairs."""

    _log(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Lets the body of a ``span`` attach results to the span's records."""

    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def fail(self, reason: str) -> None:
        self._emit("error", "span::fail", reason)

    def reject(self, reason: str) -> None:
        self._emit("warning", "span::rejected", reason)

    def _emit(self, level: str, message: str, reason: str) -> None:
        payload: Dict[str, Any] = {"operation": self.name, **self.metadata, "reason": reason}
        if self.component:
            payload["component"] = self.component
        _log(self.logger, level, message, payload)


def _push_context(logger: Any, key: str, value: str) -> None:
    _CONTEXT.setdefault((id(logger), key), []).append(value)
    logger.add_context(key, value)


def _pop_context(logger: Any, key: str) -> None:
    slot = (id(logger), key)
    values = _CONTEXT.get(slot, [])
    if values:
        values.pop()
    if values:
        logger.add_context(key, values[-1])
    else:
        _CONTEXT.pop(slot, None)
        logger.remove_context(key)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    expected: Tuple[Type[BaseException], ...] = (),
) -> Iterator[SpanHandle]:
    """Time one engine operation such as ``store::select``.

    ``metadata`` (file key, line span) is pushed as logger context for the
    duration of the block. ``component`` groups spans of the same layer in
    telelog's component tracking. An exception escaping the block is
    re-raised after being logged: instances of ``expected`` (a refused
    request) as a ``span::rejected`` warning, anything else as ``span::fail``.
    """

    logger = get_logger(logger_name)
    context = {key: _text(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        _push_context(logger, key, value)

    with ExitStack() as stack:
        if component:
            stack.enter_context(logger.track_component(component))
        stack.enter_context(logger.profile(name))
        handle = SpanHandle(logger=logger, name=name, component=component, metadata=dict(context))
        try:
            yield handle
        except expected as exc:
            handle.reject(str(exc))
            raise
        except Exception as exc:
            handle.fail(str(exc))
            raise
        finally:
            for key in reversed(list(context)):
                _pop_context(logger, key)


__all__ = [
    "ENV_PREFIX",
    "SpanHandle",
    "TelemetrySettings",
    "active_settings",
    "configure",
    "get_logger",
    "preset_settings",
    "record_event",
    "span",
]
