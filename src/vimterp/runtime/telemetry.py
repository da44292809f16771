"""Logging for the interpreter, on top of the standard ``logging`` package.

Everything logs below the ``vimterp`` logger. The public surface is small:

``configure(...)`` -- install handlers from a config, a preset or the environment
``get_logger(name)`` -- a cached logger nested under ``vimterp``
``record_event(name, ...)`` -- one structured ``event::<name>`` record
``span(name, ...)`` -- time a block; logs ``span::end`` or ``span::fail``

Structured fields travel on ``record.fields`` so ``JsonFormatter`` (or any
host handler) can pick them up.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional

ENV_PREFIX = "VIMTERP_"
DEFAULT_LOGGER_NAME = os.getenv(f"{ENV_PREFIX}LOGGER", "vimterp")
DEFAULT_LOG_FILE = os.getenv(f"{ENV_PREFIX}LOG_FILE", "")

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_HANDLER_TAG = "_vimterp_handler"
_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})

_loggers: MutableMapping[str, logging.Logger] = {}
_active: Optional["TelemetryConfig"] = None


def _setting(name: str) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name)


def _enabled(name: str) -> bool:
    return (_setting(name) or "").lower() in _TRUE_WORDS


def _text(value: Any) -> str:
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return value if isinstance(value, str) else str(value)


def _pairs(fields: Dict[str, Any]) -> str:
    return " ".join(f"{key}={_text(value)}" for key, value in fields.items())


class JsonFormatter(logging.Formatter):
    """One JSON object per record, structured fields flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": round(record.created, 6),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = getattr(record, "fields", None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                payload[key] = _text(value)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


@dataclass
class TelemetryConfig:
    """Where ``vimterp`` records go and at which level."""

    level: str = "INFO"
    console: bool = True
    json_format: bool = False
    log_file: str = ""

    def build_handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = []
        if self.console:
            handlers.append(logging.StreamHandler(sys.stderr))
        if self.log_file:
            handlers.append(logging.FileHandler(self.log_file, encoding="utf-8"))
        formatter = (
            JsonFormatter() if self.json_format else logging.Formatter(_TEXT_FORMAT)
        )
        for handler in handlers:
            handler.setFormatter(formatter)
            setattr(handler, _HANDLER_TAG, True)
        return handlers

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        return cls(
            level=(_setting("LOG_LEVEL") or "INFO").upper(),
            console=not _enabled("DISABLE_CONSOLE"),
            json_format=_enabled("LOG_JSON"),
            log_file=_setting("LOG_FILE") or DEFAULT_LOG_FILE,
        )


def _log_file(fallback: str) -> str:
    return _setting("LOG_FILE") or DEFAULT_LOG_FILE or fallback


_PRESETS: Dict[str, Callable[[], TelemetryConfig]] = {
    "development": lambda: TelemetryConfig(level="DEBUG"),
    "production": lambda: TelemetryConfig(
        console=False, log_file=_log_file("vimterp.log")
    ),
    "performance": lambda: TelemetryConfig(
        level="DEBUG",
        console=False,
        json_format=True,
        log_file=_log_file("vimterp-performance.log"),
    ),
}
_PRESETS["performance_analysis"] = _PRESETS["performance"]


def configure(
    *, config: Optional[TelemetryConfig] = None, preset: Optional[str] = None
) -> None:
    """Replace the handlers ``vimterp`` installed on its package logger.

    With neither argument the settings come from ``VIMTERP_*`` environment
    variables. Handlers added by the host are left alone.
    """

    global _active
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset:
        factory = _PRESETS.get(preset.lower())
        if factory is None:
            raise ValueError(f"Unknown preset '{preset}'.")
        config = factory()
    elif config is None:
        config = TelemetryConfig.from_env()

    package_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in [
        h for h in package_logger.handlers if getattr(h, _HANDLER_TAG, False)
    ]:
        package_logger.removeHandler(handler)
        handler.close()
    for handler in config.build_handlers():
        package_logger.addHandler(handler)
    package_logger.setLevel(config.level)
    package_logger.propagate = False

    _active = config
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger ``vimterp.<name>``; ``name`` may already carry the prefix."""

    if _active is None:
        configure()
    full = name or DEFAULT_LOGGER_NAME
    if full != DEFAULT_LOGGER_NAME and not full.startswith(DEFAULT_LOGGER_NAME + "."):
        full = f"{DEFAULT_LOGGER_NAME}.{full}"
    logger = _loggers.get(full)
    if logger is None:
        logger = _loggers[full] = logging.getLogger(full)
    return logger


def _level_number(level: str | int) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unsupported log level '{level}'.")
    return number


def record_event(
    name: str,
    *,
    level: str | int = "debug",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` as structured fields."""

    number = _level_number(level)
    log = get_logger(logger_name)
    if log.isEnabledFor(number):
        fields = {"event": name}
        fields.update(data or {})
        log.log(number, "event::%s %s", name, _pairs(fields), extra={"fields": fields})


@dataclass
class SpanHandle:
    """The running span; metadata added here is written with its records."""

    logger: logging.Logger
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0

    def fail(self, reason: str) -> None:
        self._log(logging.ERROR, "span::fail", reason=reason)

    def cancel(self, reason: str | None = None) -> None:
        if reason:
            self._log(logging.WARNING, "span::cancel", reason=reason)
        else:
            self._log(logging.WARNING, "span::cancel")

    def finish(self) -> None:
        self._log(logging.DEBUG, "span::end", elapsed_ms=f"{self.elapsed_ms():.3f}")

    def _log(self, level: int, message: str, **extra: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        fields: Dict[str, Any] = {"span": self.span_name}
        fields.update(self.metadata)
        if self.component_name:
            fields["component"] = self.component_name
        fields.update((key, _text(value)) for key, value in extra.items())
        self.logger.log(
            level, "%s %s", message, _pairs(fields), extra={"fields": fields}
        )


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Time the enclosed block.

    ``component=True`` reuses ``name`` as the component; a string names it
    explicitly. An exception escaping the block is logged as ``span::fail``
    and re-raised.
    """

    handle = SpanHandle(
        logger=get_logger(logger_name),
        span_name=name,
        component_name=name if component is True else component or None,
        metadata={key: _text(value) for key, value in (metadata or {}).items()},
    )
    try:
        yield handle
    except Exception as exc:
        handle.fail(str(exc))
        raise
    handle.finish()


__all__ = [
    "JsonFormatter",
    "SpanHandle",
    "TelemetryConfig",
    "configure",
    "get_logger",
    "record_event",
    "span",
]
