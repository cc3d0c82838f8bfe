"""Telemetry services built on structlog.

This module exposes a narrow surface area for the rest of the engine:

``configure(...)`` -- override or preset the structlog processor chain
``get_logger(name)`` -- fetch (and cache) a bound logger
``record_event(name, ...)`` -- emit structured events at a chosen level
``span(name, ...)`` -- context manager timing a block with bound context
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional, TextIO

import structlog

from vitamin.config import env, env_flag

DEFAULT_LOGGER_NAME = env("LOGGER", "vitamin") or "vitamin"

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_LOG_STREAM: Optional[TextIO] = None


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return repr(value) if isinstance(value, (dict, list, tuple, set)) else str(value)


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unknown log level '{level}'.")
    return number


def _open_stream(path: str) -> TextIO:
    global _LOG_STREAM
    if _LOG_STREAM is not None and not _LOG_STREAM.closed:
        _LOG_STREAM.close()
    _LOG_STREAM = open(path, "a", encoding="utf-8")
    return _LOG_STREAM


def _processors(*, json_format: bool, colors: bool) -> list[Any]:
    chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_format:
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=colors))
    return chain


def _preset_settings(preset: str) -> Dict[str, Any]:
    key = preset.lower()
    if key == "development":
        return {"level": "DEBUG", "json_format": False, "colors": True, "path": None}
    if key == "production":
        path = env("LOG_FILE") or "vitamin.log"
        return {"level": "INFO", "json_format": True, "colors": False, "path": path}
    if key == "quiet":
        return {"level": "ERROR", "json_format": False, "colors": False, "path": None}
    raise ValueError(f"Unknown preset '{preset}'.")


def _env_settings() -> Dict[str, Any]:
    return {
        "level": (env("LOG_LEVEL") or "INFO").upper(),
        "json_format": env_flag("LOG_JSON", False),
        "colors": not env_flag("NO_COLOR", False),
        "path": env("LOG_FILE") or None,
    }


def configure(*, preset: Optional[str] = None, level: Optional[str] = None) -> None:
    """Rebuild the structlog configuration.

    Parameters
    ----------
    preset:
        Named preset (``"development"``, ``"production"``, ``"quiet"``).
        Without one, settings come from ``VITAMIN_LOG_*`` variables.
    level:
        Explicit minimum level overriding the preset or environment.
    """

    settings = _preset_settings(preset) if preset else _env_settings()
    if level:
        settings["level"] = level.upper()

    stream = _open_stream(settings["path"]) if settings["path"] else sys.stderr
    structlog.configure(
        processors=_processors(
            json_format=settings["json_format"], colors=settings["colors"]
        ),
        wrapper_class=structlog.make_filtering_bound_logger(
            _level_number(settings["level"])
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Return a cached structlog logger bound to ``name``."""

    logger_name = name or DEFAULT_LOGGER_NAME
    if logger_name not in _LOGGER_CACHE:
        _LOGGER_CACHE[logger_name] = structlog.get_logger(logger_name).bind(
            logger=logger_name
        )
    return _LOGGER_CACHE[logger_name]


def _level_method(logger: Any, level: str) -> Any:
    method = getattr(logger, str(level).lower(), None)
    if method is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    return method


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit a structured event."""

    log = get_logger(logger_name)
    payload = {key: _stringify(value) for key, value in (data or {}).items()}
    _level_method(log, level)(f"event::{name}", **payload)


@dataclass
class SpanHandle:
    """Handle returned from ``span`` for optional metadata updates."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0

    def _emit(
        self, level: str, message: str, extra: Optional[Dict[str, Any]] = None
    ) -> None:
        payload = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        if extra:
            payload.update({key: _stringify(val) for key, val in extra.items()})
        _level_method(self.logger, level)(message, **payload)

    def finish(self) -> None:
        self._emit("debug", "span::end", {"duration_ms": f"{self.elapsed_ms():.3f}"})

    def fail(self, reason: str) -> None:
        self._emit("error", "span::fail", {"reason": reason})

    def cancel(self, reason: str | None = None) -> None:
        extra = {"reason": reason} if reason else None
        self._emit("warning", "span::cancel", extra)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Time a code block and bind its metadata to every log line inside it.

    Parameters
    ----------
    name:
        Operation name reported with ``span::end``.
    logger_name:
        Target logger; defaults to the engine logger.
    component:
        If ``True`` use the same name as the span; if a string, use it as the
        component identifier.
    metadata:
        Optional key/value pairs bound as structlog context variables for the
        duration of the block.
    """

    log = get_logger(logger_name)
    component_name = None
    if component is True:
        component_name = name
    elif isinstance(component, str):
        component_name = component

    bound = {key: _stringify(value) for key, value in (metadata or {}).items()}
    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=component_name,
        metadata=dict(bound),
    )
    with structlog.contextvars.bound_contextvars(**bound):
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise
        handle.finish()


configure()
logger = get_logger()

__all__ = [
    "SpanHandle",
    "configure",
    "get_logger",
    "record_event",
    "span",
    "logger",
]
