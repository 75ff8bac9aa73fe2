"""
Structured logging for watch-spine.

Wraps structlog with one configuration entry point, contextvar-based
context binding, and a ``log_step`` timer used around every sync and
analytics pass.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="watch-spine")
              │
              ▼
        processor chain:
          TimeStamper → merge_contextvars → add_log_level → add_logger_name
          → service metadata → (ECS field names) → JSON / Console renderer

        with log_step("sync.meta", channel="meta") as timer:
            ...
            timer.add_metric("updated", 12)

        DEBUG sync.meta.start
        INFO  sync.meta.end   duration_ms=41.2 updated=12

Examples:
    >>> from watchspine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> log = get_logger(__name__)
    >>> log.info("lookup.group_skipped", group="Genres")

Tags:
    logging, structlog, observability, timing, watch-spine
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "watch-spine"


def _add_service_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp every event with the service name."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename timestamp and level to their ECS field names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "watch-spine",
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_name,
    ]

    if json_format:
        shared_processors.append(_ecs_field_names)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Log to stderr so --json command output stays parseable
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key/values onto every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Unbind the given context keys."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Drop every contextvar bound so far."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(channel="meta", run_id="abc123"):
            log.info("sync.started")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


# =============================================================================
# Timing
# =============================================================================


@dataclass
class TimingResult:
    """Elapsed time and metrics for one timed step."""

    step: str
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    error_info: dict[str, Any] | None = None

    def stop(self) -> TimingResult:
        if self.ended_at is None:
            self.ended_at = time.perf_counter()
        return self

    @property
    def duration_seconds(self) -> float:
        if self.ended_at is None:
            return time.perf_counter() - self.started_at
        return self.ended_at - self.started_at

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000

    def add_metric(self, key: str, value: Any) -> TimingResult:
        """Add a metric to include in the completion log."""
        self.metrics[key] = value
        return self

    def set_error(self, e: Exception) -> TimingResult:
        self.error_info = {
            "error_type": type(e).__name__,
            "error_message": str(e),
            "error_stack": traceback.format_exc(),
        }
        return self

    def to_log_dict(self) -> dict[str, Any]:
        result = {"duration_ms": round(self.duration_ms, 2)}
        result.update(self.metrics)
        if self.error_info:
            result["status"] = "error"
            result.update(self.error_info)
        return result


@contextmanager
def log_step(event: str, log_start: bool = True, **extra_metrics: Any) -> Iterator[TimingResult]:
    """
    Log step start (DEBUG) and end (INFO) with timing.

    Usage:
        with log_step("analytics.aggregate", table="Merged") as timer:
            aggregates = aggregate_tags(table)
            timer.add_metric("tags", len(aggregates))
    """
    log = get_logger("watchspine.timing")
    timer = TimingResult(step=event, metrics=dict(extra_metrics))

    if log_start:
        log.debug(f"{event}.start", **extra_metrics)

    try:
        yield timer
    except Exception as e:
        timer.stop()
        timer.set_error(e)
        log.error(f"{event}.error", **timer.to_log_dict())
        raise

    timer.stop()
    log.info(f"{event}.end", **timer.to_log_dict())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    "TimingResult",
    "log_step",
]
