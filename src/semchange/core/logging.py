"""Structured logging for analysis runs.

Events are rendered by stdlib handlers through structlog's
``ProcessorFormatter``. Reports go to stdout, so every log destination
defaults to stderr or a file. Each event carries the current run id, and
events emitted inside a worker process also carry its pid.
"""

from __future__ import annotations

import logging
import multiprocessing
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from semchange.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set or generate the id that ties together the events of one run."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_run_id():
        event_dict["run_id"] = rid
    return event_dict


def _add_worker_pid(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if multiprocessing.parent_process() is not None:
        event_dict["worker_pid"] = os.getpid()
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
        _add_worker_pid,  # type: ignore[list-item]
    ]


def _level(name: str | None, default: int = logging.INFO) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


def _install(
    handlers: list[logging.Handler],
    level: int,
    shared: list[structlog.types.Processor],
) -> None:
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Not cached so a later configure_logging() call takes effect
        cache_logger_on_first_use=False,
    )
    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        if isinstance(old, logging.FileHandler):
            old.close()
    root.setLevel(level)
    for handler in handlers:
        root.addHandler(handler)


def _formatter(
    fmt: str, colors: bool, shared: list[structlog.types.Processor]
) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def _handler_for(
    output: LogOutputConfig, default_level: int, shared: list[structlog.types.Processor]
) -> logging.Handler:
    handler: logging.Handler
    if output.destination == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    elif output.destination == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    is_tty = output.destination == "stderr" and sys.stderr.isatty()
    handler.setFormatter(_formatter(output.format, is_tty, shared))
    handler.setLevel(_level(output.level, default_level))
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog for the current process.

    Args:
        config: Logging section of the loaded configuration. When omitted a
            single stderr output is built from ``json_format`` and ``level``.
        json_format: Render the stderr output as JSON lines.
        level: Root level used when ``config`` is omitted.
    """
    from semchange.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    default_level = _level(config.level)
    shared = _shared_processors()
    handlers = [_handler_for(output, default_level, shared) for output in config.outputs]
    _install(handlers, default_level, shared)


def current_level() -> int:
    """Effective root level, handed to worker processes at spawn time."""
    return logging.getLogger().getEffectiveLevel()


def configure_worker_logging(level: int = logging.WARNING) -> None:
    """Send a worker process's events to stderr as plain console lines.

    Workers never write to stdout, which carries the report.
    """
    shared = _shared_processors()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter("console", False, shared))
    handler.setLevel(level)
    _install([handler], level, shared)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
