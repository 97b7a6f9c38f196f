"""Core module exports."""

from semchange.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ParseError,
    SemchangeError,
    TaskError,
)
from semchange.core.logging import (
    clear_run_id,
    configure_logging,
    configure_worker_logging,
    current_level,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "ParseError",
    "SemchangeError",
    "TaskError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "configure_worker_logging",
    "current_level",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
