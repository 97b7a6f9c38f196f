"""semchange error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse
- 4xxx: Git
- 6xxx: Task
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    PARSE_UNSUPPORTED_LANGUAGE = 3001
    PARSE_FAILED = 3002

    # Git (4xxx)
    GIT_ERROR = 4001
    GIT_NOT_A_REPOSITORY = 4002
    GIT_REF_NOT_FOUND = 4003

    # Task (6xxx)
    TASK_TIMEOUT = 6001
    TASK_CRASHED = 6002
    TASK_FAILED = 6003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class SemchangeError(Exception):
    """Base error with structured context for reports."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SemchangeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class ParseError(SemchangeError):
    """Source buffers that cannot be turned into a syntax tree."""

    @classmethod
    def unsupported_language(cls, path: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_UNSUPPORTED_LANGUAGE,
            message=f"Unsupported file type: {path}",
            details={"path": path},
        )

    @classmethod
    def failed(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_FAILED,
            message=f"Failed to parse {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class TaskError(SemchangeError):
    """Failures of a single file-pair task inside the concurrency driver."""

    @classmethod
    def timeout(cls, file_path: str, timeout_ms: int) -> "TaskError":
        return cls(
            code=ErrorCode.TASK_TIMEOUT,
            message=f"Analysis of {file_path} timed out after {timeout_ms} ms",
            retryable=True,
            details={"file_path": file_path, "timeout_ms": timeout_ms},
        )

    @classmethod
    def crashed(cls, file_path: str, exitcode: int | None) -> "TaskError":
        return cls(
            code=ErrorCode.TASK_CRASHED,
            message=f"Worker for {file_path} exited with code {exitcode}",
            details={"file_path": file_path, "exitcode": exitcode},
        )

    @classmethod
    def failed(cls, file_path: str, reason: str) -> "TaskError":
        return cls(
            code=ErrorCode.TASK_FAILED,
            message=f"Analysis of {file_path} failed: {reason}",
            details={"file_path": file_path, "reason": reason},
        )


class InternalError(SemchangeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
