"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SEMCHANGE__SECTION__KEY)
3. Repo config file (.semchange.yaml, .semchange.yml or .semchange.json)
4. Global YAML (~/.config/semchange/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    SEMCHANGE__<SECTION>__<KEY>=<VALUE>

Examples:
    SEMCHANGE__LOGGING__LEVEL=DEBUG
    SEMCHANGE__RUNNER__TIMEOUT_MS=30000
    SEMCHANGE__RUNNER__MAX_CONCURRENCY=4
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from semchange.analysis.changes import ChangeKind, ChangeKindGroup, Severity

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_TIMEOUT_MS = 120_000


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SEMCHANGE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. Logs go to stderr, reports to stdout.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ChangeKindGroupsConfig(BaseModel):
    """Group allow/deny lists. A non-empty ``enabled`` list acts as an allowlist."""

    model_config = ConfigDict(frozen=True)

    enabled: list[ChangeKindGroup] = Field(default_factory=list)
    disabled: list[ChangeKindGroup] = Field(
        default_factory=list,
        description="Groups switched off. Takes precedence over 'enabled'.",
    )


class JsxConfig(BaseModel):
    """Controls for the UI-element (JSX) analyzer."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    treat_as_low_severity: bool = Field(
        default=False,
        description="Report every JSX/component change as low severity.",
    )


class TestRequirementsConfig(BaseModel):
    """When a set of changes is considered to need tests."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    always_require_tests: list[ChangeKind] = Field(
        default_factory=lambda: [
            ChangeKind.FUNCTION_SIGNATURE_CHANGED,
            ChangeKind.EXPORT_REMOVED,
            ChangeKind.HOOK_DEPENDENCY_CHANGED,
            ChangeKind.CLASS_STRUCTURE_CHANGED,
        ]
    )
    never_require_tests: list[ChangeKind] = Field(default_factory=list)
    minimum_severity_for_tests: Severity | None = Field(
        default=None,
        description="Severity at or above which tests are required. None means high only.",
    )


class AnalyzerConfig(BaseModel):
    """Patterns and policies read by every analyzer.

    Env vars:
        SEMCHANGE__ANALYZER__SIDE_EFFECT_MODULES: JSON list of module globs
        SEMCHANGE__ANALYZER__SIDE_EFFECT_CALLEES: JSON list of callee globs
    """

    model_config = ConfigDict(frozen=True)

    include: list[str] = Field(
        default_factory=lambda: ["**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx"],
        description="Path globs selecting files to analyze.",
    )
    exclude: list[str] = Field(
        default_factory=lambda: [
            "node_modules/**",
            "**/*.test.*",
            "**/*.spec.*",
            "**/*.d.ts",
            "dist/**",
            "build/**",
        ],
        description="Path globs removed from the selection after 'include'.",
    )
    side_effect_modules: list[str] = Field(
        default_factory=list,
        description="Module globs whose import is treated as side-effecting.",
    )
    side_effect_callees: list[str] = Field(
        default_factory=lambda: [
            "console.*",
            "fetch",
            "*.api.*",
            "*.service.*",
            "track*",
            "log*",
            "analytics.*",
            "gtag",
            "dataLayer.*",
        ],
        description="Dotted callee globs whose new call sites are flagged.",
    )
    test_globs: list[str] = Field(default_factory=lambda: ["**/*.test.*", "**/*.spec.*"])
    bypass_labels: list[str] = Field(
        default_factory=lambda: ["skip-tests", "docs-only", "trivial"],
        description="Labels that waive the test requirement.",
    )
    change_kind_groups: ChangeKindGroupsConfig = Field(default_factory=ChangeKindGroupsConfig)
    severity_overrides: dict[ChangeKind, Severity] = Field(default_factory=dict)
    disabled_change_kinds: list[ChangeKind] = Field(default_factory=list)
    jsx: JsxConfig = Field(default_factory=JsxConfig)
    test_requirements: TestRequirementsConfig = Field(default_factory=TestRequirementsConfig)

    @field_validator(
        "include",
        "exclude",
        "side_effect_modules",
        "side_effect_callees",
        "test_globs",
    )
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            if not pattern.strip():
                raise ValueError("Glob patterns must be non-empty")
        return v


class RunnerConfig(BaseModel):
    """Batch execution settings.

    Env vars:
        SEMCHANGE__RUNNER__MAX_CONCURRENCY: Worker processes (default: CPU count)
        SEMCHANGE__RUNNER__TIMEOUT_MS: Per-file timeout in milliseconds
    """

    max_concurrency: int | None = Field(
        default=None,
        description="Maximum worker processes in flight. None uses the CPU count.",
    )
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Per-file analysis bound. Workers past it are terminated.",
    )

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {v}")
        return v

    @field_validator("timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"timeout_ms must be positive, got {v}")
        return v


class SemchangeConfig(BaseModel):
    """Root configuration for semchange.

    All settings can be configured via:
    1. Environment variables: SEMCHANGE__SECTION__KEY
    2. Config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
