"""Config module exports."""

from semchange.config.loader import load_config
from semchange.config.models import (
    AnalyzerConfig,
    LoggingConfig,
    RunnerConfig,
    SemchangeConfig,
)

__all__ = [
    "load_config",
    "AnalyzerConfig",
    "LoggingConfig",
    "RunnerConfig",
    "SemchangeConfig",
]
