"""Configuration loading with pydantic-settings.

Sources, highest precedence first:
1. Direct kwargs
2. Environment variables (SEMCHANGE__SECTION__KEY)
3. Repo config file, the first of: .semchange.yaml, .semchange.yml,
   .semchange.json, .semantic-change-detector.json
4. Global config (~/.config/semchange/config.yaml)
5. Built-in defaults

Every file is read with the YAML loader (JSON is a YAML subset). A
``.semantic-change-detector.json`` file holds analyzer options at the top
level with camelCase keys; it is translated into the sectioned layout.
"""

import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from semchange.config.models import (
    AnalyzerConfig,
    LoggingConfig,
    RunnerConfig,
    SemchangeConfig,
)
from semchange.core.errors import ConfigError

log = structlog.get_logger(__name__)

GLOBAL_CONFIG_PATH = Path("~/.config/semchange/config.yaml").expanduser()
DETECTOR_CONFIG_NAME = ".semantic-change-detector.json"
REPO_CONFIG_NAMES = (".semchange.yaml", ".semchange.yml", ".semchange.json", DETECTOR_CONFIG_NAME)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_RUNNER_KEYS = frozenset({"timeout_ms", "max_concurrency"})
_IGNORED_KEYS = frozenset({"max_memory_mb", "performance"})
_RENAMED_KEYS = {"jsx_config": "jsx"}
# Keys are change kinds, which stay camelCase.
_VERBATIM_KEYS = frozenset({"severity_overrides"})


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def snake_case(key: str) -> str:
    """``sideEffectCallees`` -> ``side_effect_callees``; snake_case passes through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def from_detector_layout(data: dict[str, Any]) -> dict[str, Any]:
    """Translate a flat camelCase analyzer config into ``{analyzer, runner}`` sections.

    ``timeoutMs`` moves to the runner section. Memory and performance
    tuning keys have no counterpart and are dropped.
    """
    analyzer: dict[str, Any] = {}
    runner: dict[str, Any] = {}
    for key, value in data.items():
        name = snake_case(key)
        if name in _RUNNER_KEYS:
            runner[name] = value
            continue
        if name in _IGNORED_KEYS:
            log.debug("config_key_ignored", key=key)
            continue
        name = _RENAMED_KEYS.get(name, name)
        if isinstance(value, dict) and name not in _VERBATIM_KEYS:
            value = {snake_case(k): v for k, v in value.items()}
        analyzer[name] = value

    sections: dict[str, Any] = {"analyzer": analyzer}
    if runner:
        sections["runner"] = runner
    return sections


def read_config_file(path: Path) -> dict[str, Any]:
    """Load one config file in the sectioned layout."""
    data = _load_yaml(path)
    if path.name == DETECTOR_CONFIG_NAME:
        data = from_detector_layout(data)
    log.debug("config_file_loaded", path=str(path), sections=sorted(data))
    return data


def find_repo_config(repo_root: Path) -> Path | None:
    """Return the first repo config file present under ``repo_root``."""
    for name in REPO_CONFIG_NAMES:
        candidate = repo_root / name
        if candidate.is_file():
            return candidate
    return None


class _FileSource(PydanticBaseSettingsSource):
    """Settings source over the merged global and repo config files."""

    def __init__(self, settings_cls: type[BaseSettings], file_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._file_config = file_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._file_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._file_config


def _settings_class(file_config: dict[str, Any]) -> type[BaseSettings]:
    """Build a Settings class bound to one merged file config."""

    class SemchangeSettings(BaseSettings):
        """Env vars: SEMCHANGE__RUNNER__TIMEOUT_MS, SEMCHANGE__ANALYZER__INCLUDE, etc."""

        model_config = SettingsConfigDict(
            env_prefix="SEMCHANGE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        analyzer: AnalyzerConfig = AnalyzerConfig()
        runner: RunnerConfig = RunnerConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First wins: init kwargs > env vars > config files
            return (init_settings, env_settings, _FileSource(settings_cls, file_config))

    return SemchangeSettings


def load_config(
    repo_root: Path | None = None,
    config_path: Path | None = None,
    **kwargs: Any,
) -> SemchangeConfig:
    """Resolve the configuration for one run.

    Args:
        repo_root: Repository root searched for a repo config file.
            Defaults to the current working directory.
        config_path: Explicit config file used instead of the repo lookup.
            Must exist.
        **kwargs: Section overrides, e.g. ``runner={"timeout_ms": 500}``.

    Raises:
        ConfigError: Missing explicit file, unreadable file or a value that
            fails validation.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError.file_not_found(str(config_path))
        repo_file: Path | None = config_path
    else:
        repo_file = find_repo_config(repo_root or Path.cwd())

    file_config = _load_yaml(GLOBAL_CONFIG_PATH)
    if repo_file is not None:
        file_config = _deep_merge(file_config, read_config_file(repo_file))

    try:
        settings = _settings_class(file_config)(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    return SemchangeConfig.model_validate(settings.model_dump())
