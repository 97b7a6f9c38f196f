"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- camelCase detector config translation
- load_config() precedence: defaults < global < repo < env < kwargs
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from semchange.analysis.changes import ChangeKind, ChangeKindGroup, Severity
from semchange.config.loader import (
    _deep_merge,
    _load_yaml,
    find_repo_config,
    from_detector_layout,
    load_config,
    snake_case,
)
from semchange.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path):
    with patch("semchange.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("runner:\n  timeout_ms: 500\n")

        assert _load_yaml(yaml_file) == {"runner": {"timeout_ms": 500}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("analyzer: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        base = {"runner": {"timeout_ms": 1, "max_concurrency": 2}}
        override = {"runner": {"timeout_ms": 5}}

        assert _deep_merge(base, override) == {"runner": {"timeout_ms": 5, "max_concurrency": 2}}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})

        assert base == {"a": {"b": 1}}


class TestFindRepoConfig:
    def test_prefers_yaml_over_json(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.json").write_text("{}")
        (tmp_path / ".semchange.yaml").write_text("{}")

        assert find_repo_config(tmp_path) == tmp_path / ".semchange.yaml"

    def test_returns_none_without_config(self, tmp_path: Path) -> None:
        assert find_repo_config(tmp_path) is None


class TestDetectorLayout:
    """Flat camelCase analyzer configs."""

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("sideEffectCallees", "side_effect_callees"),
            ("timeoutMs", "timeout_ms"),
            ("maxMemoryMB", "max_memory_mb"),
            ("include", "include"),
            ("test_globs", "test_globs"),
        ],
    )
    def test_snake_case(self, key: str, expected: str) -> None:
        assert snake_case(key) == expected

    def test_splits_runner_and_analyzer_keys(self) -> None:
        sections = from_detector_layout(
            {
                "include": ["src/**/*.ts"],
                "timeoutMs": 900,
                "maxMemoryMB": 512,
                "jsxConfig": {"treatAsLowSeverity": True},
                "severityOverrides": {"importAdded": "high"},
            }
        )

        assert sections == {
            "analyzer": {
                "include": ["src/**/*.ts"],
                "jsx": {"treat_as_low_severity": True},
                "severity_overrides": {"importAdded": "high"},
            },
            "runner": {"timeout_ms": 900},
        }

    def test_omits_runner_section_without_runner_keys(self) -> None:
        assert from_detector_layout({"bypassLabels": ["docs"]}) == {
            "analyzer": {"bypass_labels": ["docs"]}
        }

    def test_repo_detector_file_is_loaded(self, tmp_path: Path) -> None:
        (tmp_path / ".semantic-change-detector.json").write_text(
            '{"sideEffectModules": ["./polyfills"], "timeoutMs": 700,'
            ' "testRequirements": {"minimumSeverityForTests": "medium"},'
            ' "performance": {"enableEarlyExit": true}}'
        )

        config = load_config(tmp_path)

        assert config.analyzer.side_effect_modules == ["./polyfills"]
        assert config.runner.timeout_ms == 700
        assert config.analyzer.test_requirements.minimum_severity_for_tests is Severity.MEDIUM

    def test_semchange_file_wins_over_detector_file(self, tmp_path: Path) -> None:
        (tmp_path / ".semantic-change-detector.json").write_text('{"timeoutMs": 700}')
        (tmp_path / ".semchange.yaml").write_text("runner:\n  timeout_ms: 300\n")

        assert load_config(tmp_path).runner.timeout_ms == 300


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config.runner.timeout_ms == 120_000
        assert config.runner.max_concurrency is None
        assert "**/*.tsx" in config.analyzer.include
        assert "console.*" in config.analyzer.side_effect_callees

    def test_loads_repo_config(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.yaml").write_text(
            "analyzer:\n"
            "  side_effect_modules: ['polyfills/*']\n"
            "  severity_overrides:\n"
            "    importAdded: high\n"
            "  change_kind_groups:\n"
            "    disabled: [jsx-rendering]\n"
        )

        config = load_config(tmp_path)

        assert config.analyzer.side_effect_modules == ["polyfills/*"]
        assert config.analyzer.severity_overrides == {ChangeKind.IMPORT_ADDED: Severity.HIGH}
        assert config.analyzer.change_kind_groups.disabled == [ChangeKindGroup.JSX_RENDERING]

    def test_json_config_is_accepted(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.json").write_text('{"runner": {"timeout_ms": 900}}')

        assert load_config(tmp_path).runner.timeout_ms == 900

    def test_explicit_config_path_replaces_lookup(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.yaml").write_text("runner:\n  timeout_ms: 1\n")
        explicit = tmp_path / "ci.yaml"
        explicit.write_text("runner:\n  timeout_ms: 2\n")

        assert load_config(tmp_path, explicit).runner.timeout_ms == 2

    def test_missing_explicit_config_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path, tmp_path / "absent.yaml")

        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.yaml").write_text("runner:\n  timeout_ms: 1000\n")

        with patch.dict(os.environ, {"SEMCHANGE__RUNNER__TIMEOUT_MS": "2500"}):
            config = load_config(tmp_path)

        assert config.runner.timeout_ms == 2500

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.yaml").write_text("logging:\n  level: DEBUG\n")

        config = load_config(tmp_path, logging={"level": "ERROR"})

        assert config.logging.level == "ERROR"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / ".semchange.yaml").write_text("runner:\n  timeout_ms: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "timeout_ms" in exc_info.value.message
