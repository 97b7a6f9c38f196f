"""Tests for the semchange command group."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pygit2
import pytest
from click.testing import CliRunner

from semchange.cli.main import cli


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path):
    with patch("semchange.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCliGroup:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "semchange, version 0.1.0" in result.stdout

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "analyze" in result.stdout
        assert "diff" in result.stdout


class TestDiffCommand:
    def test_given_two_files_when_diffed_then_json_report(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        # Given
        base = tmp_path / "base.ts"
        head = tmp_path / "head.ts"
        base.write_text("function add(a: number, b: number) {}\n")
        head.write_text("function add(a: number, b: number, c: number) {}\n")

        # When
        result = runner.invoke(cli, ["diff", str(base), str(head), "--format", "json"])

        # Then
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["requires_tests"] is True
        assert [c["kind"] for c in data["changes"]] == ["functionSignatureChanged"]
        assert data["changes"][0]["file"] == str(head)

    def test_unparseable_file_listed_as_failed(self, runner: CliRunner, tmp_path: Path) -> None:
        base = tmp_path / "a.ts"
        head = tmp_path / "b.ts"
        base.write_text("let a = 1;\n")
        head.write_text("}\n")

        result = runner.invoke(cli, ["diff", str(base), str(head), "--format", "machine"])

        assert result.exit_code == 0
        assert result.stdout.splitlines()[0] == "SUMMARY:false:0:0:0:0:0"
        assert result.stdout.splitlines()[1].startswith(f"FAILED:{head}")

    def test_writes_output_file(self, runner: CliRunner, tmp_path: Path) -> None:
        base = tmp_path / "a.ts"
        base.write_text("let a = 1;\n")
        out = tmp_path / "report.txt"

        result = runner.invoke(cli, ["diff", str(base), str(base), "--output", str(out)])

        assert result.exit_code == 0
        assert "No semantic changes detected" in out.read_text()


class TestAnalyzeCommand:
    @pytest.fixture
    def repo_with_edit(self, temp_repo: pygit2.Repository, commit) -> Path:
        workdir = Path(temp_repo.workdir)
        (workdir / "app.ts").write_text("export const x = a == b;\n")
        commit(temp_repo, "add app")
        (workdir / "app.ts").write_text("export const x = a === b;\n")
        return workdir

    def test_given_dirty_worktree_when_analyzed_then_annotations_and_output(
        self,
        runner: CliRunner,
        repo_with_edit: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        # Given
        gh_output = tmp_path / "gh_output"
        monkeypatch.setenv("GITHUB_OUTPUT", str(gh_output))

        # When
        result = runner.invoke(
            cli,
            [
                "analyze",
                "--repo",
                str(repo_with_edit),
                "--format",
                "github-actions",
                "--max-concurrency",
                "1",
            ],
        )

        # Then
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == (
            "::warning file=app.ts,line=1,title=comparisonOperatorChanged::"
            "Comparison operator changed from == to === between a and b"
        )
        assert gh_output.read_text() == "requires-tests=false\n"

    def test_bypass_label(self, runner: CliRunner, repo_with_edit: Path) -> None:
        (repo_with_edit / "app.ts").write_text("export let x = 1;\n")

        result = runner.invoke(
            cli,
            ["analyze", "--repo", str(repo_with_edit), "--format", "machine", "--label", "trivial"],
        )

        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines()[0].startswith("SUMMARY:false:1:")

    def test_files_from_stdin(self, runner: CliRunner, repo_with_edit: Path) -> None:
        result = runner.invoke(
            cli,
            ["analyze", "--repo", str(repo_with_edit), "--stdin", "--format", "json"],
            input="other.ts\n",
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["files_analyzed"] == 0

    def test_unknown_base_ref_fails(self, runner: CliRunner, repo_with_edit: Path) -> None:
        result = runner.invoke(
            cli, ["analyze", "--repo", str(repo_with_edit), "--base", "nope"]
        )

        assert result.exit_code == 1
        assert "Reference not found: nope" in result.output
