"""Tests for read-only repository access."""

from __future__ import annotations

from pathlib import Path

import pygit2
import pytest

from semchange.analysis.scoping import DiffHunk
from semchange.git import GitRepository, NotARepositoryError, RefNotFoundError


@pytest.fixture
def history(temp_repo: pygit2.Repository, commit) -> tuple[GitRepository, str, str]:
    """Two commits: base adds src files, head edits, adds and deletes."""
    workdir = Path(temp_repo.workdir)
    (workdir / "src").mkdir()
    (workdir / "src" / "keep.ts").write_text("export const a = 1;\nexport const b = 2;\n")
    (workdir / "src" / "gone.ts").write_text("export const gone = true;\n")
    base = commit(temp_repo, "base")

    (workdir / "src" / "keep.ts").write_text("export const a = 1;\nexport const b = 3;\n")
    (workdir / "src" / "gone.ts").unlink()
    temp_repo.index.remove("src/gone.ts")
    (workdir / "src" / "new.ts").write_text("export const fresh = 1;\n")
    head = commit(temp_repo, "head")
    return GitRepository(workdir), base, head


class TestGitRepository:
    def test_not_a_repository(self, tmp_path: Path) -> None:
        with pytest.raises(NotARepositoryError):
            GitRepository(tmp_path / "nowhere")

    def test_resolve_commit(self, temp_repo: pygit2.Repository) -> None:
        repo = GitRepository(temp_repo.workdir)

        assert repo.resolve_commit("HEAD").id == temp_repo.head.target
        assert repo.resolve_commit("main").id == temp_repo.head.target

    def test_unknown_ref(self, temp_repo: pygit2.Repository) -> None:
        repo = GitRepository(temp_repo.workdir)

        with pytest.raises(RefNotFoundError) as exc_info:
            repo.resolve_commit("no-such-branch")

        assert "no-such-branch" in exc_info.value.message

    def test_normalize_path(self, temp_repo: pygit2.Repository) -> None:
        repo = GitRepository(temp_repo.workdir)

        assert repo.normalize_path(repo.path / "src" / "a.ts") == "src/a.ts"
        assert repo.normalize_path("src/a.ts") == "src/a.ts"


class TestReadFile:
    def test_reads_committed_versions(self, history) -> None:
        repo, base, head = history

        assert repo.read_file(base, "src/keep.ts") == "export const a = 1;\nexport const b = 2;\n"
        assert repo.read_file(head, "src/keep.ts") == "export const a = 1;\nexport const b = 3;\n"

    def test_missing_file_is_none(self, history) -> None:
        repo, base, head = history

        assert repo.read_file(base, "src/new.ts") is None
        assert repo.read_file(head, "src/gone.ts") is None
        assert repo.read_file(head, "src") is None

    def test_reads_working_tree(self, history) -> None:
        repo, _, _ = history
        (repo.path / "src" / "keep.ts").write_text("// dirty\n")

        assert repo.read_file(".", "src/keep.ts") == "// dirty\n"
        assert repo.read_file(".", "src/gone.ts") is None


class TestChangedFiles:
    def test_given_two_commits_when_diffed_then_statuses_and_hunks(self, history) -> None:
        # Given
        repo, base, head = history

        # When
        changed = {c.path: c for c in repo.changed_files(base, head)}

        # Then
        assert set(changed) == {"src/keep.ts", "src/gone.ts", "src/new.ts"}
        assert changed["src/keep.ts"].status == "modified"
        assert changed["src/keep.ts"].old_path == "src/keep.ts"
        assert changed["src/keep.ts"].hunks == (DiffHunk.from_counts(1, 2, 1, 2),)
        assert changed["src/new.ts"].status == "added"
        assert changed["src/new.ts"].old_path is None
        assert changed["src/gone.ts"].status == "deleted"

    def test_working_tree_changes(self, history) -> None:
        repo, _, head = history
        (repo.path / "src" / "new.ts").write_text("export const fresh = 2;\n")

        changed = repo.changed_files(head, ".")

        assert [(c.path, c.status) for c in changed] == [("src/new.ts", "modified")]
