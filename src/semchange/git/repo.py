"""Read-only repository access via pygit2.

Resolves refs to commits, reads file versions and turns patches into
per-file diff hunks. The pseudo-ref ``"."`` stands for the working tree.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import pygit2
import structlog

from semchange.analysis.scoping import DiffHunk
from semchange.git.errors import GitError, NotARepositoryError, RefNotFoundError

log = structlog.get_logger(__name__)

WORKING_TREE = "."

DeltaStatus = Literal["added", "deleted", "modified", "renamed", "copied", "typechange", "unknown"]

_DELTA_STATUS_MAP: dict[int, DeltaStatus] = {
    pygit2.GIT_DELTA_ADDED: "added",
    pygit2.GIT_DELTA_DELETED: "deleted",
    pygit2.GIT_DELTA_MODIFIED: "modified",
    pygit2.GIT_DELTA_RENAMED: "renamed",
    pygit2.GIT_DELTA_COPIED: "copied",
    pygit2.GIT_DELTA_TYPECHANGE: "typechange",
}


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """One delta of a diff, keyed by its head-side path."""

    path: str
    old_path: str | None
    status: DeltaStatus
    hunks: tuple[DiffHunk, ...]


class GitRepository:
    """Owns a pygit2.Repository and answers the questions a batch run asks."""

    def __init__(self, repo_path: Path | str) -> None:
        self._path = Path(repo_path)
        try:
            self._repo = pygit2.Repository(str(self._path))
        except pygit2.GitError as e:
            raise NotARepositoryError.at(str(self._path)) from e

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    @property
    def path(self) -> Path:
        """Working-tree root (the given path for bare repositories)."""
        return Path(self._repo.workdir) if self._repo.workdir else self._path

    def normalize_path(self, path: str | Path) -> str:
        p = Path(path)
        if p.is_absolute():
            with contextlib.suppress(ValueError):
                p = p.relative_to(self.path)
        return p.as_posix()

    def resolve_commit(self, ref: str) -> pygit2.Commit:
        try:
            obj, _ = self._repo.resolve_refish(ref)
        except (pygit2.GitError, KeyError, ValueError) as e:
            raise RefNotFoundError.for_ref(ref) from e
        if isinstance(obj, pygit2.Tag):
            obj = obj.peel(pygit2.Commit)
        if not isinstance(obj, pygit2.Commit):
            raise RefNotFoundError.for_ref(f"{ref} is not a commit")
        return obj

    def read_file(self, ref: str, path: str) -> str | None:
        """Return the text of ``path`` at ``ref``, or None if it is absent there."""
        path = self.normalize_path(path)
        if ref == WORKING_TREE:
            file_path = self.path / path
            if not file_path.is_file():
                return None
            return file_path.read_bytes().decode("utf-8", errors="replace")

        tree = self.resolve_commit(ref).tree
        try:
            entry = tree[path]
        except KeyError:
            return None
        obj = self._repo.get(entry.id)
        if not isinstance(obj, pygit2.Blob):
            return None
        return obj.data.decode("utf-8", errors="replace")

    def diff(self, base_ref: str, head_ref: str) -> pygit2.Diff:
        base = self.resolve_commit(base_ref)
        try:
            if head_ref == WORKING_TREE:
                return base.tree.diff_to_workdir()
            return self._repo.diff(base, self.resolve_commit(head_ref))
        except pygit2.GitError as e:
            raise GitError.operation_failed("diff", str(e)) from e

    def changed_files(self, base_ref: str, head_ref: str) -> list[ChangedFile]:
        """Deltas between two refs, with unified-diff hunks per file."""
        result: list[ChangedFile] = []
        for patch in self.diff(base_ref, head_ref):
            delta = patch.delta
            status = _DELTA_STATUS_MAP.get(delta.status, "unknown")
            path = delta.old_file.path if status == "deleted" else delta.new_file.path
            old_path = None if status == "added" else delta.old_file.path
            hunks = tuple(
                DiffHunk.from_counts(h.old_start, h.old_lines, h.new_start, h.new_lines)
                for h in patch.hunks
            )
            result.append(ChangedFile(path=path, old_path=old_path, status=status, hunks=hunks))
        log.debug("diff_collected", base=base_ref, head=head_ref, files=len(result))
        return result
