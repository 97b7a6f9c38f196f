"""Diff hunks and hunk scoping of change records."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from semchange.analysis.changes import SemanticChange

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass(frozen=True, slots=True)
class LineRange:
    """Inclusive 1-indexed line range."""

    start: int
    end: int

    def __contains__(self, line: object) -> bool:
        return isinstance(line, int) and self.start <= line <= self.end


@dataclass(frozen=True, slots=True)
class DiffHunk:
    base: LineRange
    head: LineRange

    @classmethod
    def from_counts(
        cls, old_start: int, old_lines: int, new_start: int, new_lines: int
    ) -> DiffHunk:
        """Build a hunk from unified-diff header numbers.

        A zero-length side (pure insertion or deletion) covers the single
        line it is anchored at.
        """
        return cls(
            base=LineRange(old_start, old_start + max(old_lines, 1) - 1),
            head=LineRange(new_start, new_start + max(new_lines, 1) - 1),
        )


def parse_unified_diff(text: str) -> list[DiffHunk]:
    """Extract hunks from ``@@ -a,b +c,d @@`` headers of a unified diff."""
    hunks = []
    for line in text.splitlines():
        match = _HUNK_HEADER.match(line)
        if match is None:
            continue
        old_start, old_lines, new_start, new_lines = match.groups()
        hunks.append(
            DiffHunk.from_counts(
                int(old_start),
                int(old_lines) if old_lines is not None else 1,
                int(new_start),
                int(new_lines) if new_lines is not None else 1,
            )
        )
    return hunks


def is_base_located(change: SemanticChange) -> bool:
    """Removal records point into the base version."""
    return change.kind.value.endswith("Removed")


def scope_to_hunks(
    changes: Iterable[SemanticChange], hunks: list[DiffHunk] | None
) -> list[SemanticChange]:
    """Keep changes that fall inside a hunk.

    File-level records (``SourceFile``) are always kept. Removal records
    are checked against base ranges, everything else against head ranges.
    With no hunks every change is kept.
    """
    changes = list(changes)
    if not hunks:
        return changes
    kept = []
    for change in changes:
        if change.ast_node == "SourceFile":
            kept.append(change)
        elif is_base_located(change):
            if any(change.line in hunk.base for hunk in hunks):
                kept.append(change)
        elif any(change.line in hunk.head for hunk in hunks):
            kept.append(change)
    return kept
