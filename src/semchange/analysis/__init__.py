"""Semantic change analysis: change model, matching primitives, analyzers."""

from semchange.analysis.changes import (
    CHANGE_KIND_GROUPS,
    ChangeKind,
    ChangeKindGroup,
    SemanticChange,
    Severity,
    group_of,
)
from semchange.analysis.matching import FifoMultimap, match_buckets, match_by_position
from semchange.analysis.normalize import normalize

__all__ = [
    "CHANGE_KIND_GROUPS",
    "ChangeKind",
    "ChangeKindGroup",
    "FifoMultimap",
    "SemanticChange",
    "Severity",
    "group_of",
    "match_buckets",
    "match_by_position",
    "normalize",
]
