"""Whitespace normalization for textual comparisons."""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Collapse whitespace runs (newlines included) to one space and trim.

    Idempotent: ``normalize(normalize(t)) == normalize(t)``.
    """
    return _WHITESPACE.sub(" ", text).strip()
