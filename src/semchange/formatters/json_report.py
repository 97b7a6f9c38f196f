"""JSON serialization of an analysis report."""

from __future__ import annotations

import json

from semchange.pipeline.runner import AnalysisResult


def format_json(result: AnalysisResult, indent: int | None = 2) -> str:
    return json.dumps(result.to_dict(), indent=indent)
