"""Report formatters."""

from collections.abc import Callable
from typing import Literal

from semchange.formatters.console import format_console
from semchange.formatters.github_actions import format_github_actions, write_github_output
from semchange.formatters.json_report import format_json
from semchange.formatters.machine import format_machine
from semchange.pipeline.runner import AnalysisResult

OutputFormat = Literal["console", "json", "github-actions", "machine"]

FORMATTERS: dict[str, Callable[[AnalysisResult], str]] = {
    "console": format_console,
    "json": format_json,
    "github-actions": lambda result: "\n".join(format_github_actions(result)),
    "machine": lambda result: "\n".join(format_machine(result)),
}


def render(result: AnalysisResult, fmt: OutputFormat) -> str:
    return FORMATTERS[fmt](result)


__all__ = [
    "FORMATTERS",
    "OutputFormat",
    "format_console",
    "format_github_actions",
    "format_json",
    "format_machine",
    "render",
    "write_github_output",
]
