"""Human-readable report rendered with rich."""

from __future__ import annotations

import io

from rich.console import Console
from rich.table import Table
from rich.text import Text

from semchange.analysis.changes import Severity
from semchange.pipeline.runner import AnalysisResult

_SEVERITY_STYLES = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "dim",
}

TOP_KINDS_SHOWN = 5


def _changes_table(result: AnalysisResult) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Location")
    table.add_column("Severity")
    table.add_column("Kind")
    table.add_column("Detail", overflow="fold")
    for item in result.changes:
        c = item.change
        style = _SEVERITY_STYLES[c.severity]
        table.add_row(
            Text(f"{item.file}:{c.line}:{c.column}"),
            Text(c.severity.value, style=style),
            c.kind.value,
            Text(c.detail),
        )
    return table


def render_console(result: AnalysisResult, console: Console) -> None:
    b = result.severity_breakdown
    console.print()
    console.print("[bold]Analysis Results[/bold]")
    console.print(f"  Files analyzed: {result.files_analyzed}")
    console.print(f"  Total changes: {result.total_changes}")
    console.print(f"  High severity: {b.get(Severity.HIGH, 0)}")
    console.print(f"  Medium severity: {b.get(Severity.MEDIUM, 0)}")
    console.print(f"  Low severity: {b.get(Severity.LOW, 0)}")
    console.print(f"  Tests required: {'Yes' if result.requires_tests else 'No'}")
    console.print(f"  {result.summary}", markup=False)

    if result.changes:
        console.print()
        console.print(_changes_table(result))

    if result.failed_files:
        console.print()
        console.print(f"[red]Failed to analyze {len(result.failed_files)} files:[/red]")
        for failed in result.failed_files:
            console.print(f"  - {failed.file_path}: {failed.error}", markup=False)

    if result.top_change_types:
        console.print()
        console.print("[bold]Top change types:[/bold]")
        for stat in result.top_change_types[:TOP_KINDS_SHOWN]:
            console.print(f"  {stat.kind.value}: {stat.count} ({stat.max_severity.value})")


def format_console(result: AnalysisResult, width: int = 120) -> str:
    """Render to plain text (no colors), for files and tests."""
    buffer = io.StringIO()
    render_console(result, Console(file=buffer, width=width, no_color=True, highlight=False))
    return buffer.getvalue()
