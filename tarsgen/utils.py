"""Shared utility functions for tarsgen.

Provides the shared Rich console plus the small formatting and reporting
helpers used by the generator components and the CLI.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a generator run time for the summary table.

    Generator runs are usually well under a second, so those are shown in
    milliseconds.

    Examples::

        format_duration(0.25)  -> "250ms"
        format_duration(3.7)   -> "3.7s"
        format_duration(65.2)  -> "1m 5s"
    """
    if seconds <= 0:
        return "0ms"
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(
    rows: list[list[str]],
    columns: list[str],
    title: str = "Summary",
) -> None:
    """Print a multi-column summary table.

    Args:
        rows: Table rows, one list of cell strings per row.
        columns: Column headings. The first column is rendered dim.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for index, column in enumerate(columns):
        if index == 0:
            table.add_column(column, style="dim", no_wrap=True)
        else:
            table.add_column(column)

    for row in rows:
        table.add_row(*(str(cell) for cell in row))

    console.print(table)
    console.print()


# Messages are plain text; square brackets in them are never parsed as markup.


def print_success(message: str) -> None:
    console.print(Text(message, style="bold green"))


def print_error(message: str) -> None:
    console.print(Text(message, style="bold red"))


def print_warning(message: str) -> None:
    console.print(Text(message, style="bold yellow"))
