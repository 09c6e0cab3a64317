"""Rich-powered summary tables, written to stderr so stdout stays line protocol."""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table

from ..aggregators.counter import ResultCounter

_console = Console(stderr=True)


def print_summary_table(
    counter: ResultCounter,
    title: str = "Conversion summary",
    console: Console | None = None,
) -> None:
    """Render a ResultCounter as a Rich table.

    Error kinds are listed under the totals, most frequent first.
    """
    out = console or _console
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Lines", style="bold")
    table.add_column("Count", justify="right", style="cyan")

    table.add_row("processed", str(counter.total))
    table.add_row("emitted", str(counter.emitted), style="green")
    table.add_row("skipped", str(counter.skipped), style="dim")
    table.add_row("errors", str(counter.errors), style="red" if counter.errors else "")
    for kind, count in counter.top_errors():
        table.add_row(f"  {kind}", str(count), style="yellow")

    out.print(table)
