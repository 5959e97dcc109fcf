"""
Terminal output for comparison runs.
Single responsibility: render run results with Rich.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.markup import escape
from rich.text import Text
from rich import box

from ..pipeline.runner import ComparisonResult


class ResultPrinter:
    """
    Render a ComparisonResult as a summary table.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def header(self, title: str = "Record Diff"):
        self.console.print(Panel(
            Text(title, justify="center", style="bold cyan"),
            box=box.DOUBLE,
            style="cyan"
        ))

    def result(self, result: ComparisonResult):
        table = Table(title=f"Changes ({result.strategy})", box=box.ROUNDED)
        table.add_column("Classification", style="bold")
        table.add_column("Rows", justify="right")

        table.add_row("[green]Add[/green]", f"{result.added:,}")
        table.add_row("[yellow]Update[/yellow]", f"{result.updated:,}")
        table.add_row("[red]Delete[/red]", f"{result.deleted:,}")
        table.add_row("[dim]None[/dim]", f"{result.unchanged:,}")
        self.console.print(table)

        if result.column_mismatches:
            columns = Table(title="Mismatches by column", box=box.SIMPLE)
            columns.add_column("Column")
            columns.add_column("Mismatches", justify="right")
            for column in result.columns:
                count = result.column_mismatches.get(column, 0)
                if count:
                    columns.add_row(escape(column), f"{count:,} of {result.matched_pairs:,}")
            self.console.print(columns)

        for duplicate in result.duplicates:
            self.console.print(
                f"[yellow]Duplicate anchor kept first occurrence[/yellow] {escape(duplicate.describe())}"
            )

        if result.report_path:
            self.console.print(f"[bold green]Report written:[/bold green] {escape(result.report_path)}")
        else:
            self.console.print("[bold]No changes found, no report written[/bold]")

    def error(self, message: str):
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")
