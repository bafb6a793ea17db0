"""Console output for the shopsync CLI."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormatter:
    """Writes user-facing messages, tables and JSON to the terminal.

    Informational output is suppressed in quiet mode; errors and warnings
    always go to stderr.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(escape(message))

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        self.err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {escape(message)}")

    def output_json(self, data: Any) -> None:
        """Print data as JSON regardless of quiet mode."""
        self.console.print_json(json.dumps(data, default=str))

    def output_table(
        self,
        rows: list[dict[str, Any]],
        columns: list[str],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a table, or as JSON when JSON output is enabled."""
        if self.json_output:
            self.output_json(rows)
            return

        table = Table(title=title)
        for column in columns:
            table.add_column(column.capitalize())
        for row in rows:
            table.add_row(*(escape(str(row.get(column, ""))) for column in columns))
        self.console.print(table)

    def print_summary(self, title: str, items: list[tuple[str, Any]]) -> None:
        """Print a titled list of label/value pairs."""
        if self.json_output:
            self.output_json({label: value for label, value in items})
            return
        if self.quiet:
            return
        self.console.print(f"\n[bold]{title}[/bold]")
        for label, value in items:
            self.console.print(f"  {label}: {escape(str(value))}")
