"""
Human-readable text output formatter.
"""

from io import StringIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from diff_view_engine.models.diff import ChangeType, FileDiffRecord
from diff_view_engine.models.report import DiffReport
from diff_view_engine.output.formatters import BaseFormatter, register_formatter


@register_formatter("text")
class TextFormatter(BaseFormatter):
    """
    Format output as human-readable text using Rich.
    """

    def __init__(self, colorize: bool = True) -> None:
        """
        Initialize the text formatter.

        Args:
            colorize: Whether to use colors in output.
        """
        self.colorize = colorize

    def _change_style(self, change_type: ChangeType) -> str:
        """Get the style for a change type."""
        if not self.colorize:
            return ""

        styles = {
            ChangeType.ADDED: "green",
            ChangeType.DELETED: "red",
            ChangeType.RENAMED: "cyan",
            ChangeType.MODIFIED: "yellow",
        }
        return styles.get(change_type, "")

    def _change_marker(self, change_type: ChangeType) -> str:
        """Get a one-letter marker for a change type, like git status."""
        markers = {
            ChangeType.ADDED: "A",
            ChangeType.DELETED: "D",
            ChangeType.RENAMED: "R",
            ChangeType.MODIFIED: "M",
        }
        return markers.get(change_type, "?")

    def _records_table(self, records: list[FileDiffRecord]) -> Table:
        table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
        table.add_column("", width=1)
        table.add_column("File")
        table.add_column("+", justify="right")
        table.add_column("-", justify="right")
        table.add_column("Notes", style="dim")

        for record in records:
            style = self._change_style(record.change_type)
            notes = []
            if record.is_binary:
                notes.append("binary")
            if not record.is_valid:
                notes.append(f"degraded: {record.invalid_reason}")
            if record.change_type == ChangeType.RENAMED:
                notes.append(f"from {record.old_path}")

            table.add_row(
                f"[{style}]{self._change_marker(record.change_type)}[/{style}]" if style
                else self._change_marker(record.change_type),
                record.display_path,
                "[green]" + str(record.additions) + "[/green]" if self.colorize else str(record.additions),
                "[red]" + str(record.deletions) + "[/red]" if self.colorize else str(record.deletions),
                ", ".join(notes),
            )
        return table

    def format(self, report: DiffReport) -> str:
        """Format a diff report as text."""
        output = StringIO()
        console = Console(file=output, force_terminal=self.colorize, width=120)

        # Header
        console.print()
        console.print(
            Panel.fit(
                "[bold]Diff View Engine[/bold]\n"
                "Diff Summary",
                border_style="blue",
            )
        )
        console.print()

        # Summary
        stats = report.stats
        console.print("[bold]Summary[/bold]")
        console.print(f"  Diff Source: {report.diff_source}")
        console.print(f"  Files Changed: {stats.file_count}")
        console.print(f"  Lines: +{stats.additions} -{stats.deletions}")
        if report.binary_count:
            console.print(f"  Binary Files: {report.binary_count}")
        if report.parse_duration_ms is not None:
            console.print(f"  Parse Time: {report.parse_duration_ms:.2f}ms")
        console.print()

        if report.records:
            console.print("[bold]Files[/bold]")
            console.print(self._records_table(report.records))
            console.print()
        else:
            console.print("[green]No changes.[/green]")
            console.print()

        invalid = report.invalid_records
        if invalid:
            console.print(f"[bold yellow]⚠️  {len(invalid)} file(s) with truncated or malformed diffs[/bold yellow]")
            for record in invalid:
                console.print(f"  📄 [cyan]{record.display_path}[/cyan]: {record.invalid_reason}")
            console.print()

        return output.getvalue()

    def format_records(self, records: list[FileDiffRecord]) -> str:
        """Format a list of records as text."""
        output = StringIO()
        console = Console(file=output, force_terminal=self.colorize, width=120)

        console.print(f"[bold]Files ({len(records)})[/bold]")
        console.print(self._records_table(records))

        return output.getvalue()
