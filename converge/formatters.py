"""
Rich output formatting for Converge run reports.

Symbols follow plan/apply conventions:
- `✓` converged
- `~` would converge (dry run)
- `✗` failed
- ` ` unchanged
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .report import Outcome, ResourceResult, RunReport

STYLES = {
    Outcome.UNCHANGED: "dim",
    Outcome.CONVERGED: "green",
    Outcome.PENDING: "yellow",
    Outcome.FAILED: "bold red",
}

SYMBOLS = {
    Outcome.UNCHANGED: " ",
    Outcome.CONVERGED: "✓",
    Outcome.PENDING: "~",
    Outcome.FAILED: "✗",
}


class ReportFormatter:
    """Renders a RunReport as a table followed by a one-line summary."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _details(self, result: ResourceResult) -> Text:
        parts = []
        if result.notified_by:
            parts.append(f"notified by {result.notified_by}")
        if result.reason:
            parts.append(result.reason)
        if result.outcome is Outcome.FAILED and result.best_effort:
            parts.append("best effort")
        style = STYLES[result.outcome] if result.outcome is Outcome.FAILED else "dim"
        return Text("; ".join(parts), style=style)

    def build_table(self, report: RunReport) -> Table:
        title = "Planned changes" if report.dry_run else "Run report"
        table = Table(title=title, show_lines=False, expand=False)
        table.add_column("", width=1)
        table.add_column("Resource", style="bright_white")
        table.add_column("Outcome")
        table.add_column("Details")

        for result in report.results:
            style = STYLES[result.outcome]
            name = f"  {result.name}" if result.notified_by else result.name
            table.add_row(
                Text(SYMBOLS[result.outcome], style=style),
                name,
                Text(result.outcome.value, style=style),
                self._details(result),
            )
        return table

    def summary_line(self, report: RunReport) -> Text:
        counts = {outcome: len(report.with_outcome(outcome)) for outcome in Outcome}
        text = Text()
        if report.dry_run:
            text.append(f"{counts[Outcome.PENDING]} to converge", style=STYLES[Outcome.PENDING])
        else:
            text.append(f"{counts[Outcome.CONVERGED]} converged", style=STYLES[Outcome.CONVERGED])
        text.append(", ")
        text.append(f"{counts[Outcome.UNCHANGED]} unchanged")
        text.append(", ")
        text.append(
            f"{counts[Outcome.FAILED]} failed",
            style=STYLES[Outcome.FAILED] if counts[Outcome.FAILED] else None,
        )
        if report.aborted:
            text.append(" (run aborted)", style=STYLES[Outcome.FAILED])
        return text

    def print_report(self, report: RunReport) -> None:
        self.console.print(self.build_table(report))
        self.console.print(self.summary_line(report))
