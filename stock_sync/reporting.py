"""Run statistics and console summary."""

from typing import List, Optional
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ProcessingStats, SyncOutcome, SyncResult


class Reporter:
    """Collects sync results and prints the run summary."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.stats = ProcessingStats()
        self.failures: List[SyncResult] = []

    def record_ingestion(self, total_rows: int, valid_records: int, skipped_rows: int) -> None:
        """Store the feed row counts."""
        self.stats.total_rows = total_rows
        self.stats.valid_records = valid_records
        self.stats.skipped_rows = skipped_rows

    def add_result(self, result: SyncResult) -> None:
        """Add a sync result to statistics and failures tracking."""
        self.stats.add_result(result)

        if result.outcome == SyncOutcome.FAILED:
            self.failures.append(result)

    def add_results(self, results: List[SyncResult]) -> None:
        for result in results:
            self.add_result(result)

    def print_summary(self) -> None:
        """Print a summary of the processing results."""
        table = Table(title="STOCK SYNC SUMMARY", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Count", justify="right", style="green")

        table.add_row("Feed Rows", str(self.stats.total_rows))
        table.add_row("Valid Records", str(self.stats.valid_records))
        table.add_row("Skipped Rows", str(self.stats.skipped_rows))
        table.add_row("Stock Updated", str(self.stats.applied))
        table.add_row("Not Found", str(self.stats.skipped_not_found))
        table.add_row("No Inventory Item", str(self.stats.skipped_no_inventory_target))
        table.add_row("Failed", str(self.stats.failed))
        table.add_row("Retries", str(self.stats.retries))

        self.console.print(table)

        if self.failures:
            self.console.print(f"\n[red]Found {len(self.failures)} errors:[/red]")
            error_table = Table(show_header=True, header_style="bold red")
            error_table.add_column("EAN", style="yellow")
            error_table.add_column("Attempts", justify="right", style="cyan")
            error_table.add_column("Error", style="red")

            for failure in self.failures[:10]:
                error = failure.error or ""
                error_table.add_row(
                    escape(failure.barcode),
                    str(failure.attempts),
                    escape(error[:80] + "..." if len(error) > 80 else error)
                )

            if len(self.failures) > 10:
                error_table.add_row("...", "...", f"and {len(self.failures) - 10} more errors")

            self.console.print(error_table)
