"""Console output formatting."""

from typing import Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Writes user-facing messages to the console.

    Regular messages go to stdout, warnings and errors to stderr. In quiet
    mode only warnings and errors are shown.
    """

    def __init__(
        self,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize the formatter.

        Args:
            quiet: Suppress non-essential output
            console: Console for regular output (default: stdout)
            err_console: Console for warnings and errors (default: stderr)
        """
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if self.quiet:
            return
        self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if self.quiet:
            return
        self.console.print(message, style="cyan", markup=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if self.quiet:
            return
        self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning. Shown even in quiet mode."""
        self.err_console.print(f"Warning: {message}", style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error. Shown even in quiet mode."""
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)

    def print_summary(self, title: str, rows: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            rows: (label, value) pairs
        """
        if self.quiet:
            return
        table = Table(title=title, show_header=False, title_justify="left")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for label, value in rows:
            table.add_row(label, value)
        self.console.print(table)
