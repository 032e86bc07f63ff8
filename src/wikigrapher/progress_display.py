"""
Rich live progress for long dump passes.

ProgressSink is a DiagnosticsSink that keeps a small live panel updated
(pages, good/bad edges, warnings, elapsed time, rate) instead of scrolling
a progress line every N pages. Warnings and errors are still forwarded to
logging so they end up in any configured log file.
"""

import time
from typing import Any, Dict, Optional

from rich import box
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .diagnostics import DiagnosticsSink, LoggingSink
from .errors import WikigrapherError


class ProgressSink:
    """
    Context manager that displays live counters while a pass runs.

    Usage:
        with ProgressSink("Building title mapping") as sink:
            mapping = build_title_mapping(dump_path, sink=sink)
    """

    def __init__(
        self,
        title: str = "Progress",
        forward: Optional[DiagnosticsSink] = None,
        refresh_per_second: int = 4,
        rate_metric: str = "pages processed",
    ):
        """
        Args:
            title: Title for the progress panel
            forward: Sink that also receives every event (default: logging)
            refresh_per_second: How often rich redraws the panel
            rate_metric: Counter used for the per-second rate
        """
        self.title = title
        self.forward = forward if forward is not None else LoggingSink()
        self.refresh_per_second = refresh_per_second
        self.rate_metric = rate_metric

        self.metrics: Dict[str, Any] = {}
        self.warnings = 0
        self.errors = 0
        self.live: Optional[Live] = None
        self.start_time: float = 0

    def __enter__(self):
        self.start_time = time.time()
        self.live = Live(self._make_panel(), refresh_per_second=self.refresh_per_second)
        self.live.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.live:
            self.live.update(self._make_panel())
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None
        return False

    # DiagnosticsSink

    def warning(self, message: str) -> None:
        self.warnings += 1
        self.forward.warning(message)
        self._refresh()

    def error(self, error: WikigrapherError) -> None:
        self.errors += 1
        self.forward.error(error)
        self._refresh()

    def progress(self, name: str, count: int) -> None:
        self.metrics[name] = count
        self._refresh()

    def _refresh(self) -> None:
        if self.live:
            self.live.update(self._make_panel())

    def _rows(self):
        elapsed = time.time() - self.start_time if self.start_time else 0.0
        yield "Elapsed", format_elapsed(elapsed)
        for key, value in self.metrics.items():
            yield key.capitalize(), f"{value:,}"
        count = self.metrics.get(self.rate_metric)
        if count and elapsed > 0:
            yield "Rate", f"{count / elapsed:,.1f}/s"
        yield "Warnings", f"{self.warnings:,}"
        yield "Errors", f"{self.errors:,}"

    def _make_panel(self) -> Panel:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(justify="left", no_wrap=True)
        grid.add_column(justify="right", no_wrap=True)

        for label, value in self._rows():
            grid.add_row(Text(f"{label}:", style="bold grey50"), Text(value, style="bright_cyan"))

        return Panel(grid, title=self.title, box=box.SIMPLE, border_style="bright_black")


def format_elapsed(seconds: float) -> str:
    """Format seconds as HH:MM:SS, or MM:SS under an hour."""
    if seconds >= 3600:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours:02d}:{minutes:02d}:{int(seconds % 60):02d}"
    return f"{int(seconds // 60):02d}:{int(seconds % 60):02d}"
