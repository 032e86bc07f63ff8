"""
Diagnostics sinks.

The readers and builders never log directly. They report through a
DiagnosticsSink so callers (and tests) decide where warnings, recoverable
errors and progress counters end up.
"""

import logging
from typing import Protocol

from .errors import WikigrapherError


logger = logging.getLogger(__name__)


class DiagnosticsSink(Protocol):
    """Receiver for non-fatal events raised during a pass."""

    def warning(self, message: str) -> None:
        """Structural irregularity that was tolerated."""
        ...

    def error(self, error: WikigrapherError) -> None:
        """Recoverable error; the affected field, page or link was dropped."""
        ...

    def progress(self, name: str, count: int) -> None:
        """Periodic counter update (pages processed, good edges, ...)."""
        ...


class LoggingSink:
    """Default sink: forwards everything to the standard logging module."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def warning(self, message: str) -> None:
        self.log.warning(message)

    def error(self, error: WikigrapherError) -> None:
        self.log.error(str(error))

    def progress(self, name: str, count: int) -> None:
        self.log.info(f"{count:,} {name}")
