"""Logging setup for the CLI."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = 'WARNING', console: Optional[Console] = None) -> None:
    """Route log records through rich so they share the CLI console."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=True))
