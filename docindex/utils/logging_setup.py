"""Logging setup shared by the CLI and the web API."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING") -> None:
    """Route ``docindex`` log records through a rich stderr handler."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root = logging.getLogger("docindex")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
