"""Logging configuration for the bridge.

Diagnostics always go to stderr: stdout carries nothing but JSON-RPC messages.
"""

import logging
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel = "ERROR") -> None:
    """Send all log records at `level` or above to stderr.

    Args:
        level: the log level to use; `DEBUG` when the bridge runs with debug enabled
    """
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )

    logging.basicConfig(
        level=level,
        format="[MCP-BRIDGE] %(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
