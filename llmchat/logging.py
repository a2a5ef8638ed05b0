"""Logging helpers for the chat client."""

from __future__ import annotations

import logging
from typing import Optional

from rich.logging import RichHandler

from .console import err_console


def configure_logging(level: str = "WARNING") -> None:
    """Route log records through a Rich handler on stderr.

    Logs stay off stdout so they never interleave with model answers.
    """

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # urllib3 is chatty at DEBUG and echoes full request lines.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "llmchat")
