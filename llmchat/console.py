"""Rich consoles shared by the REPL and the logging handler."""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "green",
        "prompt": "bold green",
        "muted": "dim",
    }
)

console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


def make_console(**kwargs) -> Console:
    """Return a console using the application theme (tests pass ``file=``)."""

    return Console(theme=_THEME, **kwargs)


__all__ = ["console", "err_console", "make_console"]
