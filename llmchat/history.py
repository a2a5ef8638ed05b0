"""Line editing, command completion and persistent input history."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from .logging import get_logger

LOGGER = get_logger(__name__)

try:
    import readline
except ImportError:  # pragma: no cover - Windows without pyreadline
    readline = None


class LineHistory:
    """Records submitted lines and persists them between sessions.

    Automatic readline history is disabled so that only lines the REPL chooses
    to record (non-blank input) end up in the history file.
    """

    def __init__(self, path: Optional[Path], *, max_entries: int = 1000) -> None:
        self.path = path
        self.max_entries = max_entries
        self.entries: List[str] = []

    def setup(self, commands: Iterable[str] = ()) -> None:
        if readline is None:
            return
        completions = sorted(commands)

        def _complete(text: str, state: int) -> Optional[str]:
            options = [command for command in completions if command.startswith(text)]
            return options[state] if state < len(options) else None

        readline.set_completer_delims(" \t\n")
        readline.set_completer(_complete)
        readline.parse_and_bind("tab: complete")
        if hasattr(readline, "set_auto_history"):
            readline.set_auto_history(False)
        readline.set_history_length(self.max_entries)
        self.load()

    def load(self) -> None:
        if readline is None or self.path is None or not self.path.exists():
            return
        try:
            readline.read_history_file(str(self.path))
        except OSError as exc:
            LOGGER.warning("Failed to load command history from %s: %s", self.path, exc)

    def add(self, line: str) -> None:
        self.entries.append(line)
        if readline is not None:
            readline.add_history(line)

    def save(self) -> None:
        if readline is None or self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            readline.write_history_file(str(self.path))
        except OSError as exc:
            LOGGER.error("Failed to save command history to %s: %s", self.path, exc)
