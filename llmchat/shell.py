"""Execution of ``!`` shell escapes typed at the prompt."""

from __future__ import annotations

import subprocess

from rich.console import Console
from rich.markup import escape

from .logging import get_logger

LOGGER = get_logger(__name__)

SHELL_COMMAND_USAGE = "Usage: !<shell_command>"


def run_shell_command(command: str, console: Console) -> int:
    """Run *command* through the platform shell and echo its output.

    Returns the exit status, or -1 when the command could not be started.
    """

    command = command.strip()
    if not command:
        console.print(f"[warning]{escape(SHELL_COMMAND_USAGE)}[/warning]")
        return -1

    console.print(f"[muted]Executing: {escape(command)}[/muted]")
    try:
        completed = subprocess.run(command, shell=True, capture_output=True, text=True, check=False)
    except OSError as exc:
        LOGGER.error("Failed to execute command '%s': %s", command, exc)
        console.print(f"[error]Error executing command: {escape(str(exc))}[/error]")
        return -1

    if completed.stdout:
        console.out(completed.stdout, end="", highlight=False)
    if completed.stderr:
        console.out(completed.stderr, end="", style="warning", highlight=False)
    if completed.returncode != 0:
        console.print(f"[error]Command exited with status: {completed.returncode}[/error]")
    return completed.returncode
