"""Rendering of agent commands for confirmation prompts."""

from __future__ import annotations

import shlex
from collections.abc import Sequence

# Wrappers the engine uses to run a script through a shell
_SHELL_WRAPPERS = {("bash", "-lc"), ("bash", "-c"), ("sh", "-c"), ("sh", "-lc")}


def format_command_for_display(command: Sequence[str]) -> str:
    """Render an argv list as a single shell-quoted line.

    `bash -lc "<script>"` shows just the script.
    """
    if len(command) == 3 and (command[0], command[1]) in _SHELL_WRAPPERS:
        return command[2]
    return shlex.join(command)
