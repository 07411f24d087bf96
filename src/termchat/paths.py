"""Path display helpers."""

from __future__ import annotations

import os
from pathlib import Path


def shorten_path(path: str, max_length: int = 40) -> str:
    """Replace the home directory with ~ and elide leading components until it fits."""
    home = str(Path.home())
    if path == home or path.startswith(home + os.sep):
        path = "~" + path[len(home):]
    if len(path) <= max_length:
        return path

    parts = path.split(os.sep)
    for start in range(1, len(parts)):
        candidate = os.sep.join(["...", *parts[start:]])
        if len(candidate) <= max_length:
            return candidate
    return path[-max_length:]


def short_cwd(max_length: int = 40) -> str:
    """Shortened current working directory (the notification subtitle)."""
    return shorten_path(os.getcwd(), max_length)
