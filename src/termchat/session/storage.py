"""Rollout persistence.

Every time an engine output item is appended, the whole transcript is
written to:
  $ROOT/rollout-<created>-<session-id>.yaml

Writes are atomic (temp file + replace). Failures are logged and never
reach the session flow.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from termchat.logging import get_logger

if TYPE_CHECKING:
    from termchat.session.transcript import TranscriptItem

log = get_logger("storage")


def get_default_rollout_dir() -> Path:
    """~/.termchat/sessions, or $TERMCHAT_HOME/sessions."""
    home = os.environ.get("TERMCHAT_HOME")
    base = Path(home) if home else Path.home() / ".termchat"
    return base / "sessions"


class RolloutStore:
    """Saves transcript snapshots keyed by session id."""

    def __init__(self, root: Path | None = None, *, version: str = "") -> None:
        self._root = root or get_default_rollout_dir()
        self._version = version
        self._created: dict[str, datetime] = {}

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, session_id: str) -> Path:
        created = self._created.setdefault(session_id, datetime.now())
        return self._root / f"rollout-{created.strftime('%Y-%m-%dT%H-%M-%S')}-{session_id}.yaml"

    def save(self, session_id: str, items: Sequence[TranscriptItem]) -> Path | None:
        """Write the snapshot. Returns the path, or None if the write failed."""
        path = self.path_for(session_id)
        data: dict[str, Any] = {
            "session": {
                "id": session_id,
                "timestamp": self._created[session_id].isoformat(),
                "version": self._version,
            },
            "items": [item.to_dict() for item in items],
        }

        temp_path = path.with_suffix(".yaml.tmp")
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
            temp_path.replace(path)
        except OSError as e:
            log.warning("Failed to save rollout %s: %s", session_id, e)
            return None

        log.debug("Saved rollout %s (%d items)", session_id, len(items))
        return path

    def load(self, session_id: str) -> dict[str, Any] | None:
        """Read a saved rollout back."""
        matches = sorted(self._root.glob(f"rollout-*-{session_id}.yaml"))
        if not matches:
            return None
        with open(matches[-1], encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else None
