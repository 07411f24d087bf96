"""Overlay mode state machine.

Exactly one mode is active. NONE is the initial state and the state every
overlay returns to on exit. Overlays are only opened from NONE; there is
no direct overlay-to-overlay transition.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from termchat.errors import OverlayTransitionError
from termchat.logging import get_logger

log = get_logger("session.overlay")


class OverlayMode(Enum):
    NONE = "none"
    HISTORY = "history"
    MODEL = "model"
    APPROVAL = "approval"
    HELP = "help"
    DIFF = "diff"
    MCP = "mcp"


class OverlayStateMachine:
    """Current overlay mode plus the open/close transitions."""

    def __init__(self, on_change: Callable[[OverlayMode], None] | None = None) -> None:
        self._mode = OverlayMode.NONE
        self._on_change = on_change

    @property
    def mode(self) -> OverlayMode:
        return self._mode

    @property
    def input_enabled(self) -> bool:
        """Input submission and interrupt only work with no overlay open."""
        return self._mode is OverlayMode.NONE

    def open(self, mode: OverlayMode) -> None:
        """Open an overlay.

        Raises:
            OverlayTransitionError: If another overlay is open, or `mode` is NONE.
        """
        if mode is OverlayMode.NONE or self._mode is not OverlayMode.NONE:
            raise OverlayTransitionError(current=self._mode.value, requested=mode.value)
        self._set(mode)

    def close(self) -> None:
        """Exit action of every overlay; a no-op when nothing is open."""
        if self._mode is not OverlayMode.NONE:
            self._set(OverlayMode.NONE)

    def open_history(self) -> None:
        self.open(OverlayMode.HISTORY)

    def open_model(self) -> None:
        self.open(OverlayMode.MODEL)

    def open_approval(self) -> None:
        self.open(OverlayMode.APPROVAL)

    def open_help(self) -> None:
        self.open(OverlayMode.HELP)

    def open_diff(self) -> None:
        self.open(OverlayMode.DIFF)

    def open_mcp(self) -> None:
        self.open(OverlayMode.MCP)

    def _set(self, mode: OverlayMode) -> None:
        log.debug("Overlay %s -> %s", self._mode.value, mode.value)
        self._mode = mode
        if self._on_change is not None:
            self._on_change(mode)
