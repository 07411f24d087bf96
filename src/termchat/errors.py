"""Exception types raised by termchat."""

from __future__ import annotations

from dataclasses import dataclass


class TermchatError(Exception):
    """Base class for termchat errors."""


@dataclass
class ConfirmationPendingError(TermchatError):
    """Raised when a second confirmation is requested while one is outstanding.

    The broker holds a single question at a time. Callers must await the
    current answer before asking again.
    """

    pending_command: str

    def __str__(self) -> str:
        return f"A confirmation is already pending for: {self.pending_command}"


@dataclass
class OverlayTransitionError(TermchatError):
    """Raised on an overlay-to-overlay transition that skips 'none'."""

    current: str
    requested: str

    def __str__(self) -> str:
        return (
            f"Cannot open overlay '{self.requested}' while '{self.current}' is open; "
            "close it first"
        )


class EngineNotReadyError(TermchatError):
    """Raised when an operation requires a live engine and none exists."""
