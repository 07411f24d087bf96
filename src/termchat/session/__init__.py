"""Agent session supervision: engine lifecycle, transcript and UI state."""

from termchat.session.controller import INTERRUPT_NOTICE, SessionController
from termchat.session.engine import EngineFactory, EngineOptions, ExecutionEngine
from termchat.session.identity import SessionIdentity
from termchat.session.notifier import DesktopNotifier, NotificationGate, make_preview
from termchat.session.overlay import OverlayMode, OverlayStateMachine
from termchat.session.storage import RolloutStore
from termchat.session.timer import BusyTimer
from termchat.session.transcript import (
    ItemRole,
    Transcript,
    TranscriptItem,
    get_text_content,
    system_item,
)

__all__ = [
    "SessionController",
    "INTERRUPT_NOTICE",
    "SessionIdentity",
    "EngineFactory",
    "EngineOptions",
    "ExecutionEngine",
    "BusyTimer",
    "NotificationGate",
    "DesktopNotifier",
    "make_preview",
    "OverlayMode",
    "OverlayStateMachine",
    "RolloutStore",
    "ItemRole",
    "Transcript",
    "TranscriptItem",
    "get_text_content",
    "system_item",
]
