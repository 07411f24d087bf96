"""termchat: interactive command approval and agent session control for a terminal chat."""

__version__ = "0.1.0"

# Public API
from termchat.approval import (
    ApplyPatchCommand,
    ApprovalPolicy,
    CommandConfirmation,
    ConfirmationBroker,
    ConfirmationRequest,
    ConfirmationResult,
    ExplanationService,
    ReviewDecision,
)
from termchat.chat import (
    AnswerConfirmation,
    CloseOverlay,
    Command,
    Compact,
    Interrupt,
    OpenMCP,
    OpenOverlay,
    SelectApprovalPolicy,
    SelectModel,
    ShowDiff,
    SubmitInput,
    TerminalChat,
)
from termchat.config import Config, load_config, save_config
from termchat.errors import (
    ConfirmationPendingError,
    EngineNotReadyError,
    OverlayTransitionError,
    TermchatError,
)
from termchat.logging import get_logger, setup_logging
from termchat.session import (
    BusyTimer,
    EngineOptions,
    ExecutionEngine,
    ItemRole,
    NotificationGate,
    OverlayMode,
    OverlayStateMachine,
    SessionController,
    SessionIdentity,
    Transcript,
    TranscriptItem,
)

__all__ = [
    # Main entry point
    "TerminalChat",
    "Command",
    "SubmitInput",
    "Interrupt",
    "AnswerConfirmation",
    "OpenOverlay",
    "CloseOverlay",
    "SelectModel",
    "SelectApprovalPolicy",
    "ShowDiff",
    "OpenMCP",
    "Compact",
    # Approval
    "ApprovalPolicy",
    "ReviewDecision",
    "ApplyPatchCommand",
    "ConfirmationRequest",
    "ConfirmationResult",
    "CommandConfirmation",
    "ConfirmationBroker",
    "ExplanationService",
    # Session
    "SessionController",
    "SessionIdentity",
    "EngineOptions",
    "ExecutionEngine",
    "BusyTimer",
    "NotificationGate",
    "OverlayMode",
    "OverlayStateMachine",
    "ItemRole",
    "Transcript",
    "TranscriptItem",
    # Config
    "Config",
    "load_config",
    "save_config",
    # Errors
    "TermchatError",
    "ConfirmationPendingError",
    "OverlayTransitionError",
    "EngineNotReadyError",
    # Logging
    "setup_logging",
    "get_logger",
    "__version__",
]
