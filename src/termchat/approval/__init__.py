"""Human approval of agent actions: decisions, broker and explanations."""

from termchat.approval.broker import ConfirmationBroker
from termchat.approval.decisions import (
    POLICY_COLORS,
    ApplyPatchCommand,
    ApprovalPolicy,
    CommandConfirmation,
    ConfirmationRequest,
    ConfirmationResult,
    ReviewDecision,
)
from termchat.approval.explain import (
    ExplanationFailure,
    ExplanationService,
    classify_failure,
    failure_message,
)
from termchat.approval.format import format_command_for_display

__all__ = [
    "ApprovalPolicy",
    "POLICY_COLORS",
    "ReviewDecision",
    "ApplyPatchCommand",
    "ConfirmationRequest",
    "ConfirmationResult",
    "CommandConfirmation",
    "ConfirmationBroker",
    "ExplanationService",
    "ExplanationFailure",
    "classify_failure",
    "failure_message",
    "format_command_for_display",
]
