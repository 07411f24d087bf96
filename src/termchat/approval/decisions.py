"""Approval policies, review decisions and confirmation payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ApprovalPolicy(Enum):
    """How much the agent may do without asking.

    - SUGGEST: every side-effecting action needs a confirmation
    - AUTO_EDIT: file edits are applied, commands still need a confirmation
    - FULL_AUTO: everything runs without asking, inside the sandbox
    """

    SUGGEST = "suggest"
    AUTO_EDIT = "auto-edit"
    FULL_AUTO = "full-auto"


# Display colour per policy for the rendering layer (None = default colour)
POLICY_COLORS: dict[ApprovalPolicy, str | None] = {
    ApprovalPolicy.SUGGEST: None,
    ApprovalPolicy.AUTO_EDIT: "greenBright",
    ApprovalPolicy.FULL_AUTO: "green",
}


class ReviewDecision(Enum):
    """A human's answer to a confirmation question."""

    YES = "yes"  # Approve once
    ALWAYS = "always"  # Approve for the rest of the session
    NO_EXIT = "no-exit"  # Deny and stop
    NO_CONTINUE = "no-continue"  # Deny, with a message telling the agent what to do instead
    EXPLAIN = "explain"  # Ask for an explanation, then decide

    @property
    def is_terminal(self) -> bool:
        """False only for EXPLAIN, which leads to a second round."""
        return self is not ReviewDecision.EXPLAIN


@dataclass(frozen=True)
class ApplyPatchCommand:
    """A structured file patch the agent wants to apply."""

    patch: str


@dataclass(frozen=True)
class ConfirmationRequest:
    """The question shown to the human."""

    command: tuple[str, ...]
    display: str
    explanation: str | None = None
    apply_patch: ApplyPatchCommand | None = None


@dataclass(frozen=True)
class ConfirmationResult:
    """What the human answered to one question."""

    decision: ReviewDecision
    custom_deny_message: str | None = None


@dataclass(frozen=True)
class CommandConfirmation:
    """The final answer handed back to the engine.

    `review` is never EXPLAIN.
    """

    review: ReviewDecision
    custom_deny_message: str | None = None
    apply_patch: ApplyPatchCommand | None = None
    explanation: str | None = None
