"""Contract for the execution engine the session controller supervises.

The engine does the model-driven reasoning and proposes actions. This
package never implements it; it only constructs, feeds, cancels and
terminates it.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from termchat.approval.decisions import ApplyPatchCommand, ApprovalPolicy, CommandConfirmation
    from termchat.config.schema import Config
    from termchat.session.transcript import TranscriptItem

    # async (command, apply_patch) -> final decision
    ConfirmationRequester = Callable[
        [Sequence[str], ApplyPatchCommand | None], Awaitable[CommandConfirmation]
    ]


@dataclass(frozen=True)
class EngineOptions:
    """Everything an engine is constructed with.

    Attributes:
        model: Model identifier.
        config: Full configuration snapshot.
        instructions: Extra instructions text for the agent.
        approval_policy: Starting approval policy.
        writable_roots: Additional directories the agent may write to.
        on_item: Called for every output item the engine produces.
        on_loading: Called with True/False as the engine starts/stops working.
        get_command_confirmation: Awaited before any side-effecting action.
    """

    model: str
    config: Config
    instructions: str
    approval_policy: ApprovalPolicy
    writable_roots: tuple[str, ...]
    on_item: Callable[[TranscriptItem], None]
    on_loading: Callable[[bool], None]
    get_command_confirmation: ConfirmationRequester


@runtime_checkable
class ExecutionEngine(Protocol):
    """A running agent loop."""

    async def run(self, items: Sequence[TranscriptItem]) -> None:
        """Process a batch of input items until the turn is done."""
        ...

    def cancel(self) -> None:
        """Ask in-flight work to stop at its next checkpoint."""
        ...

    def terminate(self) -> None:
        """Stop for good. The engine is unusable afterwards."""
        ...

    def set_approval_policy(self, policy: ApprovalPolicy) -> None:
        """Change the approval policy without restarting."""
        ...


EngineFactory = Callable[[EngineOptions], ExecutionEngine]
