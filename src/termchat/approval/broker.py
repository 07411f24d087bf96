"""Single-slot mailbox between the engine and the human.

The engine calls `ask()` and is suspended until the input layer calls
`answer()`. There is no timeout. Only one question can be outstanding;
a second `ask()` while one is pending raises ConfirmationPendingError.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from termchat.approval.decisions import (
    ConfirmationRequest,
    ConfirmationResult,
    ReviewDecision,
)
from termchat.errors import ConfirmationPendingError
from termchat.logging import get_logger

log = get_logger("approval.broker")


class ConfirmationBroker:
    """Holds at most one pending confirmation and resolves it exactly once.

    Attributes:
        pending: The outstanding question, or None.
    """

    def __init__(self, on_change: Callable[[ConfirmationRequest | None], None] | None = None) -> None:
        """Initialize the broker.

        Args:
            on_change: Called with the new pending request (or None)
                whenever the slot is filled or cleared.
        """
        self._pending: ConfirmationRequest | None = None
        self._future: asyncio.Future[ConfirmationResult] | None = None
        self._on_change = on_change

    @property
    def pending(self) -> ConfirmationRequest | None:
        return self._pending

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def set_listener(self, on_change: Callable[[ConfirmationRequest | None], None] | None) -> None:
        self._on_change = on_change

    async def ask(self, request: ConfirmationRequest) -> ConfirmationResult:
        """Raise a question and wait for the human's answer.

        Raises:
            ConfirmationPendingError: If another question is outstanding.
        """
        if self._pending is not None:
            raise ConfirmationPendingError(pending_command=self._pending.display)

        future: asyncio.Future[ConfirmationResult] = asyncio.get_running_loop().create_future()
        self._pending = request
        self._future = future
        log.debug("Confirmation requested: %s", request.display)
        self._notify()

        try:
            return await future
        finally:
            # Cancellation of the asking task also frees the slot
            if self._future is future:
                self._pending = None
                self._future = None
                self._notify()

    def answer(
        self,
        decision: ReviewDecision,
        custom_deny_message: str | None = None,
    ) -> bool:
        """Resolve the pending question.

        Returns:
            True if a question was resolved, False if nothing was pending.
        """
        future = self._future
        if future is None or future.done():
            log.debug("answer(%s) ignored: nothing pending", decision.value)
            return False

        log.debug("Confirmation answered: %s", decision.value)
        self._clear()
        future.set_result(ConfirmationResult(decision, custom_deny_message))
        return True

    def abandon(self, reason: str = "Session ended before a decision was made.") -> bool:
        """Force-resolve the pending question as a denial.

        Used on teardown so a suspended engine call never leaks.
        """
        if self._future is None:
            return False
        log.info("Abandoning pending confirmation: %s", reason)
        return self.answer(ReviewDecision.NO_EXIT, reason)

    def _clear(self) -> None:
        self._pending = None
        self._future = None
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._pending)
