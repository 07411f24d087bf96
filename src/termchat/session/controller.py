"""Session controller: owns the single live execution engine.

The controller creates the engine, recreates it when the session
identity changes, and bridges the engine's confirmation requests to the
ConfirmationBroker. Recreation never happens while a confirmation round
trip is in progress; it is re-evaluated once the round trip ends.

Lifecycle:
    controller = SessionController(factory, identity, explainer=explainer)
    controller.ensure()                 # create the first engine
    controller.submit([user_item])      # schedule engine.run()
    controller.ensure(identity.with_model("o3"))  # recreate
    await controller.close()            # teardown, abandon pending question
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Sequence
from functools import partial
from typing import TYPE_CHECKING

from termchat.approval.broker import ConfirmationBroker
from termchat.approval.decisions import (
    ApplyPatchCommand,
    ApprovalPolicy,
    CommandConfirmation,
    ConfirmationRequest,
    ReviewDecision,
)
from termchat.approval.format import format_command_for_display
from termchat.logging import get_logger
from termchat.session.engine import EngineOptions
from termchat.session.transcript import Transcript, system_item

if TYPE_CHECKING:
    from termchat.approval.decisions import ConfirmationResult
    from termchat.approval.explain import ExplanationService
    from termchat.session.engine import EngineFactory, ExecutionEngine
    from termchat.session.identity import SessionIdentity
    from termchat.session.storage import RolloutStore
    from termchat.session.transcript import TranscriptItem

log = get_logger("session.controller")

INTERRUPT_NOTICE = "⏹️  Execution interrupted by user. You can continue typing."
ABANDONED_NOTICE = "Session ended before a decision was made."


class SessionController:
    """Creates, feeds and tears down the execution engine.

    Attributes:
        engine: The live engine, or None while initializing.
        session_id: Rollout id of the live engine.
        loading: True while the engine reports it is working.
        confirmation_pending: True for the whole confirmation round trip.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        identity: SessionIdentity,
        *,
        explainer: ExplanationService,
        broker: ConfirmationBroker | None = None,
        transcript: Transcript | None = None,
        rollout_store: RolloutStore | None = None,
    ) -> None:
        self._factory = engine_factory
        self._desired = identity
        self._explainer = explainer
        self._broker = broker or ConfirmationBroker()
        self._broker.set_listener(lambda _pending: self._emit())
        self._transcript = transcript if transcript is not None else Transcript()
        self._rollout_store = rollout_store

        self._engine: ExecutionEngine | None = None
        self._engine_identity: SessionIdentity | None = None
        self._session_id: str | None = None
        self._generation = 0

        self._loading = False
        self._bridging = 0
        self._recreate_deferred = False
        self._closed = False
        self._runs: set[asyncio.Task[None]] = set()
        self._listeners: list[Callable[[], None]] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def engine(self) -> ExecutionEngine | None:
        return self._engine

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def identity(self) -> SessionIdentity:
        """The most recently requested identity."""
        return self._desired

    @property
    def engine_identity(self) -> SessionIdentity | None:
        """The identity the live engine was built with."""
        return self._engine_identity

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def broker(self) -> ConfirmationBroker:
        return self._broker

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def confirmation_pending(self) -> bool:
        return self._bridging > 0 or self._broker.has_pending

    @property
    def pending_confirmation(self) -> ConfirmationRequest | None:
        """The question currently shown to the human, if any."""
        return self._broker.pending

    @property
    def is_initializing(self) -> bool:
        return self._engine is None

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call `listener` after every loading, confirmation or output change."""
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener()

    # -------------------------------------------------------------------------
    # Engine lifecycle
    # -------------------------------------------------------------------------

    def ensure(self, identity: SessionIdentity | None = None) -> bool:
        """Bring the live engine in line with `identity` (or the last one requested).

        A policy-only change is applied in place. Any other difference
        recreates the engine, unless a confirmation is pending, in which
        case nothing happens until the round trip ends.

        Returns:
            True if a new engine was constructed.
        """
        if self._closed:
            return False
        if identity is not None:
            self._desired = identity
        target = self._desired

        if self._engine is not None and self._engine_identity == target:
            self.update_policy_in_place(target.approval_policy)
            return False

        if self.confirmation_pending:
            log.debug("Skipping engine recreation: confirmation pending")
            self._recreate_deferred = True
            return False

        self._recreate_deferred = False

        self._teardown_engine()
        self._create_engine(target)
        self._emit()
        return True

    def update_policy_in_place(self, policy: ApprovalPolicy) -> bool:
        """Switch the live engine's approval policy without recreating it.

        Returns:
            True if the live engine's policy was changed.
        """
        self._desired = self._desired.with_policy(policy)
        if self._engine is None or self._engine_identity is None:
            return False
        if self._engine_identity.approval_policy is policy:
            return False

        self._engine.set_approval_policy(policy)
        self._engine_identity = self._engine_identity.with_policy(policy)
        log.info("Approval policy switched in place to %s", policy.value)
        return True

    def teardown(self) -> None:
        """Stop the live engine and clear the handle. Idempotent.

        A pending question is abandoned so the engine's confirmation call
        returns NO_EXIT instead of waiting on a human forever.
        """
        self._recreate_deferred = False
        abandoned = self._broker.abandon(ABANDONED_NOTICE)
        if self._engine is None:
            if abandoned:
                self._emit()
            return
        self._teardown_engine()
        self._emit()

    async def close(self) -> None:
        """Teardown for good: abandon the pending question and stop runs."""
        if self._closed:
            return
        self._closed = True
        self._broker.abandon(ABANDONED_NOTICE)
        self._teardown_engine()

        runs = list(self._runs)
        for task in runs:
            task.cancel()
        if runs:
            await asyncio.gather(*runs, return_exceptions=True)
        self._emit()

    def _create_engine(self, identity: SessionIdentity) -> None:
        self._generation += 1
        generation = self._generation
        session_id = str(uuid.uuid4())

        log.info(
            "Creating engine: model=%s instructions=%s approval_policy=%s writable_roots=%d",
            identity.model,
            bool(identity.config.instructions),
            identity.approval_policy.value,
            len(identity.writable_roots),
        )
        options = EngineOptions(
            model=identity.model,
            config=identity.config,
            instructions=identity.config.instructions,
            approval_policy=identity.approval_policy,
            writable_roots=identity.writable_roots,
            on_item=partial(self._handle_item, session_id),
            on_loading=partial(self._handle_loading, generation),
            get_command_confirmation=partial(self._request_confirmation, identity.model),
        )
        self._engine = self._factory(options)
        self._engine_identity = identity
        self._session_id = session_id

    def _teardown_engine(self) -> None:
        engine = self._engine
        if engine is None:
            return
        self._engine = None
        self._engine_identity = None
        self._session_id = None
        log.info("Terminating engine")
        try:
            engine.terminate()
        except Exception as e:
            log.debug("Ignoring error while terminating engine: %s", e)

    # -------------------------------------------------------------------------
    # Engine callbacks
    # -------------------------------------------------------------------------

    def _handle_item(self, session_id: str, item: TranscriptItem) -> None:
        # Items from a cancelled or replaced engine are still recorded
        log.debug("Engine item: %s %s", item.role.value, item.id)
        self._transcript.append(item)
        if self._rollout_store is not None:
            self._rollout_store.save(session_id, self._transcript.snapshot())
        self._emit()

    def _handle_loading(self, generation: int, loading: bool) -> None:
        if generation != self._generation:
            log.debug("Ignoring loading=%s from a replaced engine", loading)
            return
        if loading == self._loading:
            return
        self._loading = loading
        self._emit()

    async def _request_confirmation(
        self,
        model: str,
        command: Sequence[str],
        apply_patch: ApplyPatchCommand | None = None,
    ) -> CommandConfirmation:
        display = format_command_for_display(command)
        argv = tuple(command)
        log.info("Confirmation requested: %s", display)

        self._bridging += 1
        try:
            first = await self._broker.ask(ConfirmationRequest(argv, display, apply_patch=apply_patch))
            if first.decision is not ReviewDecision.EXPLAIN:
                return CommandConfirmation(first.decision, first.custom_deny_message, apply_patch)

            log.info("Generating explanation for command: %s", display)
            explanation = await self._explainer.explain(argv, model)
            log.debug("Generated explanation: %s", explanation)

            if self._closed:
                return CommandConfirmation(
                    ReviewDecision.NO_EXIT, ABANDONED_NOTICE, apply_patch, explanation
                )

            second = await self._ask_with_explanation(argv, display, explanation, apply_patch)
            return CommandConfirmation(
                second.decision, second.custom_deny_message, apply_patch, explanation
            )
        finally:
            self._bridging -= 1
            if self._bridging == 0:
                self._emit()
                self._resume_deferred_recreation()

    def _resume_deferred_recreation(self) -> None:
        """Run the recreation that ensure() skipped while a question was open.

        A factory failure here is reported in the transcript; it must not
        replace the decision already computed for the engine.
        """
        if not self._recreate_deferred:
            return
        try:
            self.ensure()
        except Exception as e:
            log.error("Deferred engine recreation failed: %s", e)
            self._transcript.append(system_item(f"Failed to restart agent: {e}", "error"))
            self._emit()

    async def _ask_with_explanation(
        self,
        argv: tuple[str, ...],
        display: str,
        explanation: str,
        apply_patch: ApplyPatchCommand | None,
    ) -> ConfirmationResult:
        request = ConfirmationRequest(argv, display, explanation, apply_patch)
        while True:
            result = await self._broker.ask(request)
            if result.decision is not ReviewDecision.EXPLAIN:
                return result
            # The explanation is already shown; ask again without regenerating it
            log.debug("Explanation requested again for %s; re-asking", display)

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def submit(self, items: Sequence[TranscriptItem]) -> bool:
        """Hand input items to the live engine.

        Returns:
            False (and does nothing) if there is no engine yet.
        """
        engine = self._engine
        if engine is None:
            log.debug("submit() ignored: no engine")
            return False

        task = asyncio.get_running_loop().create_task(engine.run(list(items)))
        self._runs.add(task)
        task.add_done_callback(partial(self._run_finished, self._generation))
        return True

    def _run_finished(self, generation: int, task: asyncio.Task[None]) -> None:
        self._runs.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        log.error("Engine run failed: %s", exc)
        self._transcript.append(system_item(f"Agent error: {exc}", "error"))
        # Only the live engine's failure ends the busy state
        if generation == self._generation:
            self._loading = False
        self._emit()

    def interrupt(self) -> bool:
        """Cancel in-flight work and clear loading without waiting for the engine.

        Returns:
            False if there is no engine to interrupt.
        """
        engine = self._engine
        if engine is None:
            return False

        log.info("Interrupt requested: cancelling engine")
        engine.cancel()
        self._loading = False
        self._transcript.append(system_item(INTERRUPT_NOTICE, "interrupt"))
        self._emit()
        return True

    def cancel(self) -> None:
        """Cancel in-flight work and clear loading, without a transcript notice."""
        if self._engine is not None:
            self._engine.cancel()
        else:
            log.debug("cancel() with no engine")
        if self._loading:
            self._loading = False
            self._emit()

    def set_loading(self, loading: bool) -> None:
        """Set loading from outside the engine (e.g. while compacting)."""
        if loading == self._loading:
            return
        self._loading = loading
        self._emit()
