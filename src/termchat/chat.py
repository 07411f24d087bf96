"""TerminalChat: the command surface a terminal renderer drives.

Every user action is a command object passed to `dispatch()`. The chat
applies it to the session controller, the overlay state machine and the
transcript, and then re-derives the busy timer and notification gate
from the resulting state.

Example:
    chat = TerminalChat(config, engine_factory=MyEngine)
    await chat.start()
    await chat.dispatch(SubmitInput((create_input_item("fix the tests"),)))
    await chat.dispatch(AnswerConfirmation(ReviewDecision.YES))
    await chat.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Union

from termchat.approval.decisions import ApprovalPolicy, ConfirmationRequest, ReviewDecision
from termchat.approval.explain import ExplanationService
from termchat.config.loader import save_config
from termchat.errors import EngineNotReadyError
from termchat.git.diff import GitDiff, get_git_diff
from termchat.llm.litellm_provider import create_provider
from termchat.logging import get_logger, setup_logging
from termchat.mcp.client import MCPClientManager
from termchat.paths import short_cwd
from termchat.session.compaction import generate_compact_summary
from termchat.session.context_window import context_percent_remaining
from termchat.session.controller import SessionController
from termchat.session.identity import SessionIdentity
from termchat.session.input_items import create_input_item
from termchat.session.notifier import DesktopNotifier, NotificationGate
from termchat.session.overlay import OverlayMode, OverlayStateMachine
from termchat.session.timer import BusyTimer
from termchat.session.transcript import ItemRole, Transcript, TranscriptItem, system_item

if TYPE_CHECKING:
    from termchat.config.schema import Config
    from termchat.llm.provider import LLMProvider
    from termchat.mcp.types import MCPServerStatus
    from termchat.session.engine import EngineFactory, ExecutionEngine
    from termchat.session.notifier import Notifier
    from termchat.session.storage import RolloutStore

log = get_logger("chat")

NOT_A_REPO_NOTICE = "`/diff` — _not inside a git repository_"


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SubmitInput:
    items: tuple[TranscriptItem, ...]


@dataclass(frozen=True)
class Interrupt:
    pass


@dataclass(frozen=True)
class AnswerConfirmation:
    decision: ReviewDecision
    custom_deny_message: str | None = None


@dataclass(frozen=True)
class OpenOverlay:
    mode: OverlayMode


@dataclass(frozen=True)
class CloseOverlay:
    pass


@dataclass(frozen=True)
class SelectModel:
    model: str


@dataclass(frozen=True)
class SelectApprovalPolicy:
    policy: ApprovalPolicy


@dataclass(frozen=True)
class ShowDiff:
    pass


@dataclass(frozen=True)
class OpenMCP:
    pass


@dataclass(frozen=True)
class Compact:
    pass


Command = Union[
    SubmitInput,
    Interrupt,
    AnswerConfirmation,
    OpenOverlay,
    CloseOverlay,
    SelectModel,
    SelectApprovalPolicy,
    ShowDiff,
    OpenMCP,
    Compact,
]


class TerminalChat:
    """Wires the session controller, overlays, timer, notifications and MCP.

    Args:
        config: Loaded configuration.
        engine_factory: Builds an execution engine from EngineOptions.
        approval_policy: Starting policy (defaults to config.approval_policy).
        writable_roots: Extra writable directories (defaults to config.writable_roots).
        prompt: Initial prompt submitted once the first engine exists.
        image_paths: Images attached to the initial prompt.
        provider_factory: Builds a text-generation provider for a model id.
        mcp_manager: MCP manager (built from config.mcp if omitted).
        notifier: Notification delivery (DesktopNotifier if omitted).
        rollout_store: Where transcripts are saved on every engine output.
        diff_provider: Async callable returning a GitDiff.
        config_saver: Persists the config after a model switch.
        timer_interval: Seconds per busy-timer tick.
        cwd_label: Notification subtitle (short_cwd() if omitted).
    """

    def __init__(
        self,
        config: Config,
        engine_factory: EngineFactory,
        *,
        approval_policy: ApprovalPolicy | None = None,
        writable_roots: Sequence[str] | None = None,
        prompt: str | None = None,
        image_paths: Sequence[str] = (),
        provider_factory: Callable[[str], LLMProvider] | None = None,
        mcp_manager: MCPClientManager | None = None,
        notifier: Notifier | None = None,
        rollout_store: RolloutStore | None = None,
        diff_provider: Callable[[], Awaitable[GitDiff]] = get_git_diff,
        config_saver: Callable[[Config], object] = save_config,
        timer_interval: float = 1.0,
        cwd_label: str | None = None,
    ) -> None:
        self._config = config
        self._provider_factory = provider_factory or (lambda model: create_provider(model, config))
        self._diff_provider = diff_provider
        self._save_config = config_saver

        identity = SessionIdentity.from_config(
            config,
            approval_policy=approval_policy,
            writable_roots=tuple(writable_roots) if writable_roots is not None else None,
        )

        self.transcript = Transcript()
        self.overlay = OverlayStateMachine()
        self.controller = SessionController(
            engine_factory,
            identity,
            explainer=ExplanationService(self._provider_factory),
            transcript=self.transcript,
            rollout_store=rollout_store,
        )
        self.timer = BusyTimer(interval=timer_interval)
        self.gate = NotificationGate(
            notifier if notifier is not None else DesktopNotifier(),
            enabled=config.notify,
            subtitle=cwd_label if cwd_label is not None else short_cwd(),
        )
        self.mcp = mcp_manager if mcp_manager is not None else MCPClientManager(config.mcp)
        self.mcp_status: list[MCPServerStatus] = []

        self._initial_prompt = prompt or ""
        self._initial_images = list(image_paths)
        self._mcp_task: asyncio.Task[None] | None = None
        self._started = False

        self.controller.add_listener(self._refresh)

    # -------------------------------------------------------------------------
    # State for the renderer
    # -------------------------------------------------------------------------

    @property
    def agent(self) -> ExecutionEngine | None:
        return self.controller.engine

    @property
    def is_initializing(self) -> bool:
        return self.controller.is_initializing

    @property
    def model(self) -> str:
        return self.controller.identity.model

    @property
    def approval_policy(self) -> ApprovalPolicy:
        return self.controller.identity.approval_policy

    @property
    def loading(self) -> bool:
        return self.controller.loading

    @property
    def thinking_seconds(self) -> int:
        return self.timer.seconds

    @property
    def confirmation_prompt(self) -> ConfirmationRequest | None:
        return self.controller.pending_confirmation

    @property
    def overlay_mode(self) -> OverlayMode:
        return self.overlay.mode

    @property
    def items(self) -> tuple[TranscriptItem, ...]:
        return self.transcript.items

    @property
    def user_message_count(self) -> int:
        return self.transcript.count(ItemRole.USER)

    @property
    def context_left_percent(self) -> int:
        return context_percent_remaining(self.transcript.context_items, self.model)

    def require_engine(self) -> ExecutionEngine:
        engine = self.controller.engine
        if engine is None:
            raise EngineNotReadyError("The agent is still initializing")
        return engine

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Configure logging, start MCP in the background and create the first engine."""
        if self._started:
            return
        self._started = True
        setup_logging(self._config.logging)
        self._mcp_task = asyncio.get_running_loop().create_task(self._initialize_mcp())
        self.controller.ensure()
        self._submit_initial_input()

    async def close(self) -> None:
        """Tear everything down: engine, pending question, timer, MCP."""
        await self.controller.close()
        self.timer.stop()

        if self._mcp_task is not None and not self._mcp_task.done():
            self._mcp_task.cancel()
            await asyncio.gather(self._mcp_task, return_exceptions=True)
        try:
            await self.mcp.close_all()
        except Exception as e:
            log.warning("Error closing MCP clients: %s", e)

    async def _initialize_mcp(self) -> None:
        try:
            await self.mcp.initialize()
        except Exception as e:
            log.warning("Error initializing MCP clients: %s", e)

    def _refresh(self) -> None:
        loading = self.controller.loading
        pending = self.controller.confirmation_pending
        self.timer.update(loading, pending)
        self.gate.observe(loading, pending, self.transcript.items)
        self._submit_initial_input()

    def _submit_initial_input(self) -> None:
        if not self._initial_prompt.strip() and not self._initial_images:
            return
        if self.controller.engine is None:
            return
        item = create_input_item(self._initial_prompt, self._initial_images)
        # Cleared first so it is submitted exactly once
        self._initial_prompt = ""
        self._initial_images = []
        self.transcript.append(item)
        self.controller.submit([item])

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def dispatch(self, command: Command) -> bool:
        """Apply one user command.

        Returns:
            False when the command was ignored (e.g. input while an overlay is open).
        """
        log.debug("dispatch %s", type(command).__name__)
        if isinstance(command, SubmitInput):
            return self.submit_input(command.items)
        if isinstance(command, Interrupt):
            return self.interrupt()
        if isinstance(command, AnswerConfirmation):
            return self.controller.broker.answer(command.decision, command.custom_deny_message)
        if isinstance(command, OpenOverlay):
            self.overlay.open(command.mode)
            return True
        if isinstance(command, CloseOverlay):
            self.overlay.close()
            return True
        if isinstance(command, SelectModel):
            return self.select_model(command.model)
        if isinstance(command, SelectApprovalPolicy):
            return self.select_approval_policy(command.policy)
        if isinstance(command, ShowDiff):
            await self.show_diff()
            return True
        if isinstance(command, OpenMCP):
            self.open_mcp()
            return True
        if isinstance(command, Compact):
            await self.compact()
            return True
        raise TypeError(f"Unknown command: {command!r}")

    def submit_input(self, items: Sequence[TranscriptItem]) -> bool:
        if not self.overlay.input_enabled:
            log.debug("Input ignored: overlay %s is open", self.overlay.mode.value)
            return False
        if self.controller.engine is None:
            log.debug("Input ignored: agent is initializing")
            return False
        self.transcript.extend(items)
        return self.controller.submit(items)

    def interrupt(self) -> bool:
        if not self.overlay.input_enabled:
            return False
        return self.controller.interrupt()

    def select_model(self, model: str) -> bool:
        """Switch models: cancel current work, persist, recreate the engine."""
        log.info("Switching model to %s", model)
        self.controller.cancel()

        try:
            self._save_config(replace(self._config, model=model))
        except Exception as e:
            log.warning("Failed to save model selection: %s", e)

        self.transcript.append(system_item(f"Switched model to {model}", "switch-model"))
        self.overlay.close()
        self.controller.ensure(self.controller.identity.with_model(model))
        return True

    def select_approval_policy(self, policy: ApprovalPolicy) -> bool:
        """Switch approval policy in place, without interrupting work."""
        if policy is self.approval_policy:
            return False
        self.controller.update_policy_in_place(policy)
        self.transcript.append(
            system_item(f"Switched approval mode to {policy.value}", "switch-approval")
        )
        self.overlay.close()
        return True

    async def show_diff(self) -> None:
        result = await self._diff_provider()
        text = result.diff if result.is_repo else NOT_A_REPO_NOTICE
        self.transcript.append(system_item(text, "diff"))
        self.overlay.close()

    def open_mcp(self) -> None:
        self.mcp_status = self.mcp.get_status()
        self.overlay.open_mcp()

    async def compact(self) -> None:
        """Summarize the conversation and restart the model context from the summary."""
        self.controller.set_loading(True)
        try:
            provider = self._provider_factory(self.model)
            summary = await generate_compact_summary(self.transcript.context_items, provider)
            self.transcript.append(TranscriptItem(role=ItemRole.ASSISTANT, content=summary))
            self.transcript.start_context_at_last()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.warning("Failed to compact context: %s", e)
            self.transcript.append(system_item(f"Failed to compact context: {e}", "compact-error"))
        finally:
            self.controller.set_loading(False)
