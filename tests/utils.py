"""Shared test utilities for termchat tests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from termchat.approval.decisions import ApplyPatchCommand, ApprovalPolicy, CommandConfirmation
from termchat.llm.provider import CompletionResult, Message
from termchat.session.engine import EngineOptions
from termchat.session.transcript import ItemRole, TranscriptItem


class FakeEngine:
    """In-memory ExecutionEngine that records every call.

    Tests drive the engine side of the contract through `emit`,
    `set_loading` and `confirm`, which call the options' callbacks.
    """

    def __init__(
        self,
        options: EngineOptions,
        run_hook: Callable[[FakeEngine, Sequence[TranscriptItem]], Awaitable[None]] | None = None,
    ) -> None:
        self.options = options
        self.run_hook = run_hook
        self.runs: list[list[TranscriptItem]] = []
        self.cancel_count = 0
        self.terminated = False
        self.policy = options.approval_policy
        self.policy_changes: list[ApprovalPolicy] = []

    async def run(self, items: Sequence[TranscriptItem]) -> None:
        self.runs.append(list(items))
        if self.run_hook is not None:
            await self.run_hook(self, items)

    def cancel(self) -> None:
        self.cancel_count += 1

    def terminate(self) -> None:
        self.terminated = True

    def set_approval_policy(self, policy: ApprovalPolicy) -> None:
        self.policy = policy
        self.policy_changes.append(policy)

    def emit(self, item: TranscriptItem) -> None:
        self.options.on_item(item)

    def set_loading(self, loading: bool) -> None:
        self.options.on_loading(loading)

    async def confirm(
        self,
        command: Sequence[str],
        apply_patch: ApplyPatchCommand | None = None,
    ) -> CommandConfirmation:
        return await self.options.get_command_confirmation(command, apply_patch)


class EngineRecorder:
    """Engine factory that builds FakeEngines and keeps them in order."""

    def __init__(self, run_hook=None) -> None:
        self.run_hook = run_hook
        self.engines: list[FakeEngine] = []
        # When set, building an engine raises this instead
        self.fail_with: Exception | None = None

    def __call__(self, options: EngineOptions) -> FakeEngine:
        if self.fail_with is not None:
            raise self.fail_with
        engine = FakeEngine(options, self.run_hook)
        self.engines.append(engine)
        return engine

    @property
    def latest(self) -> FakeEngine:
        return self.engines[-1]


class StatusError(Exception):
    """Error shaped like an HTTP API error from litellm."""

    def __init__(self, status_code: int, message: str = "request failed") -> None:
        super().__init__(message)
        self.status_code = status_code


class FakeProvider:
    """LLMProvider returning canned content (or raising `error`)."""

    def __init__(
        self,
        content: str = "Test response",
        *,
        error: BaseException | None = None,
        model: str = "test-model",
    ) -> None:
        self.content = content
        self.error = error
        self._model = model
        self.calls: list[list[Message]] = []

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, messages: list[Message], *, max_tokens: int = 4096) -> CompletionResult:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return CompletionResult(content=self.content, finish_reason="stop")


class RecordingNotifier:
    """Notifier that keeps (title, subtitle, body) tuples."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []

    def __call__(self, title: str, subtitle: str, body: str) -> None:
        self.calls.append((title, subtitle, body))


def assistant(text: str) -> TranscriptItem:
    return TranscriptItem(role=ItemRole.ASSISTANT, content=text)


def user(text: str) -> TranscriptItem:
    return TranscriptItem(role=ItemRole.USER, content=[{"type": "input_text", "text": text}])


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_for_async(coro: Awaitable[Any], timeout: float = 1.0) -> Any:
    """Wait for an awaitable with a timeout.

    Raises:
        asyncio.TimeoutError: If timeout is exceeded
    """
    return await asyncio.wait_for(coro, timeout=timeout)
