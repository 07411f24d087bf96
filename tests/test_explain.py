"""Tests for command explanations and command display formatting."""

from __future__ import annotations

import asyncio

import pytest

from termchat.approval.explain import (
    NO_EXPLANATION,
    ExplanationFailure,
    ExplanationService,
    classify_failure,
    failure_message,
)
from termchat.approval.format import format_command_for_display
from termchat.llm.provider import Role
from tests.utils import FakeProvider, StatusError


class TestFormatCommand:
    """Tests for format_command_for_display."""

    def test_plain_argv(self) -> None:
        assert format_command_for_display(["ls", "-la"]) == "ls -la"

    def test_quotes_arguments_with_spaces(self) -> None:
        assert format_command_for_display(["echo", "hello world"]) == "echo 'hello world'"

    def test_shell_wrapper_shows_script(self) -> None:
        assert format_command_for_display(["bash", "-lc", "npm test && npm run lint"]) == (
            "npm test && npm run lint"
        )


class TestClassifyFailure:
    """Tests for mapping errors to failure kinds."""

    @pytest.mark.parametrize(
        "status, expected",
        [
            (401, ExplanationFailure.AUTHENTICATION),
            (429, ExplanationFailure.RATE_LIMITED),
            (500, ExplanationFailure.UNAVAILABLE),
            (503, ExplanationFailure.UNAVAILABLE),
            (400, ExplanationFailure.UNKNOWN),
        ],
    )
    def test_status_codes(self, status: int, expected: ExplanationFailure) -> None:
        assert classify_failure(StatusError(status)) is expected

    def test_error_without_status(self) -> None:
        assert classify_failure(RuntimeError("boom")) is ExplanationFailure.UNKNOWN

    def test_messages(self) -> None:
        assert failure_message(StatusError(401)) == (
            "Unable to generate explanation: API key is invalid or expired."
        )
        assert failure_message(StatusError(429)) == (
            "Unable to generate explanation: Rate limit exceeded. Please try again later."
        )
        assert failure_message(RuntimeError("connection reset")) == (
            "Unable to generate explanation: connection reset"
        )


class TestExplanationService:
    """Tests for ExplanationService.explain."""

    @pytest.mark.asyncio
    async def test_returns_model_text(self) -> None:
        provider = FakeProvider("It lists files.")
        models: list[str] = []

        def factory(model: str) -> FakeProvider:
            models.append(model)
            return provider

        service = ExplanationService(factory)
        text = await service.explain(["ls", "-la"], "o3")

        assert text == "It lists files."
        assert models == ["o3"]

        messages = provider.calls[0]
        assert messages[0].role is Role.SYSTEM
        assert messages[1].role is Role.USER
        assert "`ls -la`" in messages[1].content

    @pytest.mark.asyncio
    async def test_empty_reply_uses_placeholder(self) -> None:
        service = ExplanationService(lambda model: FakeProvider(""))
        assert await service.explain(["ls"], "o4-mini") == NO_EXPLANATION

    @pytest.mark.asyncio
    async def test_failure_returns_fallback_text(self) -> None:
        service = ExplanationService(lambda model: FakeProvider(error=StatusError(503)))
        text = await service.explain(["ls"], "o4-mini")
        assert text == (
            "Unable to generate explanation: Service is currently unavailable. "
            "Please try again later."
        )

    @pytest.mark.asyncio
    async def test_factory_failure_returns_fallback_text(self) -> None:
        def factory(model: str) -> FakeProvider:
            raise ValueError("no API key")

        text = await ExplanationService(factory).explain(["ls"], "o4-mini")
        assert text == "Unable to generate explanation: no API key"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        service = ExplanationService(lambda model: FakeProvider(error=asyncio.CancelledError()))
        with pytest.raises(asyncio.CancelledError):
            await service.explain(["ls"], "o4-mini")
