"""Natural-language explanations of commands awaiting approval.

`ExplanationService.explain()` always returns text. When the model call
fails, the text is a fallback that names the cause, so the approval flow
can always go on to its second round.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from enum import Enum

from termchat.approval.format import format_command_for_display
from termchat.llm.provider import LLMProvider, Message, Role
from termchat.logging import get_logger

log = get_logger("approval.explain")

EXPLAIN_SYSTEM_PROMPT = (
    "You are an expert in shell commands and terminal operations. Your task is to "
    "provide detailed, accurate explanations of shell commands that users are "
    "considering executing. Break down each part of the command, explain what it "
    "does, identify any potential risks or side effects, and explain why someone "
    "might want to run it. Be specific about what files or systems will be affected. "
    "If the command could potentially be harmful, make sure to clearly highlight "
    "those risks."
)

EXPLAIN_USER_PROMPT = (
    "Please explain this shell command in detail: `{command}`\n\n"
    "Provide a structured explanation that includes:\n"
    "1. A brief overview of what the command does\n"
    "2. A breakdown of each part of the command (flags, arguments, etc.)\n"
    "3. What files, directories, or systems will be affected\n"
    "4. Any potential risks or side effects\n"
    "5. Why someone might want to run this command\n\n"
    "Be specific and technical - this explanation will help the user decide "
    "whether to approve or reject the command."
)

NO_EXPLANATION = "Unable to generate explanation."


class ExplanationFailure(Enum):
    """Why an explanation could not be generated."""

    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


_FAILURE_MESSAGES = {
    ExplanationFailure.AUTHENTICATION: "API key is invalid or expired.",
    ExplanationFailure.RATE_LIMITED: "Rate limit exceeded. Please try again later.",
    ExplanationFailure.UNAVAILABLE: "Service is currently unavailable. Please try again later.",
}


def _status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_failure(exc: BaseException) -> ExplanationFailure:
    """Classify a generation error by its HTTP status, if it has one."""
    status = _status_code(exc)
    if status == 401:
        return ExplanationFailure.AUTHENTICATION
    if status == 429:
        return ExplanationFailure.RATE_LIMITED
    if status is not None and status >= 500:
        return ExplanationFailure.UNAVAILABLE
    return ExplanationFailure.UNKNOWN


def failure_message(exc: BaseException) -> str:
    """The human-readable fallback text shown instead of an explanation."""
    reason = _FAILURE_MESSAGES.get(classify_failure(exc))
    if reason is None:
        reason = str(exc) or type(exc).__name__
    return f"Unable to generate explanation: {reason}"


class ExplanationService:
    """Asks a model to explain a command.

    Args:
        provider_factory: Builds a provider for a model identifier. A new
            provider is built per call so a model switch is picked up.
        max_tokens: Completion budget for the explanation.
    """

    def __init__(
        self,
        provider_factory: Callable[[str], LLMProvider],
        *,
        max_tokens: int = 1024,
    ) -> None:
        self._provider_factory = provider_factory
        self._max_tokens = max_tokens

    async def explain(self, command: Sequence[str], model: str) -> str:
        display = format_command_for_display(command)
        messages = [
            Message(Role.SYSTEM, EXPLAIN_SYSTEM_PROMPT),
            Message(Role.USER, EXPLAIN_USER_PROMPT.format(command=display)),
        ]

        try:
            provider = self._provider_factory(model)
            result = await provider.complete(messages, max_tokens=self._max_tokens)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            failure = classify_failure(e)
            log.warning(
                "Error generating command explanation (%s): %s", failure.value, e
            )
            return failure_message(e)

        return result.content or NO_EXPLANATION
