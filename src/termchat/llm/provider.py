"""Text-generation provider protocol and base types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


class Role(Enum):
    """Message role in a generation request."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """A message sent to the model."""

    role: Role
    content: str


@dataclass(slots=True)
class CompletionResult:
    """Result from a non-streaming completion."""

    content: str
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for text-generation providers.

    Failures are raised as exceptions; when the upstream returned an HTTP
    error the exception carries a numeric `status_code` attribute.
    """

    @property
    def model(self) -> str:
        """The model identifier being used."""
        ...

    async def complete(
        self,
        messages: list[Message],
        *,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        """Generate a completion for a system/user message list."""
        ...
