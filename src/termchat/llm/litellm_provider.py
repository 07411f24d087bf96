"""LiteLLM provider implementation.

Supports the providers litellm does:
- OpenAI: "o4-mini", "gpt-4.1"
- Anthropic: "claude-sonnet-4-5-20250929"
- Local: "ollama/llama3"

See https://docs.litellm.ai/docs/providers for the full list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import litellm

from termchat.config.secrets import fetch_secret
from termchat.llm.models import get_model_info
from termchat.llm.provider import CompletionResult, Message

if TYPE_CHECKING:
    from termchat.config.schema import Config


class LiteLLMProvider:
    """Text-generation provider using litellm.

    Usage:
        provider = LiteLLMProvider("o4-mini")
        provider = LiteLLMProvider("gpt-4.1", api_base="http://localhost:8000/v1")

    litellm's API errors carry `status_code`, which the explanation
    service uses to classify failures.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        **kwargs: Any,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._api_base = api_base
        self._kwargs = kwargs

    @property
    def model(self) -> str:
        return self._model

    def _build_kwargs(self, messages: list[Message], *, max_tokens: int) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "max_tokens": max_tokens,
            **self._kwargs,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def complete(
        self,
        messages: list[Message],
        *,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        """Generate a completion (non-streaming)."""
        response = await litellm.acompletion(**self._build_kwargs(messages, max_tokens=max_tokens))

        choice = response.choices[0]
        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return CompletionResult(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason,
            usage=usage,
        )


def create_provider(model: str, config: Config | None = None) -> LiteLLMProvider:
    """Build a provider for `model`, resolving its API key and endpoint.

    Models missing from the catalog rely on litellm's own environment lookup.
    """
    api_key = None
    info = get_model_info(model)
    if info is not None:
        api_key = fetch_secret(info.env_var)

    api_base = config.llm.api_base if config else None
    return LiteLLMProvider(model, api_key=api_key, api_base=api_base)
