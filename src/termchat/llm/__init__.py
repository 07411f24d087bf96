"""Model text-generation service."""

from termchat.llm.litellm_provider import LiteLLMProvider, create_provider
from termchat.llm.models import (
    ModelInfo,
    get_available_models,
    get_context_length,
    get_model_info,
    get_models,
)
from termchat.llm.provider import CompletionResult, LLMProvider, Message, Role

__all__ = [
    "LLMProvider",
    "LiteLLMProvider",
    "create_provider",
    "CompletionResult",
    "Message",
    "Role",
    "ModelInfo",
    "get_models",
    "get_model_info",
    "get_context_length",
    "get_available_models",
]
