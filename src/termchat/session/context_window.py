"""How much of the model's context window is still free."""

from __future__ import annotations

from collections.abc import Sequence

import tiktoken

from termchat.llm.models import get_context_length
from termchat.session.transcript import TranscriptItem, get_text_content

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("o200k_base")
    return _encoder


def count_item_tokens(items: Sequence[TranscriptItem]) -> int:
    encoder = _get_encoder()
    return sum(len(encoder.encode(get_text_content(item))) for item in items)


def context_percent_remaining(items: Sequence[TranscriptItem], model: str) -> int:
    """Integer percentage in [0, 100] of the context window left for `model`."""
    limit = get_context_length(model)
    used = count_item_tokens(items)
    remaining = (limit - used) / limit * 100
    return max(0, min(100, int(remaining)))
