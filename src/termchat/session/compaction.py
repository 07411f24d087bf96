"""Context compaction: summarize the conversation so far."""

from __future__ import annotations

from collections.abc import Sequence

from termchat.llm.provider import LLMProvider, Message, Role
from termchat.session.transcript import TranscriptItem, get_text_content

COMPACT_SYSTEM_PROMPT = (
    "You are an expert coding assistant. Your goal is to generate a concise, "
    "structured summary of the conversation below that captures all essential "
    "information needed to continue development after context replacement. "
    "Include tasks performed, code areas modified or reviewed, key decisions or "
    "assumptions, test results or errors, and outstanding tasks or next steps."
)

COMPACT_USER_PROMPT = (
    "Here is the conversation so far:\n{conversation}\n\n"
    "Please summarize this conversation, covering:\n"
    "1. Tasks performed and outcomes\n"
    "2. Code files, modules, or functions modified or examined\n"
    "3. Important decisions or assumptions made\n"
    "4. Errors encountered and test or build results\n"
    "5. Remaining tasks, open questions, or next steps\n"
    "Provide the summary in a clear, concise format."
)


def render_conversation(items: Sequence[TranscriptItem]) -> str:
    """One `role: text` line per item that has text."""
    lines = []
    for item in items:
        text = get_text_content(item)
        if text:
            lines.append(f"{item.role.value}: {text}")
    return "\n".join(lines)


async def generate_compact_summary(
    items: Sequence[TranscriptItem],
    provider: LLMProvider,
    *,
    max_tokens: int = 4096,
) -> str:
    """Ask the model for a summary. Errors propagate to the caller."""
    messages = [
        Message(Role.SYSTEM, COMPACT_SYSTEM_PROMPT),
        Message(Role.USER, COMPACT_USER_PROMPT.format(conversation=render_conversation(items))),
    ]
    result = await provider.complete(messages, max_tokens=max_tokens)
    return result.content or "Unable to generate summary."
