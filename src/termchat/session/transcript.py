"""Append-only conversation transcript.

Items are only ever appended. Compaction does not remove anything: it
appends a summary and moves the context start to it, so earlier items
remain in the record but no longer count towards the model's context.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ItemRole(Enum):
    """Who authored a transcript item."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class TranscriptItem:
    """A role-tagged transcript entry.

    `content` is either plain text or a list of typed parts such as
    {"type": "input_text", "text": ...} or {"type": "input_image", ...}.
    """

    role: ItemRole
    content: str | list[dict[str, Any]]
    id: str = field(default_factory=lambda: f"item-{uuid.uuid4().hex[:8]}")
    type: str = "message"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "role": self.role.value,
            "content": self.content,
        }


def system_item(text: str, kind: str = "system") -> TranscriptItem:
    """A synthetic system notice (interruption, model switch, diff...)."""
    return TranscriptItem(
        role=ItemRole.SYSTEM,
        content=text,
        id=f"{kind}-{uuid.uuid4().hex[:8]}",
    )


def get_text_content(item: TranscriptItem) -> str:
    """Flatten an item's content to plain text, dropping non-text parts."""
    if isinstance(item.content, str):
        return item.content
    texts = []
    for part in item.content:
        text = part.get("text")
        if isinstance(text, str):
            texts.append(text)
    return "\n".join(texts)


class Transcript:
    """Ordered, append-only list of TranscriptItems."""

    def __init__(self, items: Iterable[TranscriptItem] = ()) -> None:
        self._items: list[TranscriptItem] = list(items)
        self._context_start = 0
        self._listeners: list[Callable[[TranscriptItem], None]] = []

    def on_append(self, listener: Callable[[TranscriptItem], None]) -> Callable[[], None]:
        """Register a listener called after every append.

        Returns:
            A function that unregisters the listener.
        """
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    def append(self, item: TranscriptItem) -> None:
        self._items.append(item)
        for listener in list(self._listeners):
            listener(item)

    def extend(self, items: Iterable[TranscriptItem]) -> None:
        for item in items:
            self.append(item)

    def snapshot(self) -> list[TranscriptItem]:
        """A copy of all items, safe to hand to persistence."""
        return list(self._items)

    @property
    def items(self) -> tuple[TranscriptItem, ...]:
        return tuple(self._items)

    @property
    def context_items(self) -> tuple[TranscriptItem, ...]:
        """Items the model still sees (since the last compaction)."""
        return tuple(self._items[self._context_start :])

    def start_context_at_last(self) -> None:
        """Make the most recent item the new start of the model context."""
        if self._items:
            self._context_start = len(self._items) - 1

    def last(self, role: ItemRole) -> TranscriptItem | None:
        for item in reversed(self._items):
            if item.role is role:
                return item
        return None

    def count(self, role: ItemRole) -> int:
        return sum(1 for item in self._items if item.role is role)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TranscriptItem]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)
