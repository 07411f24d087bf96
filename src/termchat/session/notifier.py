"""Desktop notification when the agent finishes a turn.

NotificationGate watches (loading, confirmation_pending, transcript) and
fires once on every busy -> idle edge. DesktopNotifier delivers through
osascript on macOS and does nothing on other platforms. Delivery is
fire-and-forget: it never blocks and is never retried.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Sequence

from termchat.logging import get_logger
from termchat.session.transcript import ItemRole, TranscriptItem, get_text_content

log = get_logger("session.notifier")

NOTIFICATION_TITLE = "termchat"
PREVIEW_LENGTH = 100

# (title, subtitle, body) -> None
Notifier = Callable[[str, str, str], None]


def escape_applescript(text: str) -> str:
    """Quote-safe text for an AppleScript string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def make_preview(text: str, limit: int = PREVIEW_LENGTH) -> str:
    """Flatten to one line, truncate, then escape for AppleScript."""
    return escape_applescript(text.replace("\n", " ")[:limit])


class DesktopNotifier:
    """Spawns `osascript` on darwin; a no-op elsewhere."""

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or sys.platform
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def supported(self) -> bool:
        return self._platform == "darwin"

    def __call__(self, title: str, subtitle: str, body: str) -> None:
        """Deliver a notification; `body` is expected to be escaped already (see make_preview)."""
        if not self.supported:
            return
        script = (
            f'display notification "{body}" with title "{escape_applescript(title)}" '
            f'subtitle "{escape_applescript(subtitle)}" sound name "Ping"'
        )
        task = asyncio.get_running_loop().create_task(self._spawn(script))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _spawn(self, script: str) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                "osascript",
                "-e",
                script,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await process.wait()
        except OSError as e:
            log.debug("Notification not delivered: %s", e)


class NotificationGate:
    """Edge detector for 'agent was busy and is now idle'.

    Args:
        notifier: Delivery callable taking (title, subtitle, body).
        enabled: When False the gate only tracks state.
        subtitle: Working-directory shorthand shown under the title.
    """

    def __init__(
        self,
        notifier: Notifier,
        *,
        enabled: bool = True,
        subtitle: str = "",
        title: str = NOTIFICATION_TITLE,
        preview_length: int = PREVIEW_LENGTH,
    ) -> None:
        self._notifier = notifier
        self._enabled = enabled
        self._subtitle = subtitle
        self._title = title
        self._preview_length = preview_length
        self._prev_loading = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def observe(
        self,
        loading: bool,
        confirmation_pending: bool,
        items: Sequence[TranscriptItem],
    ) -> bool:
        """Feed the current state.

        Returns:
            True if this call was a busy -> idle edge that notified.
        """
        was_loading = self._prev_loading
        self._prev_loading = loading

        if not self._enabled:
            return False
        if not was_loading or loading or confirmation_pending or not items:
            return False

        last = None
        for item in reversed(items):
            if item.role is ItemRole.ASSISTANT:
                last = item
                break
        if last is None:
            log.debug("Turn finished without an assistant message; nothing to notify")
            return False

        body = make_preview(get_text_content(last), self._preview_length)
        log.debug("Notifying: %s", body)
        self._notifier(self._title, self._subtitle, body)
        return True
