"""Building user input items from typed text and attached images."""

from __future__ import annotations

import base64
import mimetypes
from collections.abc import Sequence
from pathlib import Path

from termchat.logging import get_logger
from termchat.session.transcript import ItemRole, TranscriptItem

log = get_logger("session.input")


def _image_part(path: Path) -> dict[str, str] | None:
    try:
        data = path.read_bytes()
    except OSError as e:
        log.warning("Skipping image %s: %s", path, e)
        return None
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(data).decode("ascii")
    return {"type": "input_image", "image_url": f"data:{mime_type};base64,{encoded}"}


def create_input_item(text: str, image_paths: Sequence[str | Path] = ()) -> TranscriptItem:
    """A user message with an `input_text` part and one `input_image` part per readable image."""
    content: list[dict[str, str]] = [{"type": "input_text", "text": text}]
    for image_path in image_paths:
        part = _image_part(Path(image_path).expanduser())
        if part is not None:
            content.append(part)
    return TranscriptItem(role=ItemRole.USER, content=content)
