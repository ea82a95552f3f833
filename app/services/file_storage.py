"""Archive of uploaded registration spreadsheets.

Every upload is kept on disk next to the batch it produced, under::

    UPLOADS_DIR/event_<id>/<yyyy>/<mm>/<uploader>/<uuid4>_<file name>
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from pathlib import Path

_UNSAFE_CHARS = re.compile(r"[^\w.\-]")


def safe_component(text: str, fallback: str) -> str:
    """Make *text* usable as one path component.

    Spaces turn into underscores; anything other than word characters, dots
    and dashes is dropped (``\\w`` keeps Vietnamese letters).
    """
    cleaned = _UNSAFE_CHARS.sub("", text.replace(" ", "_")).lstrip(".")
    return cleaned or fallback


def archive_dir(uploads_dir: Path, event_id: int, username: str, when: datetime) -> Path:
    return (
        uploads_dir
        / f"event_{event_id}"
        / f"{when.year:04d}"
        / f"{when.month:02d}"
        / safe_component(username, "anonymous")
    )


def save_upload(
    raw_bytes: bytes,
    filename: str,
    uploads_dir: Path,
    event_id: int,
    username: str = "anonymous",
) -> Path:
    """Write *raw_bytes* into the archive and return the stored path.

    A random prefix keeps two uploads of the same file name apart.
    """
    target_dir = archive_dir(uploads_dir, event_id, username, datetime.now())
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{uuid.uuid4().hex}_{safe_component(filename, 'upload.xlsx')}"
    target.write_bytes(raw_bytes)
    return target
