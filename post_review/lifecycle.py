from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaItem:
    path: str
    original_filename: str
    content_type: str | None = None

    def read_bytes(self) -> bytes:
        return Path(self.path).read_bytes()


def spool_upload(filename: str, content: bytes, content_type: str | None, upload_dir: Path) -> MediaItem:
    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / uuid.uuid4().hex
    try:
        target.write_bytes(content)
    except OSError:
        target.unlink(missing_ok=True)
        raise
    return MediaItem(path=str(target), original_filename=filename, content_type=content_type)


def release_media(items: list[MediaItem]) -> list[str]:
    """Delete every temporary file once; failures are logged and skipped."""
    removed: list[str] = []
    for item in items:
        try:
            os.remove(item.path)
        except OSError as exc:
            logger.warning("Could not delete temporary file %s: %s", item.path, exc)
            continue
        removed.append(item.path)
    return removed


class TemporaryMedia:
    """Owns the uploaded files of one submission.

    Files registered with :meth:`add` are deleted when the ``with`` block
    exits, whatever the outcome. Exceptions raised inside the block are never
    swallowed.
    """

    def __init__(self, items: list[MediaItem] | None = None):
        self.items: list[MediaItem] = list(items or [])
        self._released = False

    def add(self, item: MediaItem) -> MediaItem:
        self.items.append(item)
        return item

    def release(self) -> list[str]:
        if self._released:
            return []
        self._released = True
        return release_media(self.items)

    def __enter__(self) -> "TemporaryMedia":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False
