import logging
import os
from pathlib import Path

import pytest

from post_review.lifecycle import MediaItem, TemporaryMedia, release_media, spool_upload


def test_spool_upload_writes_random_name(tmp_path):
    item = spool_upload("car.jpg", b"data", "image/jpeg", tmp_path / "uploads")

    assert item.original_filename == "car.jpg"
    assert item.content_type == "image/jpeg"
    assert os.path.dirname(item.path) == str(tmp_path / "uploads")
    assert os.path.basename(item.path) != "car.jpg"
    assert item.read_bytes() == b"data"


def test_files_are_deleted_after_block(tmp_path):
    with TemporaryMedia() as media:
        first = media.add(spool_upload("a.jpg", b"a", None, tmp_path))
        second = media.add(spool_upload("b.jpg", b"b", None, tmp_path))

    assert not os.path.exists(first.path)
    assert not os.path.exists(second.path)


def test_files_are_deleted_when_block_raises(tmp_path):
    with pytest.raises(RuntimeError, match="delegate down"):
        with TemporaryMedia() as media:
            item = media.add(spool_upload("a.jpg", b"a", None, tmp_path))
            raise RuntimeError("delegate down")

    assert not os.path.exists(item.path)


def test_deletion_failure_is_logged_and_remaining_files_are_removed(tmp_path, caplog):
    missing = MediaItem(path=str(tmp_path / "already-gone"), original_filename="gone.jpg")
    present = spool_upload("b.jpg", b"b", None, tmp_path)

    with caplog.at_level(logging.WARNING, logger="post_review.lifecycle"):
        removed = release_media([missing, present])

    assert removed == [present.path]
    assert not os.path.exists(present.path)
    assert any("Could not delete temporary file" in record.getMessage() for record in caplog.records)


def test_release_runs_once(tmp_path):
    media = TemporaryMedia([spool_upload("a.jpg", b"a", None, tmp_path)])

    assert len(media.release()) == 1
    assert media.release() == []


def test_partial_spool_is_removed_when_write_fails(tmp_path, monkeypatch):
    def _failing_write(self, data):
        with open(self, "wb") as handle:
            handle.write(data[:1])
        raise OSError("No space left on device")

    monkeypatch.setattr(Path, "write_bytes", _failing_write)

    with pytest.raises(OSError):
        spool_upload("car.jpg", b"fake-image-data", "image/jpeg", tmp_path / "uploads")

    assert list((tmp_path / "uploads").iterdir()) == []
