import dataclasses

import pytest

from post_review.config import load_service_config


@pytest.fixture
def service_config(tmp_path):
    return dataclasses.replace(
        load_service_config(),
        completion_provider="openai",
        openai_api_key="test-key",
        media_store_provider="local",
        local_media_dir=tmp_path / "media",
        upload_dir=tmp_path / "uploads",
        persistence_service_url="http://bdd.local",
    )


class FakeMediaStore:
    name = "fake"

    def __init__(self, url="https://cloudinary.com/image.jpg", error=None):
        self.url = url
        self.error = error
        self.calls = []

    def upload(self, path, folder):
        self.calls.append((path, folder))
        if self.error is not None:
            raise self.error
        return self.url


@pytest.fixture
def fake_store():
    return FakeMediaStore()


@pytest.fixture
def store_factory():
    return FakeMediaStore
