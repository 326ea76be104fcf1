from __future__ import annotations

import hashlib
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import cloudinary
import cloudinary.uploader

from post_review.config import ServiceConfig, load_service_config
from post_review.errors import MediaStoreError


class MediaStore(Protocol):
    name: str

    def upload(self, path: str, folder: str) -> str:
        ...


@dataclass
class CloudinaryMediaStore:
    name: str = "cloudinary"

    def upload(self, path: str, folder: str) -> str:
        try:
            result = cloudinary.uploader.upload(
                path,
                folder=folder,
                use_filename=True,
                unique_filename=False,
                resource_type="image",
            )
        except Exception as exc:
            raise MediaStoreError(f"Cloudinary upload failed: {exc}") from exc

        url = result.get("secure_url") if isinstance(result, dict) else None
        if not url:
            raise MediaStoreError("Cloudinary upload returned no secure_url.")
        return url


@dataclass
class LocalMediaStore:
    root: Path
    name: str = "local"

    def upload(self, path: str, folder: str) -> str:
        source = Path(path)
        try:
            content = source.read_bytes()
        except OSError as exc:
            raise MediaStoreError(f"Could not read upload {path}: {exc}") from exc

        sha256 = hashlib.sha256(content).hexdigest()
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / f"{sha256}{source.suffix.lower()}"
        if not target.exists():
            shutil.copyfile(source, target)
        return target.resolve().as_uri()


def list_media_stores() -> list[str]:
    return ["cloudinary", "local"]


def _configure_cloudinary() -> None:
    # CLOUDINARY_URL is picked up by the SDK itself; split credentials are not.
    cloud_name = (os.getenv("CLOUDINARY_CLOUD_NAME") or "").strip()
    if cloud_name:
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=(os.getenv("CLOUDINARY_API_KEY") or "").strip(),
            api_secret=(os.getenv("CLOUDINARY_API_SECRET") or "").strip(),
            secure=True,
        )


def get_media_store(provider_name: str | None = None, config: ServiceConfig | None = None) -> MediaStore:
    resolved_config = config or load_service_config()
    selected = (provider_name or resolved_config.media_store_provider).strip().lower()

    if selected == "cloudinary":
        _configure_cloudinary()
        return CloudinaryMediaStore()
    if selected == "local":
        return LocalMediaStore(root=resolved_config.local_media_dir)

    raise ValueError(
        f"Unknown media store '{selected}'. "
        f"Available stores: {', '.join(list_media_stores())}."
    )
