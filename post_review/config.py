from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path

DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_PERSISTENCE_SERVICE_URL = "http://localhost:3001"


@dataclass(frozen=True)
class ServiceConfig:
    completion_provider: str
    openai_api_key: str | None
    openai_model: str
    gemini_api_key: str | None
    gemini_model: str
    request_timeout_seconds: float
    media_store_provider: str
    media_store_folder: str
    local_media_dir: Path
    persistence_service_url: str
    upload_dir: Path
    allowed_origins: list[str]
    log_level: str

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["local_media_dir"] = str(self.local_media_dir)
        payload["upload_dir"] = str(self.upload_dir)
        payload.pop("openai_api_key", None)
        payload.pop("gemini_api_key", None)
        return payload

    @property
    def completion_api_key(self) -> str | None:
        if self.completion_provider == "gemini":
            return self.gemini_api_key
        return self.openai_api_key

    @property
    def completion_model(self) -> str:
        if self.completion_provider == "gemini":
            return self.gemini_model
        return self.openai_model


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _optional_env(name: str) -> str | None:
    value = _env(name)
    return value or None


def _parse_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        return 60.0
    return timeout if timeout > 0 else 60.0


def load_service_config() -> ServiceConfig:
    provider = _env("COMPLETION_PROVIDER", "openai").lower()
    if provider == "chatgpt":
        provider = "openai"

    return ServiceConfig(
        completion_provider=provider,
        openai_api_key=_optional_env("OPENAI_API_KEY"),
        openai_model=_env("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        gemini_api_key=_optional_env("GEMINI_API_KEY"),
        gemini_model=_env("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        request_timeout_seconds=_parse_timeout(_env("REQUEST_TIMEOUT_SECONDS", "60")),
        media_store_provider=_env("MEDIA_STORE_PROVIDER", "cloudinary").lower(),
        media_store_folder=_env("MEDIA_STORE_FOLDER", "posts"),
        local_media_dir=Path(_env("LOCAL_MEDIA_DIR", "data/media")),
        persistence_service_url=_env("PERSISTENCE_SERVICE_URL", DEFAULT_PERSISTENCE_SERVICE_URL).rstrip("/"),
        upload_dir=Path(_env("UPLOAD_DIR", "data/uploads")),
        allowed_origins=_parse_origins(_env("ALLOWED_ORIGINS", "*")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
