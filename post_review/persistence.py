from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib import error, request

from post_review.config import ServiceConfig, load_service_config
from post_review.errors import RelayTransportError
from post_review.schemas import PostDocumentModel

logger = logging.getLogger(__name__)

POSTS_PATH = "/api/posts"


@dataclass(frozen=True)
class RelayResult:
    ok: bool
    status_code: int
    payload: Any


def _decode_body(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace").strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"raw": text[:500]}


def build_post_document(
    *,
    brand: str,
    model: str,
    description: str,
    tags: list[str],
    image_urls: list[str],
) -> dict[str, Any]:
    document = PostDocumentModel(
        brand=brand,
        model=model,
        description=description,
        tags=[str(tag) for tag in tags],
        images=list(image_urls),
    )
    return document.model_dump()


def relay_post(
    document: dict[str, Any],
    authorization: str | None,
    config: ServiceConfig | None = None,
) -> RelayResult:
    """Forward an accepted post to the persistence service.

    Non-2xx answers come back as ``RelayResult(ok=False)`` with the decoded
    error body; only transport failures raise.
    """
    resolved_config = config or load_service_config()
    url = f"{resolved_config.persistence_service_url}{POSTS_PATH}"
    headers = {"Content-Type": "application/json"}
    if authorization:
        headers["Authorization"] = authorization

    body = json.dumps(document).encode("utf-8")
    req = request.Request(url, data=body, headers=headers, method="POST")

    logger.info("Sending validated post to persistence service at %s", url)
    try:
        with request.urlopen(req, timeout=resolved_config.request_timeout_seconds) as response:
            return RelayResult(ok=True, status_code=response.status, payload=_decode_body(response.read()))
    except error.HTTPError as exc:
        try:
            payload = _decode_body(exc.read())
        except OSError:
            payload = None
        return RelayResult(ok=False, status_code=exc.code, payload=payload)
    except (error.URLError, OSError) as exc:
        raise RelayTransportError(f"Persistence service unreachable: {exc}") from exc
