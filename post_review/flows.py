from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from fastapi.concurrency import run_in_threadpool

from post_review import outcomes
from post_review.config import ServiceConfig, load_service_config
from post_review.delegate import DelegateRequest, EncodedImage, invoke_delegate
from post_review.errors import JsonExtractionError
from post_review.extraction import (
    DATA_REVIEW_POLICY,
    IDENTIFICATION_POLICY,
    POST_REVIEW_POLICY,
    extract_json_object,
)
from post_review.lifecycle import MediaItem
from post_review.llm_provider import detect_image_mime_type
from post_review.media_store import MediaStore, get_media_store
from post_review.persistence import build_post_document, relay_post
from post_review.prompts import IDENTIFY_CAR_PROMPT, build_data_review_prompt, build_post_review_prompt
from post_review.schemas import validate_extracted_result
from post_review.validation import parse_tags, validate_required_fields

logger = logging.getLogger(__name__)

POST_FIELDS = ("brand", "model", "description", "tags")

IDENTIFY_MAX_TOKENS = 1000
POST_REVIEW_MAX_TOKENS = 1200
DATA_REVIEW_MAX_TOKENS = 50


@dataclass(frozen=True)
class UploadedImage:
    url: str
    base64: str
    mime_type: str


def _encode(item: MediaItem) -> EncodedImage:
    raw = item.read_bytes()
    return EncodedImage(data=base64.b64encode(raw).decode("ascii"), mime_type=detect_image_mime_type(raw))


def _store_and_encode(item: MediaItem, store: MediaStore, folder: str) -> UploadedImage:
    url = store.upload(item.path, folder)
    encoded = _encode(item)
    return UploadedImage(url=url, base64=encoded.data, mime_type=encoded.mime_type)


async def upload_media(items: Sequence[MediaItem], store: MediaStore, folder: str) -> list[UploadedImage]:
    """Upload every item concurrently.

    All uploads run to completion before the first failure is raised, so no
    worker thread is still reading a file when the caller cleans up.
    """
    tasks = [run_in_threadpool(_store_and_encode, item, store, folder) for item in items]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


async def identify_car(media: Sequence[MediaItem], config: ServiceConfig | None = None) -> outcomes.Outcome:
    if not media:
        return outcomes.missing_image()

    resolved_config = config or load_service_config()
    try:
        image = await run_in_threadpool(_encode, media[0])
        reply = await run_in_threadpool(
            invoke_delegate,
            DelegateRequest(
                prompt=IDENTIFY_CAR_PROMPT,
                images=(image,),
                max_tokens=IDENTIFY_MAX_TOKENS,
                label="car identification",
            ),
            resolved_config,
        )

        try:
            parsed = extract_json_object(reply, IDENTIFICATION_POLICY)
        except JsonExtractionError as exc:
            logger.error("Could not extract JSON from identification reply (%s): %r", exc.reason, reply)
            return outcomes.identification_extraction_failed(exc)

        return outcomes.identification_result(parsed)
    except Exception as exc:
        logger.exception("Car identification failed")
        return outcomes.server_error(exc, outcomes.IDENTIFY_SERVER_ERROR)


async def review_post(
    fields: Mapping[str, Any],
    media: Sequence[MediaItem],
    authorization: str | None,
    config: ServiceConfig | None = None,
    store: MediaStore | None = None,
) -> outcomes.Outcome:
    submitted = {name: fields.get(name) for name in POST_FIELDS}
    submitted["tags"] = parse_tags(submitted["tags"])

    validation = validate_required_fields(submitted, POST_FIELDS, media, require_media=True)
    if not validation.ok:
        logger.info("Rejected incomplete post submission: %s", "; ".join(validation.warnings))
        return outcomes.invalid_input(validation)

    resolved_config = config or load_service_config()
    try:
        resolved_store = store or get_media_store(config=resolved_config)
        uploaded = await upload_media(media, resolved_store, resolved_config.media_store_folder)

        prompt = build_post_review_prompt(
            brand=submitted["brand"],
            model=submitted["model"],
            description=submitted["description"],
            tags=submitted["tags"],
            image_previews=[image.base64 for image in uploaded],
        )
        reply = await run_in_threadpool(
            invoke_delegate,
            DelegateRequest(
                prompt=prompt,
                images=tuple(EncodedImage(data=image.base64, mime_type=image.mime_type) for image in uploaded),
                max_tokens=POST_REVIEW_MAX_TOKENS,
                label="post review",
            ),
            resolved_config,
        )

        parsed = extract_json_object(reply, POST_REVIEW_POLICY)
        verdict = validate_extracted_result(parsed)
        if not verdict.success:
            logger.info("Post rejected by the model (score=%s)", verdict.acceptability_score)
            return outcomes.post_rejected(parsed)

        document = build_post_document(
            brand=submitted["brand"],
            model=submitted["model"],
            description=submitted["description"],
            tags=submitted["tags"],
            image_urls=[image.url for image in uploaded],
        )
        relay = await run_in_threadpool(relay_post, document, authorization, resolved_config)
        if not relay.ok:
            logger.error("Persistence service rejected post (HTTP %s): %s", relay.status_code, relay.payload)

        return outcomes.post_relayed(verdict, relay)
    except Exception as exc:
        logger.exception("Post review failed")
        return outcomes.server_error(exc)


async def review_data(body: Any, config: ServiceConfig | None = None) -> outcomes.Outcome:
    if body is None:
        return outcomes.missing_data()

    resolved_config = config or load_service_config()
    try:
        reply = await run_in_threadpool(
            invoke_delegate,
            DelegateRequest(
                prompt=build_data_review_prompt(body),
                max_tokens=DATA_REVIEW_MAX_TOKENS,
                temperature=0,
                label="data review",
            ),
            resolved_config,
        )

        try:
            parsed = extract_json_object(reply, DATA_REVIEW_POLICY)
        except JsonExtractionError as exc:
            logger.error("Could not extract JSON from data review reply: %r", reply)
            return outcomes.data_extraction_failed(exc)

        verdict = validate_extracted_result(parsed)
        if not verdict.success:
            logger.info("Data review flagged inappropriate content")
        return outcomes.data_verdict(verdict)
    except Exception as exc:
        logger.exception("Data review failed")
        return outcomes.server_error(exc)
