from __future__ import annotations

import json
import logging

from fastapi import FastAPI, File, Form, Header, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from post_review import outcomes
from post_review.config import load_service_config
from post_review.flows import identify_car, review_data, review_post
from post_review.lifecycle import TemporaryMedia, spool_upload
from post_review.logging_config import configure_logging

CONFIG = load_service_config()
configure_logging(CONFIG.log_level)

logger = logging.getLogger(__name__)
logger.info("Loaded service configuration: %s", CONFIG.to_dict())

CORS_ALLOWED_ORIGINS = CONFIG.allowed_origins

app = FastAPI(title="Post Review AI API", description="AI gateway for listing and content review.", version="1.0.0")


@app.middleware("http")
async def api_prefix_alias(request, call_next):
    """Accept both `/path` and `/api/path`."""
    if request.scope.get("path", "").startswith("/api/"):
        request.scope["path"] = request.scope["path"][4:]
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/health")
def health_check():
    return {"status": "ok"}


async def _spool_all(uploads: list[UploadFile], media: TemporaryMedia) -> None:
    for upload in uploads:
        if not upload.filename:
            continue
        content = await upload.read()
        media.add(spool_upload(upload.filename, content, upload.content_type, CONFIG.upload_dir))


@app.post("/identify-car")
async def identify_car_endpoint(image: UploadFile | None = File(None)):
    with TemporaryMedia() as media:
        try:
            await _spool_all([image] if image is not None else [], media)
        except OSError as exc:
            logger.exception("Could not store uploaded image")
            return outcomes.server_error(exc, outcomes.IDENTIFY_SERVER_ERROR).to_response()

        outcome = await identify_car(media.items, CONFIG)
    return outcome.to_response()


@app.post("/validatePost")
async def validate_post_endpoint(
    image: list[UploadFile] | None = File(None),
    brand: str | None = Form(None),
    model: str | None = Form(None),
    description: str | None = Form(None),
    tags: str | None = Form(None),
    authorization: str | None = Header(None),
):
    with TemporaryMedia() as media:
        try:
            await _spool_all(image or [], media)
        except OSError as exc:
            logger.exception("Could not store uploaded images")
            return outcomes.server_error(exc).to_response()

        fields = {"brand": brand, "model": model, "description": description, "tags": tags}
        outcome = await review_post(fields, media.items, authorization, CONFIG)
    return outcome.to_response()


@app.post("/validateData")
async def validate_data_endpoint(request: Request):
    raw = await request.body()
    body = None
    if raw.strip():
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.info("Rejected data review request with a malformed JSON body")
            body = None

    outcome = await review_data(body, CONFIG)
    return outcome.to_response()
