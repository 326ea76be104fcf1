from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi.responses import JSONResponse

from post_review.errors import JsonExtractionError
from post_review.persistence import RelayResult
from post_review.schemas import ExtractedResultModel
from post_review.validation import ValidationResult

SERVER_ERROR = "Server error"
PERSISTENCE_FAILED = "validation succeeded but persistence failed"
DEFAULT_POST_INFO = "Post validated and created"
NO_IMAGE = "No image was provided."
NO_DATA = "No data provided."
IDENTIFY_SERVER_ERROR = "Server error or unprocessable image."
IDENTIFY_INVALID_FORMAT = "Invalid reply format from the model."
IDENTIFY_UNEXPECTED_FORMAT = "Unexpected reply format from the model."
DATA_INVALID_REPLY = "Validation error - invalid model reply"
DATA_INAPPROPRIATE = "Inappropriate content detected."
DATA_VALIDATED = "Data validated successfully."


@dataclass(frozen=True)
class Outcome:
    status_code: int
    content: Any

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.content)


def invalid_input(validation: ValidationResult) -> Outcome:
    return Outcome(400, {"success": False, "error": validation.message})


def missing_image() -> Outcome:
    return Outcome(400, {"success": False, "error": NO_IMAGE})


def missing_data() -> Outcome:
    return Outcome(400, {"success": False, "error": NO_DATA})


def server_error(exc: BaseException, error: str = SERVER_ERROR) -> Outcome:
    return Outcome(500, {"success": False, "error": error, "message": str(exc)})


def post_rejected(parsed: dict[str, Any]) -> Outcome:
    # A flagged listing is reported as a client error with the model's verdict.
    return Outcome(400, parsed)


def post_relayed(verdict: ExtractedResultModel, relay: RelayResult) -> Outcome:
    if not relay.ok:
        return Outcome(500, {"success": False, "error": PERSISTENCE_FAILED, "details": relay.payload})

    return Outcome(201, {"success": True, "info": verdict.info or DEFAULT_POST_INFO, "post": relay.payload})


def data_verdict(verdict: ExtractedResultModel) -> Outcome:
    # A flagged body is still a successfully computed answer, hence 200.
    if not verdict.success:
        return Outcome(200, {"success": False, "error": DATA_INAPPROPRIATE})
    return Outcome(200, {"success": True, "message": DATA_VALIDATED})


def data_extraction_failed(exc: JsonExtractionError) -> Outcome:
    return Outcome(500, {"success": False, "error": DATA_INVALID_REPLY, "details": str(exc)})


def identification_result(parsed: dict[str, Any]) -> Outcome:
    return Outcome(200, parsed)


def identification_extraction_failed(exc: JsonExtractionError) -> Outcome:
    error = IDENTIFY_INVALID_FORMAT if exc.reason == "invalid_json" else IDENTIFY_UNEXPECTED_FORMAT
    return Outcome(500, {"success": False, "error": error, "raw_response": exc.raw_response})
