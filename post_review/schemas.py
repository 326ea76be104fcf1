from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ExtractedResultModel(BaseModel):
    """Verdict recovered from a model reply. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    success: bool
    info: str | None = None
    acceptability_score: float | None = Field(default=None, alias="acceptabilityScore")
    errors: list[str] | None = None


class PostDocumentModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    brand: str
    model: str
    description: str
    tags: list[str]
    images: list[str]


def validate_extracted_result(payload: dict[str, Any]) -> ExtractedResultModel:
    """Coerce a parsed reply into a verdict.

    ``success`` is read by truthiness, so a missing flag is a rejection.
    """
    normalized = dict(payload)
    normalized["success"] = bool(normalized.get("success"))
    errors = normalized.get("errors")
    if errors is not None and not isinstance(errors, list):
        normalized["errors"] = [str(errors)]
    elif isinstance(errors, list):
        normalized["errors"] = [str(item) for item in errors]
    info = normalized.get("info")
    if info is not None and not isinstance(info, str):
        normalized["info"] = str(info)
    score = normalized.get("acceptabilityScore")
    if score is not None and (isinstance(score, bool) or not isinstance(score, (int, float))):
        normalized.pop("acceptabilityScore")
    return ExtractedResultModel.model_validate(normalized)
