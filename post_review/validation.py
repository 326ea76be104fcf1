from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

MISSING_FIELDS_MESSAGE = "Required fields are missing or no images were provided."


@dataclass(frozen=True)
class ValidationResult:
    status: str
    message: str
    warnings: list[str]

    @property
    def ok(self) -> bool:
        return self.status == "success"


def _split_tags(raw: str) -> list[str]:
    return [token.strip() for token in raw.split(",")]


def _normalize_tag_list(values: Iterable[object]) -> list[str]:
    return [value.strip() if isinstance(value, str) else str(value) for value in values]


def parse_tags(value: Any) -> Any:
    """Turn the ``tags`` field into a list.

    Lists pass through with their entries stripped. Strings are decoded as a
    JSON array first and split on commas otherwise. Anything else, including
    ``None``, is returned unchanged so the required-field check can see it.
    """
    if isinstance(value, (list, tuple)):
        return _normalize_tag_list(value)

    if not isinstance(value, str):
        return value

    try:
        decoded = json.loads(value)
    except (ValueError, RecursionError):
        return _split_tags(value)

    if isinstance(decoded, list):
        return _normalize_tag_list(decoded)
    return _split_tags(value)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, dict):
        return len(value) == 0
    if isinstance(value, (list, tuple, set)):
        return all(is_blank(item) for item in value)
    return False


def validate_required_fields(
    fields: Mapping[str, Any],
    expected: Sequence[str],
    media: Sequence[object] | None = None,
    *,
    require_media: bool = False,
) -> ValidationResult:
    missing = [name for name in expected if is_blank(fields.get(name))]
    warnings = [f"Missing field: {name}." for name in missing]

    if require_media and not media:
        warnings.append("At least one image is required.")

    if warnings:
        return ValidationResult(status="error", message=MISSING_FIELDS_MESSAGE, warnings=warnings)

    return ValidationResult(status="success", message="Submission is complete.", warnings=[])
