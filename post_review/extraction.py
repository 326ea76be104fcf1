from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Callable

from post_review.errors import JsonExtractionError

NARROW = "narrow"
GREEDY = "greedy"

_OPENING_FENCE = re.compile(r"```(?:[\w+-]*[ \t]*\r?\n|json\b)", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"```\s*")
_OBJECT_PATTERNS = {
    # First "{" up to the next "}": enough for flat replies such as {"success": true}.
    NARROW: re.compile(r"\{[^}]*\}"),
    # First "{" up to the last "}": keeps nested lists and objects intact.
    GREEDY: re.compile(r"\{.*\}", re.DOTALL),
}


@dataclass(frozen=True)
class ExtractionPolicy:
    """How a flow recovers its JSON object from a model reply.

    ``match`` selects the brace-matching strategy used when the cleaned text is
    not JSON on its own. ``allow_flag_heuristic`` enables the keyword guess
    for replies that only carry a boolean ``success`` flag.
    """

    match: str = GREEDY
    allow_flag_heuristic: bool = False

    def __post_init__(self) -> None:
        if self.match not in _OBJECT_PATTERNS:
            raise ValueError(
                f"Unknown match strategy '{self.match}'. "
                f"Available strategies: {', '.join(sorted(_OBJECT_PATTERNS))}."
            )


IDENTIFICATION_POLICY = ExtractionPolicy(match=GREEDY, allow_flag_heuristic=False)
POST_REVIEW_POLICY = ExtractionPolicy(match=GREEDY, allow_flag_heuristic=False)
DATA_REVIEW_POLICY = ExtractionPolicy(match=NARROW, allow_flag_heuristic=True)


def clean_reply_text(text: str) -> str:
    cleaned = _OPENING_FENCE.sub("", text)
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    cleaned = cleaned.replace("`", "")
    return cleaned.strip()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} is not valid JSON.")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if math.isinf(value):
        raise ValueError(f"Number {literal} is out of range.")
    return value


def _load_object(candidate: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(candidate, parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_direct(cleaned: str, policy: ExtractionPolicy) -> dict[str, Any] | None:
    return _load_object(cleaned)


def find_object_candidate(cleaned: str, match: str) -> str | None:
    found = _OBJECT_PATTERNS[match].search(cleaned)
    return found.group(0) if found else None


def parse_embedded_object(cleaned: str, policy: ExtractionPolicy) -> dict[str, Any] | None:
    candidate = find_object_candidate(cleaned, policy.match)
    if candidate is None:
        return None
    return _load_object(candidate)


def guess_success_flag(cleaned: str, policy: ExtractionPolicy) -> dict[str, Any] | None:
    if not policy.allow_flag_heuristic:
        return None

    lowered = cleaned.lower()
    if "success" not in lowered:
        return None
    if "true" in lowered:
        return {"success": True}
    if "false" in lowered:
        return {"success": False}
    return None


EXTRACTION_STEPS: tuple[Callable[[str, ExtractionPolicy], dict[str, Any] | None], ...] = (
    parse_direct,
    parse_embedded_object,
    guess_success_flag,
)


def extract_json_object(text: str | None, policy: ExtractionPolicy = POST_REVIEW_POLICY) -> dict[str, Any]:
    """Recover the single JSON object a model reply is supposed to contain.

    The steps run in order and the first one that yields an object wins.
    Raises :class:`JsonExtractionError` when none does.
    """
    cleaned = clean_reply_text(text or "")

    for step in EXTRACTION_STEPS:
        parsed = step(cleaned, policy)
        if parsed is not None:
            return parsed

    reason = "invalid_json" if find_object_candidate(cleaned, policy.match) else "no_json"
    raise JsonExtractionError("No valid JSON found in model reply.", reason=reason, raw_response=text)
