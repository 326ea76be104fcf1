from __future__ import annotations

import json
from typing import Any, Sequence

ACCEPTABILITY_THRESHOLD = 80

IDENTIFY_CAR_PROMPT = (
    "Here is an image. Tell me whether it shows a real car. "
    "If it does, return a JSON object with the following details: brand, model, probable trim, "
    "generation, production years, fuel, body style, colour, transmission, visual cues "
    "(grille, headlights, rims, logo, etc.) and success: true. "
    'Otherwise return only: { "success": false }'
)


def _compact_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def build_post_review_prompt(
    *,
    brand: str,
    model: str,
    description: str,
    tags: list[str],
    image_previews: Sequence[str] = (),
) -> str:
    form = {
        "brand": brand,
        "model": model,
        "description": description,
        "tags": tags,
    }
    preview_lines = "\n".join(
        f"[Image {index}]: data:image/jpeg;base64,{preview[:50]}..."
        for index, preview in enumerate(image_previews, start=1)
    )
    return (
        "You are an automotive expert and an inappropriate-content detector.\n"
        "Assess how trustworthy this used-car listing is using these criteria:\n\n"
        "1. Check that the brand and model exist and are consistent with each other.\n"
        "2. Check the description for offensive, insulting or inappropriate content.\n"
        "3. Check that the tags are relevant and not offensive.\n"
        "4. Check that the images show a car consistent with the brand, model and description, "
        "and that they are distinct (no duplicates or inconsistencies).\n\n"
        f"Give an overall acceptability score between 0 and 100. A score of {ACCEPTABILITY_THRESHOLD} "
        "or more means the listing is valid.\n\n"
        f"Form:\n{json.dumps(form, ensure_ascii=False, indent=2)}\n"
        f"Tags (JSON): {_compact_json(tags)}\n\n"
        f"Images (base64, JPEG):\n{preview_lines}\n\n"
        "Your answer must be a single JSON object:\n"
        f"- When the score is >= {ACCEPTABILITY_THRESHOLD}:\n"
        '  {"success": true, "acceptabilityScore": 85, '
        '"info": "Listing valid overall. A few minor inaccuracies, but acceptable."}\n'
        f"- When the score is < {ACCEPTABILITY_THRESHOLD}:\n"
        '  {"success": false, "acceptabilityScore": 65, '
        '"errors": ["Brand \'Xxx\' looks unknown.", "One image does not match the described car."]}\n\n'
        "Be rigorous but tolerant: if you are not fully certain but the whole listing looks "
        "consistent, give a high score."
    )


def build_data_review_prompt(body: Any) -> str:
    return (
        "You are an inappropriate-content detector.\n"
        "Here is the body of a request to validate. Check that its content is acceptable "
        "(no puns, nothing misplaced, insulting or inappropriate).\n\n"
        f"Body: {_compact_json(body)}\n\n"
        "IMPORTANT: answer ONLY with a valid JSON object, with no extra text, "
        "no markdown code blocks and no backticks.\n\n"
        "Answer with exactly one of these JSON objects:\n\n"
        'Appropriate content:\n{"success": true}\n\n'
        'Inappropriate content:\n{"success": false}\n\n'
        "No other format is accepted."
    )
