from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib import error, request

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_GENERATE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={api_key}"


@dataclass(frozen=True)
class LlmJsonResult:
    status: str
    raw_response: str | None
    warnings: list[str]


def _post_json(url: str, payload: dict[str, Any], headers: dict[str, str], timeout: float = 60.0) -> dict[str, Any]:
    body = json.dumps(payload).encode("utf-8")
    req = request.Request(url, data=body, headers=headers, method="POST")
    with request.urlopen(req, timeout=timeout) as response:
        response_body = response.read().decode("utf-8")
    return json.loads(response_body)


def _http_error_warning(provider_name: str, exc: error.HTTPError) -> str:
    response_excerpt = ""
    try:
        response_body = exc.read().decode("utf-8", errors="replace").strip()
    except OSError:
        response_body = ""

    if response_body:
        try:
            parsed = json.loads(response_body)
            if isinstance(parsed, dict):
                error_payload = parsed.get("error")
                if isinstance(error_payload, dict):
                    message = error_payload.get("message")
                    if isinstance(message, str) and message.strip():
                        response_excerpt = message.strip()
        except json.JSONDecodeError:
            response_excerpt = response_body[:200]

    if response_excerpt:
        return f"{provider_name} request failed with HTTP {exc.code}: {response_excerpt}"

    return f"{provider_name} request failed with HTTP {exc.code}."


def detect_image_mime_type(image_bytes: bytes) -> str:
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if image_bytes.startswith(b"RIFF") and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def text_block(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def image_block(image_b64: str, mime_type: str = "image/jpeg") -> dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}}


def _extract_chat_completion_text(response_payload: dict[str, Any]) -> str | None:
    choices = response_payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None

    content = (choices[0].get("message") or {}).get("content")
    if isinstance(content, str) and content.strip():
        return content

    if isinstance(content, list):
        collected = [
            part["text"]
            for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str) and part["text"].strip()
        ]
        if collected:
            return "\n".join(collected)

    return None


def _collect_gemini_text(response_payload: dict[str, Any]) -> str | None:
    candidates = response_payload.get("candidates") or []
    if not candidates:
        return None

    parts = (candidates[0].get("content") or {}).get("parts") or []
    extracted: list[str] = []
    for part in parts:
        text = part.get("text") if isinstance(part, dict) else None
        if isinstance(text, str) and text.strip():
            extracted.append(text.strip())

    if extracted:
        return "\n".join(extracted)
    return None


def _gemini_part(block: dict[str, Any]) -> dict[str, Any] | None:
    if block.get("type") == "text":
        return {"text": block.get("text", "")}

    if block.get("type") == "image_url":
        url = (block.get("image_url") or {}).get("url", "")
        header, _, data = url.partition(",")
        if not header.startswith("data:") or not data:
            return None
        mime_type = header[len("data:"):].split(";", 1)[0] or "image/jpeg"
        return {"inline_data": {"mime_type": mime_type, "data": data}}

    return None


def complete_chat_with_openai(
    api_key: str,
    model: str,
    messages: list[dict[str, Any]],
    max_tokens: int,
    temperature: float | None = None,
    timeout: float = 60.0,
) -> LlmJsonResult:
    payload: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
    }
    if temperature is not None:
        payload["temperature"] = temperature

    try:
        response_payload = _post_json(
            OPENAI_CHAT_COMPLETIONS_URL,
            payload,
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
        )
    except error.HTTPError as exc:
        return LlmJsonResult(status="error", raw_response=None, warnings=[_http_error_warning("OpenAI", exc)])
    except Exception as exc:
        return LlmJsonResult(
            status="error",
            raw_response=None,
            warnings=[f"OpenAI request failed before receiving a response: {exc}"],
        )

    extracted_text = _extract_chat_completion_text(response_payload)
    if extracted_text:
        return LlmJsonResult(status="success", raw_response=extracted_text, warnings=[])

    return LlmJsonResult(
        status="error",
        raw_response=json.dumps(response_payload),
        warnings=["OpenAI response did not contain extractable text content."],
    )


def complete_chat_with_gemini(
    api_key: str,
    model: str,
    messages: list[dict[str, Any]],
    max_tokens: int,
    temperature: float | None = None,
    timeout: float = 60.0,
) -> LlmJsonResult:
    contents = []
    for message in messages:
        blocks = message.get("content") or []
        if isinstance(blocks, str):
            blocks = [text_block(blocks)]
        parts = [part for part in (_gemini_part(block) for block in blocks) if part]
        if parts:
            role = "model" if message.get("role") == "assistant" else "user"
            contents.append({"role": role, "parts": parts})

    generation_config: dict[str, Any] = {"maxOutputTokens": max_tokens}
    if temperature is not None:
        generation_config["temperature"] = temperature

    try:
        response_payload = _post_json(
            GEMINI_GENERATE_URL.format(model=model, api_key=api_key),
            {"contents": contents, "generationConfig": generation_config},
            {"Content-Type": "application/json"},
            timeout=timeout,
        )
    except error.HTTPError as exc:
        return LlmJsonResult(status="error", raw_response=None, warnings=[_http_error_warning("Gemini", exc)])
    except Exception as exc:
        return LlmJsonResult(
            status="error",
            raw_response=None,
            warnings=[f"Gemini request failed before receiving a response: {exc}"],
        )

    extracted_text = _collect_gemini_text(response_payload)
    if extracted_text:
        return LlmJsonResult(status="success", raw_response=extracted_text, warnings=[])

    return LlmJsonResult(
        status="error",
        raw_response=json.dumps(response_payload),
        warnings=["Gemini response did not contain text content."],
    )
