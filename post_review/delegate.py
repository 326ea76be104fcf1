from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from post_review.config import ServiceConfig, load_service_config
from post_review.errors import DelegateCallError
from post_review.llm_provider import (
    LlmJsonResult,
    complete_chat_with_gemini,
    complete_chat_with_openai,
    image_block,
    text_block,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedImage:
    data: str
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class DelegateRequest:
    prompt: str
    images: Sequence[EncodedImage] = field(default_factory=tuple)
    max_tokens: int = 1000
    temperature: float | None = None
    label: str = "completion"


def build_messages(prompt: str, images: Sequence[EncodedImage] = ()) -> list[dict[str, Any]]:
    content = [text_block(prompt)]
    content.extend(image_block(image.data, image.mime_type) for image in images)
    return [{"role": "user", "content": content}]


def _call_provider(config: ServiceConfig, messages: list[dict[str, Any]], delegate_request: DelegateRequest) -> LlmJsonResult:
    api_key = config.completion_api_key
    if not api_key:
        env_name = "GEMINI_API_KEY" if config.completion_provider == "gemini" else "OPENAI_API_KEY"
        raise DelegateCallError(f"{env_name} not configured.")

    kwargs = {
        "api_key": api_key,
        "model": config.completion_model,
        "messages": messages,
        "max_tokens": delegate_request.max_tokens,
        "temperature": delegate_request.temperature,
        "timeout": config.request_timeout_seconds,
    }

    if config.completion_provider == "openai":
        return complete_chat_with_openai(**kwargs)
    if config.completion_provider == "gemini":
        return complete_chat_with_gemini(**kwargs)

    raise DelegateCallError(f"Unsupported completion provider '{config.completion_provider}'.")


def invoke_delegate(delegate_request: DelegateRequest, config: ServiceConfig | None = None) -> str:
    """Send one prompt (plus inline images) to the completion provider.

    Returns the text of the first choice. Every failure surfaces as
    :class:`DelegateCallError`; nothing is retried here.
    """
    resolved_config = config or load_service_config()
    messages = build_messages(delegate_request.prompt, delegate_request.images)

    logger.info(
        "Sending %s request to %s (%s, %d image(s))",
        delegate_request.label,
        resolved_config.completion_provider,
        resolved_config.completion_model,
        len(delegate_request.images),
    )
    result = _call_provider(resolved_config, messages, delegate_request)

    if result.status != "success" or not (result.raw_response or "").strip():
        message = "; ".join(result.warnings) or "Completion provider returned no text."
        raise DelegateCallError(message)

    logger.info("Received %s reply from %s", delegate_request.label, resolved_config.completion_provider)
    return result.raw_response
