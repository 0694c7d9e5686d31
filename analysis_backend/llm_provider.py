from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib import error, request

from analysis_backend.analyzer_config import AnalyzerConfig, normalize_provider
from analysis_backend.errors import ExternalServiceError

logger = logging.getLogger(__name__)

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_GENERATE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={api_key}"


@dataclass(frozen=True)
class LlmJsonResult:
    status: str
    raw_response: str | None
    warnings: list[str]


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data_b64: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_b64}"


@dataclass(frozen=True)
class ChatMessage:
    role: str
    text: str
    images: tuple[InlineImage, ...] = field(default_factory=tuple)


def _post_json(url: str, payload: dict[str, Any], headers: dict[str, str], timeout: float | None = None) -> dict[str, Any]:
    body = json.dumps(payload).encode("utf-8")
    req = request.Request(url, data=body, headers=headers, method="POST")
    if timeout is None:
        response_cm = request.urlopen(req)
    else:
        response_cm = request.urlopen(req, timeout=timeout)
    with response_cm as response:
        response_body = response.read().decode("utf-8")
    return json.loads(response_body)


def _http_error_warning(provider_name: str, exc: error.HTTPError) -> str:
    response_excerpt = ""
    try:
        response_body = exc.read().decode("utf-8", errors="replace").strip()
    except Exception:
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


def build_image_message(prompt: str, image_bytes: bytes, mime_type: str | None = None) -> ChatMessage:
    image_mime_type = mime_type if (mime_type or "").startswith("image/") else detect_image_mime_type(image_bytes)
    image = InlineImage(
        mime_type=image_mime_type,
        data_b64=base64.b64encode(image_bytes).decode("ascii"),
    )
    return ChatMessage(role="user", text=prompt, images=(image,))


def _openai_message(message: ChatMessage) -> dict[str, Any]:
    if not message.images:
        return {"role": message.role, "content": message.text}

    content: list[dict[str, Any]] = [{"type": "text", "text": message.text}]
    for image in message.images:
        content.append({"type": "image_url", "image_url": {"url": image.data_url}})
    return {"role": message.role, "content": content}


def _extract_chat_completion_text(response_payload: dict[str, Any]) -> str | None:
    choices = response_payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None

    content = (choices[0].get("message") or {}).get("content")
    if isinstance(content, str) and content.strip():
        return content

    # Some compatible gateways return content as a list of typed parts.
    if isinstance(content, list):
        extracted = [
            part["text"].strip()
            for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str) and part["text"].strip()
        ]
        if extracted:
            return "\n".join(extracted)

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


def _gemini_payload(messages: list[ChatMessage], max_tokens: int) -> dict[str, Any]:
    system_texts = [message.text for message in messages if message.role == "system"]
    contents = []
    for message in messages:
        if message.role == "system":
            continue
        parts: list[dict[str, Any]] = [{"text": message.text}]
        for image in message.images:
            parts.append({"inline_data": {"mime_type": image.mime_type, "data": image.data_b64}})
        contents.append({"role": "model" if message.role == "assistant" else "user", "parts": parts})

    payload: dict[str, Any] = {
        "contents": contents,
        "generationConfig": {"maxOutputTokens": max_tokens},
    }
    if system_texts:
        payload["systemInstruction"] = {"parts": [{"text": "\n".join(system_texts)}]}
    return payload


def complete_with_openai(
    api_key: str,
    model: str,
    messages: list[ChatMessage],
    max_tokens: int = 1000,
    timeout: float | None = None,
) -> LlmJsonResult:
    try:
        payload = {
            "model": model,
            "messages": [_openai_message(message) for message in messages],
            "max_tokens": max_tokens,
        }
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
        return LlmJsonResult(
            status="error",
            raw_response=None,
            warnings=[_http_error_warning("OpenAI", exc)],
        )
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


def complete_with_gemini(
    api_key: str,
    model: str,
    messages: list[ChatMessage],
    max_tokens: int = 1000,
    timeout: float | None = None,
) -> LlmJsonResult:
    endpoint = GEMINI_GENERATE_URL.format(model=model, api_key=api_key)
    try:
        response_payload = _post_json(
            endpoint,
            _gemini_payload(messages, max_tokens),
            {"Content-Type": "application/json"},
            timeout=timeout,
        )
    except error.HTTPError as exc:
        return LlmJsonResult(
            status="error",
            raw_response=None,
            warnings=[_http_error_warning("Gemini", exc)],
        )
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


@dataclass(frozen=True)
class CompletionClient:
    """Completion capability shared by every strategy that calls a model.

    Built once from configuration and passed into the strategies.
    """

    provider: str
    api_key: str | None
    text_model: str
    vision_model: str
    max_tokens: int = 1000
    timeout: float | None = None

    @classmethod
    def from_config(cls, config: AnalyzerConfig) -> "CompletionClient":
        return cls(
            provider=normalize_provider(config.provider),
            api_key=config.api_key,
            text_model=config.text_model,
            vision_model=config.vision_model,
            max_tokens=config.max_tokens,
            timeout=config.http_timeout,
        )

    def complete(self, messages: list[ChatMessage], *, vision: bool = False) -> str:
        """Return the completion text or raise ``ExternalServiceError``."""
        model = self.vision_model if vision else self.text_model
        if not (self.api_key or "").strip():
            key_name = "GEMINI_API_KEY" if self.provider == "gemini" else "OPENAI_API_KEY"
            raise ExternalServiceError(f"{key_name} not configured.")

        logger.info("Requesting %s completion model=%s messages=%d", self.provider, model, len(messages))
        if self.provider == "gemini":
            result = complete_with_gemini(
                api_key=self.api_key,
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        else:
            result = complete_with_openai(
                api_key=self.api_key,
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )

        if result.status != "success" or not result.raw_response:
            message = "; ".join(result.warnings) or f"{self.provider} completion failed."
            logger.warning("Completion request failed: %s", message)
            raise ExternalServiceError(message)

        return result.raw_response
