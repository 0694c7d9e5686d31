from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PROVIDER = "openai"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_CORS_ORIGINS = "*"
DEFAULT_PORT = 5000

DEFAULT_MODELS = {
    "openai": {"text": "gpt-4", "vision": "gpt-4-vision-preview"},
    "gemini": {"text": "gemini-1.5-flash", "vision": "gemini-1.5-flash"},
}

PROVIDER_ALIASES = {
    "openai": "openai",
    "chatgpt": "openai",
    "gemini": "gemini",
}


@dataclass(frozen=True)
class AnalyzerConfig:
    provider: str
    api_key: str | None
    text_model: str
    vision_model: str
    max_tokens: int
    http_timeout: float | None
    upload_dir: Path
    max_upload_bytes: int
    cors_allowed_origins: list[str]
    port: int

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "api_key_configured": bool(self.api_key),
            "text_model": self.text_model,
            "vision_model": self.vision_model,
            "max_tokens": self.max_tokens,
            "http_timeout": self.http_timeout,
            "upload_dir": str(self.upload_dir),
            "max_upload_bytes": self.max_upload_bytes,
            "cors_allowed_origins": self.cors_allowed_origins,
            "port": self.port,
        }


def normalize_provider(value: str | None) -> str:
    raw = (value or DEFAULT_PROVIDER).strip().lower()
    provider = PROVIDER_ALIASES.get(raw)
    if provider is None:
        raise ValueError(
            f"Unknown LLM provider '{raw}'. "
            f"Available providers: {', '.join(sorted(PROVIDER_ALIASES))}."
        )
    return provider


def _read_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{raw}'.") from exc


def _read_optional_float(name: str) -> float | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'.") from exc
    return value if value > 0 else None


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_analyzer_config() -> AnalyzerConfig:
    provider = normalize_provider(os.getenv("ANALYZER_LLM_PROVIDER"))
    if provider == "gemini":
        api_key = (os.getenv("GEMINI_API_KEY") or "").strip() or None
    else:
        api_key = (os.getenv("OPENAI_API_KEY") or "").strip() or None

    models = DEFAULT_MODELS[provider]
    return AnalyzerConfig(
        provider=provider,
        api_key=api_key,
        text_model=(os.getenv("ANALYZER_TEXT_MODEL") or models["text"]).strip(),
        vision_model=(os.getenv("ANALYZER_VISION_MODEL") or models["vision"]).strip(),
        max_tokens=_read_int("ANALYZER_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        http_timeout=_read_optional_float("ANALYZER_HTTP_TIMEOUT_SECONDS"),
        upload_dir=Path(os.getenv("ANALYZER_UPLOAD_DIR") or DEFAULT_UPLOAD_DIR),
        max_upload_bytes=_read_int("ANALYZER_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        cors_allowed_origins=_split_origins(
            os.getenv("ANALYZER_CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS)
        ),
        port=_read_int("PORT", DEFAULT_PORT),
    )
