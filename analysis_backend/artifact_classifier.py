from __future__ import annotations

from enum import Enum
from urllib.parse import urlparse

from analysis_backend.errors import InvalidUrl, MissingInput, UnsupportedType

DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)


class ArtifactCategory(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"
    TEXT = "text"


def _normalize_mime_type(mime_type: str | None) -> str:
    return (mime_type or "").split(";", 1)[0].strip().lower()


def classify_mime_type(mime_type: str | None) -> ArtifactCategory:
    """Map an upload's MIME type onto the strategy category that handles it."""
    normalized = _normalize_mime_type(mime_type)
    major, _, _ = normalized.partition("/")

    if major == "image":
        return ArtifactCategory.IMAGE
    if major == "video":
        return ArtifactCategory.VIDEO
    if normalized in DOCUMENT_MIME_TYPES:
        return ArtifactCategory.DOCUMENT
    if major == "text":
        return ArtifactCategory.TEXT
    raise UnsupportedType()


def is_valid_url(value: str | None) -> bool:
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        parsed = urlparse(value)
        # Accessing .port validates the port component.
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def require_url(value: object, missing_message: str) -> str:
    if value is None or value == "":
        raise MissingInput(missing_message)
    if not isinstance(value, str) or not is_valid_url(value):
        raise InvalidUrl()
    return value
