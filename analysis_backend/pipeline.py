from __future__ import annotations

import logging
from typing import Awaitable, Callable, Mapping

from analysis_backend.artifact_classifier import ArtifactCategory, classify_mime_type, require_url
from analysis_backend.errors import AnalysisError, UnexpectedError
from analysis_backend.schema_models import (
    ErrorEnvelope,
    FileAnalysisEnvelope,
    FileArtifact,
    UrlAnalysisEnvelope,
    UrlArtifact,
)
from analysis_backend.strategies import AnalysisStrategy

logger = logging.getLogger(__name__)

FILE_FAILURE_MESSAGE = "Failed to analyze file"
VIDEO_LINK_FAILURE_MESSAGE = "Failed to analyze video link"
WEB_URL_FAILURE_MESSAGE = "Failed to analyze web URL"

MISSING_VIDEO_URL_MESSAGE = "No video URL provided"
MISSING_WEB_URL_MESSAGE = "No web URL provided"

Envelope = FileAnalysisEnvelope | UrlAnalysisEnvelope


def _log_failure(failure_message: str, exc: Exception) -> None:
    # A broken log handler must not keep the caller from getting its envelope.
    try:
        if isinstance(exc, AnalysisError) and exc.is_client_error:
            logger.warning("%s: %s", failure_message, exc.message)
        else:
            logger.exception("%s: %s", failure_message, exc)
    except Exception:
        pass


def error_payload(exc: Exception, failure_message: str) -> tuple[int, dict]:
    if not isinstance(exc, AnalysisError):
        exc = UnexpectedError(str(exc) or type(exc).__name__)

    if exc.is_client_error:
        envelope = ErrorEnvelope(error=exc.message)
    else:
        envelope = ErrorEnvelope(error=failure_message, details=exc.message)
    return exc.status_code, envelope.to_payload()


async def respond(operation: Callable[[], Awaitable[Envelope]], failure_message: str) -> tuple[int, dict]:
    """Run one analysis and fold any outcome into a status code and JSON envelope."""
    try:
        envelope = await operation()
    except Exception as exc:
        _log_failure(failure_message, exc)
        return error_payload(exc, failure_message)
    return 200, envelope.to_payload()


async def analyze_file(
    artifact: FileArtifact,
    strategies: Mapping[ArtifactCategory, AnalysisStrategy],
) -> FileAnalysisEnvelope:
    category = classify_mime_type(artifact.mime_type)
    strategy = strategies[category]
    logger.info("Routing %s (%s) to %s strategy", artifact.original_name, artifact.mime_type, strategy.name)
    result = await strategy.analyze(artifact)
    return FileAnalysisEnvelope(
        file_name=artifact.original_name,
        file_type=artifact.mime_type,
        result=result,
    )


async def analyze_url(raw_url: object, strategy: AnalysisStrategy, missing_message: str) -> UrlAnalysisEnvelope:
    url = require_url(raw_url, missing_message)
    logger.info("Routing %s to %s strategy", url, strategy.name)
    result = await strategy.analyze(UrlArtifact(url=url))
    return UrlAnalysisEnvelope(url=url, result=result)
