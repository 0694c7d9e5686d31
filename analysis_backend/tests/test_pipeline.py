import asyncio

import pytest

from analysis_backend import pipeline
from analysis_backend.artifact_classifier import ArtifactCategory
from analysis_backend.errors import ExternalServiceError, FetchError, InvalidUrl, MissingInput, UnsupportedType
from analysis_backend.schema_models import AnalysisResult, FileArtifact, UrlAnalysisEnvelope
from analysis_backend.strategies import VideoLinkStrategy

RESULT = AnalysisResult(summary="Summary", key_insights=["An insight that is long"], type="text")


class RecordingStrategy:
    name = "recording"

    def __init__(self, result=RESULT, error=None):
        self.result = result
        self.error = error
        self.artifacts = []

    async def analyze(self, artifact):
        self.artifacts.append(artifact)
        if self.error is not None:
            raise self.error
        return self.result


def _respond(operation, message="Failed to analyze web URL"):
    return asyncio.run(pipeline.respond(operation, message))


def test_respond_returns_success_envelope():
    async def operation():
        return UrlAnalysisEnvelope(url="https://example.com", result=RESULT)

    status_code, payload = _respond(operation)

    assert status_code == 200
    assert payload == {
        "success": True,
        "url": "https://example.com",
        "result": {"summary": "Summary", "keyInsights": ["An insight that is long"], "type": "text"},
    }


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (MissingInput("No web URL provided"), {"error": "No web URL provided"}),
        (InvalidUrl(), {"error": "Invalid URL format"}),
        (UnsupportedType(), {"error": "Unsupported file type"}),
    ],
)
def test_validation_failures_map_to_400_without_details(error, expected):
    async def operation():
        raise error

    assert _respond(operation) == (400, expected)


@pytest.mark.parametrize(
    "error",
    [
        ExternalServiceError("OpenAI request failed with HTTP 500."),
        FetchError("Request failed with status code 404"),
    ],
)
def test_downstream_failures_map_to_500_with_details(error):
    async def operation():
        raise error

    status_code, payload = _respond(operation)

    assert status_code == 500
    assert payload == {"error": "Failed to analyze web URL", "details": error.message}


def test_unexpected_exceptions_are_wrapped():
    async def operation():
        raise RuntimeError("disk on fire")

    assert _respond(operation, "Failed to analyze file") == (
        500,
        {"error": "Failed to analyze file", "details": "disk on fire"},
    )


def test_logging_failure_does_not_block_envelope(monkeypatch):
    class BrokenLogger:
        def warning(self, *args, **kwargs):
            raise OSError("log sink unavailable")

        def exception(self, *args, **kwargs):
            raise OSError("log sink unavailable")

    monkeypatch.setattr(pipeline, "logger", BrokenLogger())

    async def operation():
        raise FetchError("Request failed with status code 502")

    assert _respond(operation) == (
        500,
        {"error": "Failed to analyze web URL", "details": "Request failed with status code 502"},
    )


def test_analyze_file_routes_by_mime_type(tmp_path):
    text_strategy = RecordingStrategy()
    registry = {category: RecordingStrategy() for category in ArtifactCategory}
    registry[ArtifactCategory.TEXT] = text_strategy
    artifact = FileArtifact(path=tmp_path / "a.txt", mime_type="text/plain", original_name="a.txt")

    envelope = asyncio.run(pipeline.analyze_file(artifact, registry))

    assert text_strategy.artifacts == [artifact]
    assert envelope.to_payload()["fileName"] == "a.txt"
    assert envelope.to_payload()["fileType"] == "text/plain"


def test_analyze_file_rejects_unsupported_type(tmp_path):
    registry = {category: RecordingStrategy() for category in ArtifactCategory}
    artifact = FileArtifact(path=tmp_path / "a.mp3", mime_type="audio/mpeg", original_name="a.mp3")

    with pytest.raises(UnsupportedType):
        asyncio.run(pipeline.analyze_file(artifact, registry))

    assert all(not strategy.artifacts for strategy in registry.values())


def test_analyze_url_validates_before_running_strategy():
    strategy = RecordingStrategy()

    with pytest.raises(InvalidUrl):
        asyncio.run(pipeline.analyze_url("not-a-url", strategy, pipeline.MISSING_WEB_URL_MESSAGE))

    assert strategy.artifacts == []


def test_analyze_url_wraps_video_link_result():
    envelope = asyncio.run(
        pipeline.analyze_url("https://youtu.be/abc", VideoLinkStrategy(), pipeline.MISSING_VIDEO_URL_MESSAGE)
    )

    payload = envelope.to_payload()
    assert payload["success"] is True
    assert payload["url"] == "https://youtu.be/abc"
    assert "fileName" not in payload
    assert payload["result"]["title"] == "Sample Video Title"
