import pytest

from analysis_backend.artifact_classifier import (
    ArtifactCategory,
    classify_mime_type,
    is_valid_url,
    require_url,
)
from analysis_backend.errors import InvalidUrl, MissingInput, UnsupportedType


@pytest.mark.parametrize(
    ("mime_type", "expected"),
    [
        ("image/png", ArtifactCategory.IMAGE),
        ("image/jpeg", ArtifactCategory.IMAGE),
        ("video/mp4", ArtifactCategory.VIDEO),
        ("application/pdf", ArtifactCategory.DOCUMENT),
        ("application/msword", ArtifactCategory.DOCUMENT),
        (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            ArtifactCategory.DOCUMENT,
        ),
        ("text/plain", ArtifactCategory.TEXT),
        ("text/markdown; charset=utf-8", ArtifactCategory.TEXT),
        ("IMAGE/PNG", ArtifactCategory.IMAGE),
    ],
)
def test_classify_mime_type(mime_type, expected):
    assert classify_mime_type(mime_type) == expected


@pytest.mark.parametrize("mime_type", ["audio/mpeg", "application/zip", "", None])
def test_unsupported_mime_types_raise(mime_type):
    with pytest.raises(UnsupportedType) as exc_info:
        classify_mime_type(mime_type)

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Unsupported file type"


@pytest.mark.parametrize(
    "value",
    ["https://example.com", "http://example.com/page?q=1#top", "https://www.youtube.com/watch?v=abc"],
)
def test_valid_urls(value):
    assert is_valid_url(value) is True


@pytest.mark.parametrize(
    "value",
    ["not-a-url", "example.com", "http://", "/relative/path", " https://example.com", "http://example.com:port"],
)
def test_invalid_urls(value):
    assert is_valid_url(value) is False


def test_require_url_reports_missing_input():
    with pytest.raises(MissingInput) as exc_info:
        require_url(None, "No web URL provided")

    assert exc_info.value.message == "No web URL provided"
    assert exc_info.value.status_code == 400

    with pytest.raises(MissingInput):
        require_url("", "No web URL provided")


def test_require_url_rejects_malformed_and_non_string_values():
    with pytest.raises(InvalidUrl) as exc_info:
        require_url("not-a-url", "No web URL provided")
    assert exc_info.value.message == "Invalid URL format"

    with pytest.raises(InvalidUrl):
        require_url(42, "No web URL provided")


def test_require_url_returns_the_url():
    assert require_url("https://example.com/a", "missing") == "https://example.com/a"
