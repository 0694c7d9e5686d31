from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fastapi.concurrency import run_in_threadpool

from analysis_backend.artifact_classifier import ArtifactCategory
from analysis_backend.insights import extract_key_insights
from analysis_backend.llm_provider import ChatMessage, CompletionClient, build_image_message
from analysis_backend.schema_models import AnalysisResult, FileArtifact, InboundArtifact, UrlArtifact
from analysis_backend.web_reader import WebPage, read_web_page

logger = logging.getLogger(__name__)

IMAGE_PROMPT = (
    "Analyze this image and provide a detailed description, key elements, "
    "and any text content visible in the image."
)
TEXT_SYSTEM_PROMPT = (
    "You are an AI assistant that analyzes text content. "
    "Provide a summary, key insights, main topics, and sentiment analysis."
)
WEB_SYSTEM_PROMPT = (
    "You are an AI assistant that analyzes web content. "
    "Provide a summary, key insights, main topics, and content structure analysis."
)

VIDEO_FILE_PLACEHOLDER = {
    "summary": (
        "This is a video analysis summary. In a production environment, we would extract frames, "
        "analyze audio, and provide a comprehensive analysis."
    ),
    "key_insights": [
        "Key visual elements detected",
        "Audio transcription and analysis",
        "Scene detection and segmentation",
        "Key moments identified",
    ],
    "duration": "00:05:23",
}

DOCUMENT_PLACEHOLDER = {
    "summary": (
        "This is a document analysis summary. In a production environment, we would extract text, "
        "analyze structure, and provide a comprehensive analysis."
    ),
    "key_insights": [
        "Document structure analyzed",
        "Key topics identified",
        "Main arguments extracted",
        "References and citations detected",
    ],
    "page_count": 5,
}

VIDEO_LINK_PLACEHOLDER = {
    "title": "Sample Video Title",
    "channel": "Sample Channel",
    "duration": "10:15",
    "summary": (
        "This is a video analysis summary. In a production environment, we would extract video "
        "metadata, analyze content, and provide a comprehensive analysis."
    ),
    "key_insights": [
        "Key topics covered in the video",
        "Main arguments presented",
        "Visual elements and demonstrations",
        "Audience engagement metrics",
    ],
    "transcript": "This is a sample transcript of the video content...",
}


class AnalysisStrategy(Protocol):
    name: str

    async def analyze(self, artifact: InboundArtifact) -> AnalysisResult:
        ...


def _read_bytes(path: Path) -> bytes:
    return Path(path).read_bytes()


def _read_text(path: Path) -> str:
    return Path(path).read_bytes().decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ImageStrategy:
    client: CompletionClient
    name: str = "image"

    async def analyze(self, artifact: FileArtifact) -> AnalysisResult:
        image_bytes = await run_in_threadpool(_read_bytes, artifact.path)
        message = build_image_message(IMAGE_PROMPT, image_bytes, artifact.mime_type)
        logger.info("Analyzing image %s (%d bytes)", artifact.original_name, len(image_bytes))
        completion = await run_in_threadpool(self.client.complete, [message], vision=True)
        return AnalysisResult(
            summary=completion,
            key_insights=extract_key_insights(completion),
            type="image",
        )


@dataclass(frozen=True)
class VideoFileStrategy:
    # No frame or audio extraction yet; always answers with the placeholder.
    name: str = "video"

    async def analyze(self, artifact: FileArtifact) -> AnalysisResult:
        return AnalysisResult(type="video", **VIDEO_FILE_PLACEHOLDER)


@dataclass(frozen=True)
class DocumentStrategy:
    # No PDF/Word text extraction yet; always answers with the placeholder.
    name: str = "document"

    async def analyze(self, artifact: FileArtifact) -> AnalysisResult:
        return AnalysisResult(type="document", **DOCUMENT_PLACEHOLDER)


@dataclass(frozen=True)
class TextStrategy:
    client: CompletionClient
    name: str = "text"

    async def analyze(self, artifact: FileArtifact) -> AnalysisResult:
        text = await run_in_threadpool(_read_text, artifact.path)
        messages = [
            ChatMessage(role="system", text=TEXT_SYSTEM_PROMPT),
            ChatMessage(role="user", text=text),
        ]
        logger.info("Analyzing text file %s (%d chars)", artifact.original_name, len(text))
        completion = await run_in_threadpool(self.client.complete, messages)
        return AnalysisResult(
            summary=completion,
            key_insights=extract_key_insights(completion),
            type="text",
        )


@dataclass(frozen=True)
class VideoLinkStrategy:
    # The remote video is never fetched; metadata is a fixed placeholder.
    name: str = "video-link"

    async def analyze(self, artifact: UrlArtifact) -> AnalysisResult:
        return AnalysisResult(type="video", **VIDEO_LINK_PLACEHOLDER)


def _web_prompt(page: WebPage) -> str:
    return (
        f"URL: {page.url}\n"
        f"Title: {page.title}\n"
        f"Description: {page.description}\n"
        f"Content: {page.body_text}"
    )


@dataclass(frozen=True)
class WebLinkStrategy:
    client: CompletionClient
    name: str = "web-link"

    async def analyze(self, artifact: UrlArtifact) -> AnalysisResult:
        page = await run_in_threadpool(read_web_page, artifact.url, self.client.timeout)
        messages = [
            ChatMessage(role="system", text=WEB_SYSTEM_PROMPT),
            ChatMessage(role="user", text=_web_prompt(page)),
        ]
        completion = await run_in_threadpool(self.client.complete, messages)
        return AnalysisResult(
            url=artifact.url,
            title=page.title,
            description=page.description,
            summary=completion,
            key_insights=extract_key_insights(completion),
            type="web",
        )


def build_strategies(client: CompletionClient) -> dict[ArtifactCategory, AnalysisStrategy]:
    return {
        ArtifactCategory.IMAGE: ImageStrategy(client),
        ArtifactCategory.VIDEO: VideoFileStrategy(),
        ArtifactCategory.DOCUMENT: DocumentStrategy(),
        ArtifactCategory.TEXT: TextStrategy(client),
    }
