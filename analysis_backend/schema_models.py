from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ResultType = Literal["image", "video", "document", "text", "web"]


class FileArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: Path
    mime_type: str
    original_name: str


class UrlArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    url: str


InboundArtifact = Annotated[Union[FileArtifact, UrlArtifact], Field(discriminator="kind")]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AnalysisResult(_CamelModel):
    """Normalized outcome of one strategy run; type-specific fields stay ``None`` when unused."""

    summary: str
    key_insights: list[str] = Field(default_factory=list, max_length=5)
    type: ResultType
    duration: str | None = None
    page_count: int | None = None
    title: str | None = None
    channel: str | None = None
    transcript: str | None = None
    url: str | None = None
    description: str | None = None


class FileAnalysisEnvelope(_CamelModel):
    success: bool = True
    file_name: str
    file_type: str
    result: AnalysisResult


class UrlAnalysisEnvelope(_CamelModel):
    success: bool = True
    url: str
    result: AnalysisResult


class ErrorEnvelope(_CamelModel):
    error: str
    details: str | None = None


class HealthStatus(_CamelModel):
    status: str = "ok"
    message: str = "API is running"
