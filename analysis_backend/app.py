from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from analysis_backend.analyzer_config import load_analyzer_config
from analysis_backend.errors import MissingInput
from analysis_backend.ingestion import ensure_upload_dir, read_upload_limited, store_upload
from analysis_backend.llm_provider import CompletionClient
from analysis_backend.pipeline import (
    FILE_FAILURE_MESSAGE,
    MISSING_VIDEO_URL_MESSAGE,
    MISSING_WEB_URL_MESSAGE,
    VIDEO_LINK_FAILURE_MESSAGE,
    WEB_URL_FAILURE_MESSAGE,
    analyze_file,
    analyze_url,
    respond,
)
from analysis_backend.schema_models import HealthStatus
from analysis_backend.strategies import VideoLinkStrategy, WebLinkStrategy, build_strategies

logger = logging.getLogger(__name__)

CONFIG = load_analyzer_config()
COMPLETION_CLIENT = CompletionClient.from_config(CONFIG)
FILE_STRATEGIES = build_strategies(COMPLETION_CLIENT)
VIDEO_LINK_STRATEGY = VideoLinkStrategy()
WEB_LINK_STRATEGY = WebLinkStrategy(COMPLETION_CLIENT)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    ensure_upload_dir(CONFIG.upload_dir)
    logger.info("Analyzer configuration: %s", CONFIG.to_dict())
    logger.info("Upload directory ready at %s", CONFIG.upload_dir)
    yield


app = FastAPI(title="Artifact Analysis API", lifespan=lifespan)


@app.middleware("http")
async def api_prefix_alias(request, call_next):
    """Accept both `/path` and `/api/path` for frontend compatibility."""
    if request.scope.get("path", "").startswith("/api/"):
        request.scope["path"] = request.scope["path"][4:]
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _read_url_field(request: Request) -> object:
    try:
        payload = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("url")


@app.get("/health")
def health_check():
    return HealthStatus().to_payload()


async def _read_upload_field(request: Request) -> UploadFile:
    try:
        form = await request.form()
    except HTTPException as exc:
        raise MissingInput("No file uploaded") from exc
    upload = form.get("file")
    if not isinstance(upload, UploadFile) or not upload.filename:
        raise MissingInput("No file uploaded")
    return upload


@app.post("/analyze/file")
async def analyze_uploaded_file(request: Request):
    # The form is parsed here rather than by a File() parameter so that a
    # plain-text "file" field still gets the JSON error envelope.
    async def operation():
        upload = await _read_upload_field(request)
        try:
            content = await read_upload_limited(upload, CONFIG.max_upload_bytes)
        finally:
            await upload.close()
        artifact = store_upload(
            upload.filename,
            content,
            upload.content_type,
            upload_dir=CONFIG.upload_dir,
            max_upload_bytes=CONFIG.max_upload_bytes,
        )
        return await analyze_file(artifact, FILE_STRATEGIES)

    status_code, payload = await respond(operation, FILE_FAILURE_MESSAGE)
    return JSONResponse(status_code=status_code, content=payload)


@app.post("/analyze/video-link")
async def analyze_video_link(request: Request):
    url = await _read_url_field(request)
    status_code, payload = await respond(
        lambda: analyze_url(url, VIDEO_LINK_STRATEGY, MISSING_VIDEO_URL_MESSAGE),
        VIDEO_LINK_FAILURE_MESSAGE,
    )
    return JSONResponse(status_code=status_code, content=payload)


@app.post("/analyze/web-url")
async def analyze_web_url(request: Request):
    url = await _read_url_field(request)
    status_code, payload = await respond(
        lambda: analyze_url(url, WEB_LINK_STRATEGY, MISSING_WEB_URL_MESSAGE),
        WEB_URL_FAILURE_MESSAGE,
    )
    return JSONResponse(status_code=status_code, content=payload)


def run_server() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=CONFIG.port)


if __name__ == "__main__":
    run_server()
