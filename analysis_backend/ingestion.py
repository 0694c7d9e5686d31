from __future__ import annotations

import logging
import time
from pathlib import Path

from analysis_backend.errors import UploadTooLarge
from analysis_backend.schema_models import FileArtifact

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
UPLOAD_CHUNK_BYTES = 1024 * 1024


def ensure_upload_dir(upload_dir: Path) -> Path:
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def stored_upload_name(filename: str, now_ms: int | None = None) -> str:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{timestamp}-{Path(filename).name}"


async def read_upload_limited(upload, max_upload_bytes: int, chunk_size: int = UPLOAD_CHUNK_BYTES) -> bytes:
    """Read an uploaded file chunk by chunk, refusing it once it passes the cap.

    A declared size above the cap is rejected before any byte is read.
    """
    if upload.size is not None and upload.size > max_upload_bytes:
        raise UploadTooLarge()

    chunks = []
    total = 0
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > max_upload_bytes:
            raise UploadTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


def store_upload(
    filename: str,
    content_bytes: bytes,
    content_type: str | None,
    upload_dir: Path,
    max_upload_bytes: int,
) -> FileArtifact:
    """Write an upload to disk and describe it as a file artifact.

    Stored files are never removed afterwards.
    """
    if len(content_bytes) > max_upload_bytes:
        raise UploadTooLarge()

    ensure_upload_dir(upload_dir)
    file_path = upload_dir / stored_upload_name(filename)
    file_path.write_bytes(content_bytes)
    logger.info("Stored upload %s as %s (%d bytes)", filename, file_path, len(content_bytes))

    return FileArtifact(
        path=file_path,
        mime_type=content_type or DEFAULT_MIME_TYPE,
        original_name=filename,
    )
