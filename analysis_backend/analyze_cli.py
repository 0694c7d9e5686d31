from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
from pathlib import Path

from analysis_backend.analyzer_config import load_analyzer_config
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
from analysis_backend.schema_models import FileArtifact
from analysis_backend.strategies import VideoLinkStrategy, WebLinkStrategy, build_strategies


def _file_artifact(path: str, mime_type: str | None) -> FileArtifact:
    resolved_mime, _ = mimetypes.guess_type(path)
    return FileArtifact(
        path=Path(path),
        mime_type=mime_type or resolved_mime or "application/octet-stream",
        original_name=Path(path).name,
    )


async def run_cli(args: argparse.Namespace, client: CompletionClient) -> tuple[int, dict]:
    if args.file:
        artifact = _file_artifact(args.file, args.mime_type)
        return await respond(lambda: analyze_file(artifact, build_strategies(client)), FILE_FAILURE_MESSAGE)
    if args.video_url is not None:
        return await respond(
            lambda: analyze_url(args.video_url, VideoLinkStrategy(), MISSING_VIDEO_URL_MESSAGE),
            VIDEO_LINK_FAILURE_MESSAGE,
        )
    return await respond(
        lambda: analyze_url(args.web_url, WebLinkStrategy(client), MISSING_WEB_URL_MESSAGE),
        WEB_URL_FAILURE_MESSAGE,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Analyze a local file or a URL and print the JSON envelope.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Path to a local file")
    source.add_argument("--video-url", help="Video link to analyze")
    source.add_argument("--web-url", help="Web page to analyze")
    parser.add_argument("--mime-type", default=None, help="Override the guessed MIME type of --file")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    client = CompletionClient.from_config(load_analyzer_config())
    status_code, payload = asyncio.run(run_cli(args, client))
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if status_code == 200 else 1


if __name__ == "__main__":
    raise SystemExit(main())
