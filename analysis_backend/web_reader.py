from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib import error, request
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from analysis_backend.errors import FetchError

logger = logging.getLogger(__name__)

MAX_BODY_CHARS = 5000
USER_AGENT = "Mozilla/5.0 (compatible; ArtifactAnalysisBot/1.0)"
ALLOWED_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class WebPage:
    url: str
    title: str
    description: str
    body_text: str


def fetch_html(url: str, timeout: float | None = None) -> str:
    # urlopen would otherwise also serve file:, ftp: and data: URLs.
    scheme = urlparse(url).scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise FetchError(f"Unsupported protocol {scheme}:")

    req = request.Request(url, headers={"User-Agent": USER_AGENT}, method="GET")
    try:
        if timeout is None:
            response_cm = request.urlopen(req)
        else:
            response_cm = request.urlopen(req, timeout=timeout)
        with response_cm as response:
            charset = response.headers.get_content_charset() or "utf-8"
            raw = response.read()
    except error.HTTPError as exc:
        raise FetchError(f"Request failed with status code {exc.code}") from exc
    except error.URLError as exc:
        raise FetchError(f"Request to {url} failed: {exc.reason}") from exc
    except (OSError, ValueError) as exc:
        raise FetchError(f"Request to {url} failed: {exc}") from exc

    return raw.decode(charset, errors="replace")


def parse_html(url: str, html_text: str) -> WebPage:
    soup = BeautifulSoup(html_text, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text() if title_tag else ""

    description_tag = soup.find("meta", attrs={"name": "description"})
    description = (description_tag.get("content") or "") if description_tag else ""

    root = soup.body or soup
    body_text = re.sub(r"\s+", " ", root.get_text().strip())[:MAX_BODY_CHARS]

    return WebPage(url=url, title=title, description=description, body_text=body_text)


def read_web_page(url: str, timeout: float | None = None) -> WebPage:
    logger.info("Fetching web page %s", url)
    html_text = fetch_html(url, timeout=timeout)
    page = parse_html(url, html_text)
    logger.info("Parsed %s title=%r body_chars=%d", url, page.title, len(page.body_text))
    return page
