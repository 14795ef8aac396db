"""Server-side full-article fetch and text extraction."""

from __future__ import annotations

from typing import Callable, List, Optional

import httpx
from bs4 import BeautifulSoup

from gateway.settings import get_settings
from gateway.utils.logging import get_logger

logger = get_logger(__name__)

FetchFn = Callable[[str], str]

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; NewsfeedHub/0.1; +https://example.com/bot)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
_STRIP_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside", "form")


class ContentFetchError(Exception):
    """Raised when an article page cannot be fetched or has no readable text."""


def _http_fetch(url: str) -> str:
    try:
        resp = httpx.get(
            url,
            headers=_HEADERS,
            follow_redirects=True,
            timeout=float(get_settings().content_timeout_seconds),
        )
    except httpx.HTTPError as exc:
        raise ContentFetchError(f"request failed: {exc}") from exc
    if resp.status_code >= 400:
        raise ContentFetchError(f"HTTP error! status: {resp.status_code}")
    return resp.text


def extract_text(html: str) -> str:
    """Return the readable paragraphs of an HTML page, blank-line separated."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    root = soup.find("article") or soup.find("main") or soup.body or soup
    paragraphs: List[str] = [
        p.get_text(" ", strip=True) for p in root.find_all("p") if p.get_text(strip=True)
    ]
    if not paragraphs:
        text = root.get_text(" ", strip=True)
        return text
    return "\n\n".join(paragraphs)


def fetch_article_content(url: str, fetcher: Optional[FetchFn] = None) -> str:
    if not url.startswith(("http://", "https://")):
        raise ContentFetchError("Only http(s) URLs can be fetched.")
    html = (fetcher or _http_fetch)(url)
    text = extract_text(html)
    if not text:
        raise ContentFetchError("No readable content found.")
    logger.debug("content.extracted", extra={"url": url, "chars": len(text)})
    return text
