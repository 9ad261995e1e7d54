"""Readable-text extraction from web pages.

Three strategies are tried in order and the first one that yields enough text
wins:

1. A reader proxy that renders the page server-side and returns plain text.
2. Mozilla-style readability scoring over the fetched HTML.
3. Heuristics over the fetched HTML: meta descriptions, well-known article
   containers, then long paragraphs.

The HTML is fetched at most once per call. Parsing runs in a worker thread
so the event loop stays responsive.
"""

import asyncio
import logging
import re

import aiohttp
from aiohttp import ClientTimeout
from bs4 import BeautifulSoup
from readability import Document

from nutshell.config import get_settings
from nutshell.domain.errors import ExtractionFailed
from nutshell.domain.results import Failure, Result, Success
from nutshell.domain.web_content import WebContent

logger = logging.getLogger(__name__)
settings = get_settings()

UNTITLED = "Untitled"
MAX_TITLE_LENGTH = 200
MIN_PARAGRAPH_LENGTH = 50
MAX_PARAGRAPHS = 20

NOISE_SELECTOR = (
    "script, style, nav, footer, header, aside, .advertisement, .ad, .social-share"
)
CONTENT_SELECTORS = [
    "article[role='article']",
    "article.post",
    "article.article",
    "div.article-body",
    "div.story-body",
    "div.post-body",
    "div.entry-content",
    "div.article-content",
    "div[itemprop='articleBody']",
    "article",
    "main",
    "[role='main']",
    ".content",
    ".post-content",
    "#content",
    "#main",
    ".main-content",
]

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return _WHITESPACE.sub(" ", text).strip()


def _require_length(text: str, min_length: int) -> str:
    cleaned = clean_text(text)
    if len(cleaned) < min_length:
        raise ExtractionFailed(f"Content too short: {len(cleaned)} chars")
    return cleaned


def parse_reader_text(text: str, url: str, min_length: int) -> WebContent:
    """Build WebContent from a reader proxy's plain-text response."""
    content = _require_length(text, min_length)
    title = next(
        (
            line.strip()
            for line in text.splitlines()
            if line.strip() and len(line.strip()) < MAX_TITLE_LENGTH
        ),
        UNTITLED,
    )
    return WebContent(title=title[:MAX_TITLE_LENGTH], content=content, url=url)


def parse_readability(html: str, url: str, min_length: int) -> WebContent:
    """Extract the main article with readability scoring."""
    document = Document(html, url=url)
    summary_html = document.summary(html_partial=True)
    soup = BeautifulSoup(summary_html, "html.parser")
    content = _require_length(" ".join(soup.stripped_strings), min_length)
    title = clean_text(document.short_title() or "") or UNTITLED
    return WebContent(title=title[:MAX_TITLE_LENGTH], content=content, url=url)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def extract_title(soup: BeautifulSoup) -> str:
    """Pick the best available page title."""
    title = _meta_content(soup, property="og:title") or _meta_content(
        soup, name="twitter:title"
    )
    if title:
        return title

    h1 = soup.find("h1")
    if h1 is not None and h1.get_text(strip=True):
        return h1.get_text(" ", strip=True)

    if soup.title is not None and soup.title.get_text(strip=True):
        return soup.title.get_text(" ", strip=True)

    return UNTITLED


def _from_meta_descriptions(soup: BeautifulSoup, min_length: int) -> str:
    for attrs in (
        {"property": "og:description"},
        {"name": "twitter:description"},
        {"name": "description"},
    ):
        description = _meta_content(soup, **attrs)
        if len(description) > min_length:
            return description
    return ""


def _from_content_selectors(soup: BeautifulSoup) -> str:
    best = ""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = element.get_text(" ", strip=True)
        if len(text) > len(best):
            best = text
    return best


def _from_paragraphs(soup: BeautifulSoup) -> str:
    paragraphs = [
        text
        for text in (p.get_text(" ", strip=True) for p in soup.find_all("p"))
        if len(text) > MIN_PARAGRAPH_LENGTH
    ][:MAX_PARAGRAPHS]
    if paragraphs:
        return "\n\n".join(paragraphs)

    body = soup.body if soup.body is not None else soup
    return body.get_text(" ", strip=True)


def parse_html(html: str, url: str, min_length: int) -> WebContent:
    """Extract content with meta tags, article selectors and paragraph heuristics."""
    soup = BeautifulSoup(html, "html.parser")
    title = extract_title(soup)

    text = _from_meta_descriptions(soup, min_length)
    if not text:
        for element in soup.select(NOISE_SELECTOR):
            element.decompose()
        text = _from_content_selectors(soup) or _from_paragraphs(soup)

    try:
        content = _require_length(text, min_length)
    except ExtractionFailed:
        raise ExtractionFailed(
            "No readable content found on the page. The website may require "
            "JavaScript or use dynamic loading."
        ) from None

    return WebContent(title=title[:MAX_TITLE_LENGTH], content=content, url=url)


class WebContentExtractor:
    """Fetches a page and extracts its readable title and body text."""

    def __init__(
        self,
        reader_base_url: str | None = None,
        timeout_seconds: int | None = None,
        reader_timeout_seconds: int | None = None,
        user_agent: str | None = None,
        min_content_length: int | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            reader_base_url: Reader proxy prefix; empty string disables it
            timeout_seconds: Timeout for fetching the page itself
            reader_timeout_seconds: Timeout for the reader proxy
            user_agent: User-Agent header for direct page fetches
            min_content_length: Minimum characters for a usable extraction
        """
        self.reader_base_url = (
            settings.reader_base_url if reader_base_url is None else reader_base_url
        )
        self.timeout = ClientTimeout(
            total=timeout_seconds or settings.extractor_timeout_seconds
        )
        self.reader_timeout_seconds = (
            reader_timeout_seconds or settings.reader_timeout_seconds
        )
        self.user_agent = user_agent or settings.extractor_user_agent
        self.min_content_length = (
            settings.min_content_length
            if min_content_length is None
            else min_content_length
        )
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def extract_web_content(self, url: str) -> Result[WebContent]:
        """Extract readable content from a web page.

        Args:
            url: HTTP(S) page URL

        Returns:
            Success with the extracted content, or Failure wrapping ExtractionFailed
        """
        if not WebContent.is_fetchable_url(url):
            logger.warning(f"Rejected non-HTTP URL: {url}")
            return Failure(
                ExtractionFailed(
                    f"Invalid URL format: {url}. Only HTTP and HTTPS URLs are supported"
                )
            )

        last_error: Exception | None = None

        if self.reader_base_url:
            try:
                content = await self._extract_with_reader(url)
                logger.info(f"Extracted {len(content.content)} chars from {url} via reader")
                return Success(content)
            except Exception as e:
                logger.warning(f"Reader extraction failed for {url}: {e}")
                last_error = e

        try:
            html = await self._fetch_html(url)
        except Exception as e:
            logger.error(f"Failed to fetch {url}: {e}")
            return Failure(self._final_error(e))

        for name, parse in (("readability", parse_readability), ("html", parse_html)):
            try:
                content = await asyncio.to_thread(parse, html, url, self.min_content_length)
                logger.info(f"Extracted {len(content.content)} chars from {url} via {name}")
                return Success(content)
            except Exception as e:
                logger.warning(f"{name} extraction failed for {url}: {e}")
                last_error = e

        logger.error(f"All extraction strategies failed for {url}")
        return Failure(self._final_error(last_error))

    @staticmethod
    def _final_error(cause: Exception | None) -> ExtractionFailed:
        detail = f": {cause}" if cause is not None and str(cause) else ""
        return ExtractionFailed(
            f"Unable to extract content{detail}. The website may require JavaScript "
            "or use anti-scraping measures. Please copy and paste the content manually.",
            cause=cause,
        )

    async def _extract_with_reader(self, url: str) -> WebContent:
        """Fetch plain text through the reader proxy."""
        session = await self._get_session()
        try:
            async with session.get(
                f"{self.reader_base_url}{url}",
                headers={"Accept": "text/plain", "X-Return-Format": "text"},
                timeout=ClientTimeout(total=self.reader_timeout_seconds),
            ) as response:
                if response.status != 200:
                    raise ExtractionFailed(f"Reader returned HTTP {response.status}")
                text = await response.text()
        except TimeoutError as e:
            raise ExtractionFailed(
                f"Reader timeout after {self.reader_timeout_seconds}s", cause=e
            ) from e

        return parse_reader_text(text, url, self.min_content_length)

    async def _fetch_html(self, url: str) -> str:
        """Fetch the page HTML directly."""
        session = await self._get_session()
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        try:
            async with session.get(url, headers=headers, allow_redirects=True) as response:
                if response.status != 200:
                    raise ExtractionFailed(f"HTTP {response.status} fetching page")
                content_type = response.headers.get("Content-Type", "")
                if content_type and "html" not in content_type.lower():
                    raise ExtractionFailed(f"Unsupported content type: {content_type}")
                return await response.text()
        except TimeoutError as e:
            raise ExtractionFailed(
                f"Page fetch timeout after {self.timeout.total:g}s", cause=e
            ) from e
