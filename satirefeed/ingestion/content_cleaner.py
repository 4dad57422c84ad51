"""
Content Cleaner
===============

HTML text extraction for feed entries and scraped article pages.

This module provides:
- Plain-text extraction from feed entry HTML
- Main-content scraping of a single article page
"""

import asyncio
import html
import re
import ssl
from typing import Optional

import aiohttp
import certifi
from bs4 import BeautifulSoup

from ..config.settings import get_settings
from ..models import ContentItem
from ..utils.exceptions import ContentValidationError, ErrorCode, FeedFetchError
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator


class ContentCleaner:
    """Turns HTML fragments into normalized plain text."""

    # HTML elements to completely remove (including content)
    NON_CONTENT_ELEMENTS = {
        "script",
        "style",
        "iframe",
        "embed",
        "object",
        "noscript",
        "canvas",
        "form",
    }

    # Page chrome that never holds article text
    PAGE_CHROME_ELEMENTS = ["nav", "header", "footer", "aside"]
    PAGE_CHROME_ROLES = ["navigation", "banner", "contentinfo"]

    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)

    def __init__(self):
        self.logger = get_logger_for_component("content_cleaner")
        self.parser = "html.parser"

    def extract_text_only(self, html_content: Optional[str]) -> str:
        """
        Extract only text content from HTML, removing all markup.

        Args:
            html_content: HTML content to process

        Returns:
            Plain text content with all HTML removed
        """
        if not html_content or not html_content.strip():
            return ""

        soup = BeautifulSoup(html_content, self.parser)

        for element in soup(list(self.NON_CONTENT_ELEMENTS)):
            element.decompose()

        return self.normalize_text(soup.get_text(separator=" ", strip=True))

    def normalize_text(self, text: Optional[str]) -> str:
        """Decode entities and collapse all whitespace runs to single spaces."""
        if not text:
            return ""
        text = html.unescape(text)
        return self.WHITESPACE_PATTERN.sub(" ", text).strip()

    def extract_article(self, html_content: str, source_url: str = "") -> ContentItem:
        """Pull the title and main text out of a full article page.

        Args:
            html_content: Full page HTML
            source_url: Page URL, recorded on the item

        Returns:
            ContentItem with title and body

        Raises:
            ContentValidationError: If the page has no text content
        """
        soup = BeautifulSoup(html_content or "", self.parser)

        for element in soup(list(self.NON_CONTENT_ELEMENTS) + self.PAGE_CHROME_ELEMENTS):
            element.decompose()
        for role in self.PAGE_CHROME_ROLES:
            for element in soup.find_all(attrs={"role": role}):
                element.decompose()

        main = soup.find("main") or soup.find("article") or soup.find(attrs={"role": "main"})
        container = main or soup.body or soup
        body = self.normalize_text(container.get_text(separator=" "))

        if not body:
            raise ContentValidationError(
                "Could not extract meaningful content from the page",
                source_url=source_url,
            )

        heading = soup.find("h1")
        title = heading.get_text(strip=True) if heading else ""
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()

        return ContentItem(
            title=self.normalize_text(title) or "Untitled",
            body=body,
            source_url=source_url,
        )


class PageScraper:
    """Fetches a single article page and extracts its main content."""

    def __init__(self, timeout: int = None, cleaner: Optional[ContentCleaner] = None):
        """Initialize page scraper.

        Args:
            timeout: Request timeout in seconds (default from config)
            cleaner: Content cleaner to use
        """
        settings = get_settings()
        self.timeout = timeout or settings.limits.request_timeout
        self.cleaner = cleaner or ContentCleaner()
        self.logger = get_logger_for_component("page_scraper")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def fetch_html(self, url: str) -> str:
        """Download a page.

        Raises:
            FeedFetchError: On network failure or a non-200 status
        """
        connector = aiohttp.TCPConnector(ssl=self.ssl_context)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {
            "User-Agent": "SatireFeed/1.0",
            "Accept": "text/html,application/xhtml+xml,*/*",
        }

        try:
            async with aiohttp.ClientSession(
                connector=connector, timeout=timeout, headers=headers
            ) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise FeedFetchError(
                            f"Failed to fetch URL. Status: {response.status}",
                            feed_url=url,
                            error_code=ErrorCode.FEED_NETWORK_ERROR,
                        )
                    return await response.text()

        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Request timeout after {self.timeout}s fetching {url}",
                feed_url=url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Failed to fetch {url}: {e}",
                feed_url=url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e

    async def scrape(self, url: str) -> ContentItem:
        """Fetch a page and return its main content.

        Args:
            url: Article URL

        Returns:
            ContentItem for the article

        Raises:
            ValidationError: If the URL is invalid
            FeedFetchError: If the page cannot be downloaded
            ContentValidationError: If the page has no text content
        """
        url = URLValidator.validate_url(url, field_name="article_url")
        self.logger.info(f"Scraping article: {url}")

        page = await self.fetch_html(url)
        item = self.cleaner.extract_article(page, source_url=url)

        self.logger.debug(f"Scraped '{item.title[:50]}' ({len(item.body)} chars)")
        return item
