"""
RSS Feed Fetcher
===============

Concurrent RSS/Atom feed fetching. A feed that fails to download or parse
yields an unsuccessful FetchResult; it never aborts the batch.
"""

import asyncio
import calendar
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, List, Optional

import aiohttp
import certifi
import feedparser

from .content_cleaner import ContentCleaner
from ..config.settings import get_settings
from ..models import ContentItem
from ..utils.exceptions import ValidationError
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator


@dataclass
class FetchResult:
    """Result of feed fetch operation."""

    feed_url: str
    success: bool
    items: List[ContentItem] = field(default_factory=list)
    error: Optional[str] = None
    fetch_time: Optional[datetime] = None

    def __post_init__(self):
        if not self.fetch_time:
            self.fetch_time = datetime.now(timezone.utc)

    @property
    def item_count(self) -> int:
        return len(self.items)


class FeedFetcher:
    """Concurrent RSS feed fetcher."""

    def __init__(self, max_concurrent: int = None, timeout: int = None,
                 cleaner: Optional[ContentCleaner] = None):
        """Initialize feed fetcher.

        Args:
            max_concurrent: Maximum concurrent feed fetches (default from config)
            timeout: Request timeout in seconds (default from config)
            cleaner: HTML cleaner for entry content
        """
        settings = get_settings()
        self.max_concurrent = max_concurrent or settings.processing.parallel_feeds
        self.timeout = timeout or settings.limits.request_timeout
        self.cleaner = cleaner or ContentCleaner()
        self.logger = get_logger_for_component("feed_fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.max_concurrent * 2,
            limit_per_host=5,
        )

        timeout = aiohttp.ClientTimeout(total=self.timeout)

        headers = {
            "User-Agent": "SatireFeed/1.0",
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch_feed(self, feed_url: str, session: aiohttp.ClientSession) -> FetchResult:
        """Fetch and parse a single RSS feed.

        Args:
            feed_url: URL of the RSS feed
            session: aiohttp session for requests

        Returns:
            FetchResult with items or error information
        """
        start_time = datetime.now(timezone.utc)

        try:
            validated_url = URLValidator.validate_url(feed_url, field_name="feed_url")
        except ValidationError as e:
            self.logger.warning(f"Invalid feed URL {feed_url}: {e}")
            return FetchResult(feed_url=feed_url, success=False, error=e.message)

        self.logger.debug(f"Fetching feed: {validated_url}")

        try:
            async with session.get(validated_url) as response:
                if response.status != 200:
                    error_msg = f"HTTP {response.status}: {response.reason}"
                    self.logger.warning(f"Feed fetch failed for {validated_url}: {error_msg}")
                    return FetchResult(
                        feed_url=feed_url, success=False, error=error_msg, fetch_time=start_time
                    )

                content = await response.text()

        except asyncio.TimeoutError:
            error_msg = f"Request timeout after {self.timeout}s"
            self.logger.warning(f"Feed fetch timeout for {feed_url}: {error_msg}")
            return FetchResult(
                feed_url=feed_url, success=False, error=error_msg, fetch_time=start_time
            )

        except aiohttp.ClientError as e:
            error_msg = f"Fetch error: {e}"
            self.logger.error(f"Feed fetch failed for {feed_url}: {error_msg}")
            return FetchResult(
                feed_url=feed_url, success=False, error=error_msg, fetch_time=start_time
            )

        return self.parse_feed(content, feed_url, start_time)

    def parse_feed(self, content: str, feed_url: str,
                   fetch_time: Optional[datetime] = None) -> FetchResult:
        """Parse raw feed XML into a FetchResult."""
        feed_data = feedparser.parse(content)

        if getattr(feed_data, "bozo", False) and not feed_data.entries:
            error_msg = f"Feed parse error: {getattr(feed_data, 'bozo_exception', 'invalid XML structure')}"
            self.logger.warning(f"Feed parse failed for {feed_url}: {error_msg}")
            return FetchResult(
                feed_url=feed_url, success=False, error=error_msg, fetch_time=fetch_time
            )

        items = self._parse_entries(feed_data, feed_url)
        self.logger.info(f"Fetched {len(items)} items from {feed_url}")

        return FetchResult(feed_url=feed_url, success=True, items=items, fetch_time=fetch_time)

    def _parse_entries(self, feed_data: Any, feed_url: str) -> List[ContentItem]:
        """Parse feed entries into ContentItem models."""
        items = []

        for entry in feed_data.entries:
            link = getattr(entry, "link", "") or ""
            if not link:
                self.logger.warning(f"Entry missing URL in feed {feed_url}, skipping")
                continue

            try:
                link = URLValidator.validate_url(link, field_name="article_url")
            except ValidationError as e:
                self.logger.warning(f"Invalid article URL '{link}' in feed {feed_url}: {e}")
                continue

            items.append(ContentItem(
                title=self.cleaner.normalize_text(getattr(entry, "title", "")) or "Untitled",
                body=self._extract_content(entry),
                source_url=link,
                published_at=self._parse_date(entry),
            ))

        return items

    def _extract_content(self, entry: Any) -> str:
        """Extract plain-text content from a feed entry."""
        # Try different content fields in order of preference
        for field_name in ("content", "description", "summary"):
            raw_content = getattr(entry, field_name, None)

            # Handle list format (Atom content)
            if isinstance(raw_content, list) and raw_content:
                raw_content = raw_content[0]

            if isinstance(raw_content, dict):
                raw_content = raw_content.get("value", "")

            if raw_content and isinstance(raw_content, str):
                text = self.cleaner.extract_text_only(raw_content)
                if text:
                    return text

        return ""

    def _parse_date(self, entry: Any) -> Optional[datetime]:
        """Parse publication date from entry."""
        for field_name in ("published_parsed", "updated_parsed"):
            date_tuple = getattr(entry, field_name, None)
            if date_tuple:
                try:
                    # feedparser normalizes parsed dates to UTC
                    return datetime.fromtimestamp(calendar.timegm(date_tuple), tz=timezone.utc)
                except (ValueError, OverflowError):
                    continue

        return None

    async def fetch_feeds(self, feed_urls: List[str]) -> AsyncGenerator[FetchResult, None]:
        """Fetch multiple RSS feeds concurrently.

        Args:
            feed_urls: List of RSS feed URLs to fetch

        Yields:
            FetchResult objects as feeds are processed
        """
        if not feed_urls:
            return

        self.logger.info(f"Starting concurrent fetch of {len(feed_urls)} feeds")

        async with self.get_session() as session:
            semaphore = asyncio.Semaphore(self.max_concurrent)

            async def fetch_with_semaphore(url: str) -> FetchResult:
                async with semaphore:
                    return await self.fetch_feed(url, session)

            tasks = [fetch_with_semaphore(url) for url in feed_urls]

            for completed_task in asyncio.as_completed(tasks):
                yield await completed_task

    async def fetch_feeds_batch(self, feed_urls: List[str]) -> List[FetchResult]:
        """Fetch multiple feeds and return all results.

        Args:
            feed_urls: List of RSS feed URLs to fetch

        Returns:
            List of FetchResult objects
        """
        results = []
        async for result in self.fetch_feeds(feed_urls):
            results.append(result)

        successful = sum(1 for r in results if r.success)
        total_items = sum(r.item_count for r in results if r.success)

        self.logger.info(
            f"Feed fetch complete: {successful}/{len(results)} feeds successful, "
            f"{total_items} total items"
        )

        return results
