"""
Content Ingestion
=================

Feed fetching, HTML text extraction and single-page scraping.
"""

from .content_cleaner import ContentCleaner, PageScraper
from .feed_fetcher import FeedFetcher, FetchResult

__all__ = ["ContentCleaner", "PageScraper", "FeedFetcher", "FetchResult"]
