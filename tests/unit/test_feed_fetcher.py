"""
Feed Fetcher Tests
==================

Feed parsing and concurrent fetching with mocked sessions.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import aiohttp
import pytest

from satirefeed.ingestion.feed_fetcher import FeedFetcher, FetchResult

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <link>https://news.example.com</link>
    <description>News</description>
    <item>
      <title>Parliament votes to rename Tuesday</title>
      <link>https://news.example.com/tuesday</link>
      <description>&lt;p&gt;Lawmakers   approved &lt;b&gt;renaming&lt;/b&gt; Tuesday.&lt;/p&gt;</description>
      <pubDate>Tue, 04 Mar 2025 12:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No link here</title>
      <description>Orphan entry</description>
    </item>
    <item>
      <title>Bad scheme</title>
      <link>ftp://news.example.com/file</link>
      <description>Not a web page</description>
    </item>
  </channel>
</rss>
"""


class FakeResponse:

    def __init__(self, status=200, text="", reason="OK"):
        self.status = status
        self.reason = reason
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def get(self, url):
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def fetcher():
    return FeedFetcher(max_concurrent=2, timeout=10)


class TestParseFeed:

    def test_parses_entries(self, fetcher):
        result = fetcher.parse_feed(RSS_FEED, "https://news.example.com/rss")

        assert result.success
        assert result.item_count == 1
        item = result.items[0]
        assert item.title == "Parliament votes to rename Tuesday"
        assert item.source_url == "https://news.example.com/tuesday"
        assert item.body == "Lawmakers approved renaming Tuesday."
        assert item.published_at == datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc)

    def test_invalid_feed(self, fetcher):
        result = fetcher.parse_feed("this is not a feed <<<", "https://news.example.com/rss")

        assert not result.success
        assert "parse error" in result.error.lower()


class TestFetchFeed:

    @pytest.mark.asyncio
    async def test_success(self, fetcher):
        session = FakeSession(FakeResponse(text=RSS_FEED))

        result = await fetcher.fetch_feed("https://news.example.com/rss", session)

        assert result.success
        assert result.item_count == 1

    @pytest.mark.asyncio
    async def test_http_error(self, fetcher):
        session = FakeSession(FakeResponse(status=404, reason="Not Found"))

        result = await fetcher.fetch_feed("https://news.example.com/rss", session)

        assert not result.success
        assert result.error == "HTTP 404: Not Found"

    @pytest.mark.asyncio
    async def test_network_error(self, fetcher):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

        result = await fetcher.fetch_feed("https://news.example.com/rss", session)

        assert not result.success
        assert "Fetch error" in result.error

    @pytest.mark.asyncio
    async def test_invalid_url(self, fetcher):
        result = await fetcher.fetch_feed("javascript:alert(1)", FakeSession())

        assert not result.success

    @pytest.mark.asyncio
    async def test_batch_keeps_going_after_failure(self, fetcher):
        async def fake_fetch(url, session):
            return FetchResult(feed_url=url, success="good" in url)

        with patch.object(fetcher, "fetch_feed", side_effect=fake_fetch):
            results = await fetcher.fetch_feeds_batch([
                "https://good.example.com/rss",
                "https://bad.example.com/rss",
            ])

        assert sorted(r.feed_url for r in results) == [
            "https://bad.example.com/rss",
            "https://good.example.com/rss",
        ]
        assert sum(1 for r in results if r.success) == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self, fetcher):
        assert await fetcher.fetch_feeds_batch([]) == []
