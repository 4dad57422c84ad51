"""
Processing Pipeline Tests
=========================

End-to-end orchestration with every collaborator mocked.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from satirefeed.ingestion.feed_fetcher import FetchResult
from satirefeed.models import AIProviderType, ContentItem, GeneratedPost, ProviderConfig
from satirefeed.processing.pipeline import NO_CONTEXT_MESSAGE, ProcessingPipeline
from satirefeed.storage.history import ProcessedLinkStore
from satirefeed.utils.exceptions import (
    ConfigurationError,
    LocalUnreachableError,
    ProviderOperationError,
    SearchError,
    TransportError,
)


def make_item(n):
    return ContentItem(
        title=f"Headline {n}",
        body=f"Body of article number {n}.",
        source_url=f"https://news.example.com/{n}",
    )


@pytest.fixture
def posts(sample_posts):
    return [GeneratedPost(text=text) for text in sample_posts]


@pytest.fixture
def ai_manager(posts):
    manager = MagicMock()
    manager.validate_config = MagicMock(side_effect=lambda provider, config: config or ProviderConfig())
    manager.summarize = AsyncMock(return_value="A satirical summary.")
    manager.generate_posts = AsyncMock(return_value=posts)
    manager.detect_language = AsyncMock(return_value="Portuguese")
    return manager


@pytest.fixture
def feed_fetcher():
    fetcher = MagicMock()
    fetcher.fetch_feeds_batch = AsyncMock(return_value=[
        FetchResult(feed_url="https://news.example.com/rss", success=True,
                    items=[make_item(1), make_item(2), make_item(3)]),
    ])
    return fetcher


@pytest.fixture
def search_client():
    client = MagicMock()
    client.search = AsyncMock(return_value="Lawmakers were reportedly bored.")
    return client


@pytest.fixture
def history():
    return ProcessedLinkStore()


@pytest.fixture
def pipeline(test_settings, ai_manager, feed_fetcher, search_client, history, fake_clock):
    return ProcessingPipeline(
        settings=test_settings,
        ai_manager=ai_manager,
        feed_fetcher=feed_fetcher,
        page_scraper=MagicMock(),
        history=history,
        search_client=search_client,
        clock=fake_clock,
    )


class TestProcessFeeds:
    """Feed runs."""

    @pytest.mark.asyncio
    async def test_processes_new_items_and_skips_history(self, pipeline, history, ai_manager):
        history.add("https://news.example.com/2")

        result = await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        assert result.total_items_fetched == 3
        assert result.items_skipped_processed == 1
        assert result.items_to_process == 2
        assert [a.title for a in result.articles] == ["Headline 1", "Headline 3"]
        assert ai_manager.summarize.await_count == 2
        assert "https://news.example.com/1" in history
        assert "https://news.example.com/3" in history

    @pytest.mark.asyncio
    async def test_article_fields(self, pipeline, posts):
        result = await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        article = result.articles[0]
        assert article.id == "https://news.example.com/1"
        assert article.link == "https://news.example.com/1"
        assert article.summary == "A satirical summary."
        assert article.posts == posts
        assert article.provider == AIProviderType.GROQ
        assert article.language == "English"
        assert not article.is_degraded

    @pytest.mark.asyncio
    async def test_duplicate_links_processed_once(self, pipeline, feed_fetcher, ai_manager):
        feed_fetcher.fetch_feeds_batch.return_value = [
            FetchResult(feed_url="https://a.example.com/rss", success=True, items=[make_item(1)]),
            FetchResult(feed_url="https://b.example.com/rss", success=True, items=[make_item(1)]),
        ]

        result = await pipeline.process_feeds(
            ["https://a.example.com/rss", "https://b.example.com/rss"], AIProviderType.GROQ
        )

        assert result.articles_processed == 1
        assert ai_manager.summarize.await_count == 1

    @pytest.mark.asyncio
    async def test_content_is_spliced_with_search_context(self, pipeline, ai_manager, search_client):
        await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        search_client.search.assert_any_await("Headline 1", "test-tavily-key")
        content = ai_manager.summarize.await_args_list[0].args[0]
        assert content == (
            "Headline 1\n\nBody of article number 1.\n\n"
            "Additional Context from Web Search:\nLawmakers were reportedly bored."
        )

    @pytest.mark.asyncio
    async def test_feed_failure_recorded(self, pipeline, feed_fetcher):
        feed_fetcher.fetch_feeds_batch.return_value = [
            FetchResult(feed_url="https://bad.example.com/rss", success=False, error="HTTP 404: Not Found"),
            FetchResult(feed_url="https://news.example.com/rss", success=True, items=[make_item(1)]),
        ]

        result = await pipeline.process_feeds(
            ["https://bad.example.com/rss", "https://news.example.com/rss"], AIProviderType.GROQ
        )

        assert result.successful_feed_fetches == 1
        assert result.feed_success_rate == 50.0
        assert result.articles_processed == 1
        assert any("https://bad.example.com/rss" in error for error in result.errors)

    @pytest.mark.asyncio
    async def test_item_error_does_not_stop_run(self, pipeline, ai_manager, history):
        ai_manager.summarize.side_effect = [
            "Summary one.",
            ProviderOperationError("summarize", "groq", TransportError("HTTP 500", provider="groq")),
            "Summary three.",
        ]

        result = await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        assert [a.title for a in result.articles] == ["Headline 1", "Headline 3"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Headline 2:")
        assert "https://news.example.com/2" not in history

    @pytest.mark.asyncio
    async def test_local_unreachable_aborts_run(self, pipeline, ai_manager):
        ai_manager.summarize.side_effect = LocalUnreachableError(
            "Connection refused", base_url="http://localhost:11434"
        )

        with pytest.raises(LocalUnreachableError):
            await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.OLLAMA,
                                         ProviderConfig(ollama_model="llama3"))

        assert ai_manager.summarize.await_count == 1
        assert pipeline.last_result is not None
        assert pipeline.last_result.articles_processed == 0

    @pytest.mark.asyncio
    async def test_configuration_error_before_any_fetch(self, pipeline, ai_manager, feed_fetcher):
        ai_manager.validate_config.side_effect = ConfigurationError(
            "gemini provider requires 'gemini_api_key'", config_key="gemini_api_key"
        )

        with pytest.raises(ConfigurationError):
            await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GEMINI)

        feed_fetcher.fetch_feeds_batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_posts_still_recorded(self, pipeline, ai_manager):
        ai_manager.generate_posts.return_value = []

        result = await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        assert result.articles_processed == 3
        assert result.degraded_articles == 3
        assert result.errors == []


class TestPacing:
    """Only Gemini calls are spaced out."""

    @pytest.mark.asyncio
    async def test_gemini_pauses_after_each_call(self, pipeline, feed_fetcher, fake_clock):
        feed_fetcher.fetch_feeds_batch.return_value = [
            FetchResult(feed_url="https://news.example.com/rss", success=True, items=[make_item(1)]),
        ]

        await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GEMINI,
                                     ProviderConfig(gemini_api_key="test-key"))

        assert fake_clock.sleeps == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_groq_is_not_paced(self, pipeline, fake_clock):
        await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_language_detection_is_paced(self, pipeline, test_settings, feed_fetcher,
                                               ai_manager, fake_clock):
        test_settings.processing.auto_detect_language = True
        feed_fetcher.fetch_feeds_batch.return_value = [
            FetchResult(feed_url="https://news.example.com/rss", success=True, items=[make_item(1)]),
        ]

        result = await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GEMINI,
                                              ProviderConfig(gemini_api_key="test-key"))

        assert fake_clock.sleeps == [2.0, 2.0, 2.0]
        assert result.articles[0].language == "Portuguese"
        assert ai_manager.summarize.await_args.args[3] == "Portuguese"


class TestSearchContext:
    """Search problems never fail an item."""

    @pytest.mark.asyncio
    async def test_search_failure_uses_placeholder(self, pipeline, search_client, ai_manager):
        search_client.search.side_effect = SearchError("tavily API error: boom", service="tavily", status=500)

        result = await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        assert result.articles_processed == 3
        content = ai_manager.summarize.await_args_list[0].args[0]
        assert content.endswith(NO_CONTEXT_MESSAGE)

    @pytest.mark.asyncio
    async def test_missing_search_key_skips_search(self, pipeline, test_settings, search_client, ai_manager):
        test_settings.search.tavily_api_key = None

        await pipeline.process_feeds(["https://news.example.com/rss"], AIProviderType.GROQ)

        search_client.search.assert_not_called()
        content = ai_manager.summarize.await_args_list[0].args[0]
        assert content.endswith(NO_CONTEXT_MESSAGE)


class TestProcessUrl:
    """Single article runs."""

    @pytest.mark.asyncio
    async def test_process_url(self, pipeline, sample_item, history, ai_manager):
        pipeline.page_scraper.scrape = AsyncMock(return_value=sample_item)

        article = await pipeline.process_url(sample_item.source_url, AIProviderType.GROQ,
                                             language="Portuguese")

        pipeline.page_scraper.scrape.assert_awaited_once_with(sample_item.source_url)
        assert article.title == sample_item.title
        assert article.language == "Portuguese"
        assert ai_manager.generate_posts.await_args.args[3] == "Portuguese"
        assert sample_item.source_url in history

    @pytest.mark.asyncio
    async def test_progress_callback(self, test_settings, ai_manager, search_client, sample_item, fake_clock):
        steps = []
        scraper = MagicMock()
        scraper.scrape = AsyncMock(return_value=sample_item)
        pipeline = ProcessingPipeline(
            settings=test_settings,
            ai_manager=ai_manager,
            feed_fetcher=MagicMock(),
            page_scraper=scraper,
            history=ProcessedLinkStore(),
            search_client=search_client,
            clock=fake_clock,
            progress_callback=lambda step, index, total: steps.append(step),
        )

        await pipeline.process_url(sample_item.source_url, AIProviderType.GROQ)

        assert steps == ["scrape", "search", "summarize", "generate_posts"]
