"""
Processing Pipeline Orchestrator
===============================

Drives articles from RSS feeds (or a single URL) through web-search
enrichment, summarization and satirical post generation, one article at a
time.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..ai.ai_manager import AIManager
from ..config.settings import SatireFeedSettings, get_settings
from ..ingestion.content_cleaner import PageScraper
from ..ingestion.feed_fetcher import FeedFetcher
from ..models import AIProviderType, ContentItem, ProcessedArticle, ProviderConfig
from ..search.base import SearchClient
from ..search.clients import create_search_client
from ..storage.history import ProcessedLinkStore
from ..utils.clock import Clock, get_default_clock
from ..utils.exceptions import LocalUnreachableError, SatireFeedError, SearchError
from ..utils.logging import get_logger_for_component

NO_CONTEXT_MESSAGE = "No additional context available."

# step name, 1-based item index, total items
ProgressCallback = Callable[[str, int, int], None]


@dataclass
class PipelineResult:
    """Result of a feed processing run."""
    total_feeds_processed: int = 0
    successful_feed_fetches: int = 0
    total_items_fetched: int = 0
    items_skipped_processed: int = 0
    items_to_process: int = 0
    articles: List[ProcessedArticle] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    processing_time_seconds: float = 0.0

    @property
    def articles_processed(self) -> int:
        return len(self.articles)

    @property
    def degraded_articles(self) -> int:
        """Articles that came back with fewer posts than requested."""
        return sum(1 for article in self.articles if article.is_degraded)

    @property
    def feed_success_rate(self) -> float:
        if not self.total_feeds_processed:
            return 0.0
        return self.successful_feed_fetches / self.total_feeds_processed * 100


class ProcessingPipeline:
    """Feed-to-posts pipeline for one run."""

    def __init__(self, settings: Optional[SatireFeedSettings] = None,
                 ai_manager: Optional[AIManager] = None,
                 feed_fetcher: Optional[FeedFetcher] = None,
                 page_scraper: Optional[PageScraper] = None,
                 history: Optional[ProcessedLinkStore] = None,
                 search_client: Optional[SearchClient] = None,
                 clock: Optional[Clock] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize processing pipeline.

        Args:
            settings: SatireFeed settings (default: load from config)
            ai_manager: Provider router
            feed_fetcher: RSS fetcher
            page_scraper: Single-URL scraper
            history: Processed link store
            search_client: Web search service for context enrichment
            clock: Time source for pacing delays
            progress_callback: Called as ``(step, index, total)`` while items are processed
        """
        self.settings = settings or get_settings()
        self.logger = get_logger_for_component("pipeline")
        self.clock = clock or get_default_clock()

        self.ai_manager = ai_manager or AIManager(settings=self.settings, clock=self.clock)
        self.feed_fetcher = feed_fetcher or FeedFetcher(
            max_concurrent=self.settings.processing.parallel_feeds,
            timeout=self.settings.limits.request_timeout
        )
        self.page_scraper = page_scraper or PageScraper(timeout=self.settings.limits.request_timeout)
        self.history = history if history is not None else ProcessedLinkStore(self.settings.history.file_path)
        self.search_client = search_client or create_search_client(
            self.settings.search.provider,
            timeout=self.settings.limits.request_timeout,
            max_results=self.settings.search.max_results,
        )
        self.progress_callback = progress_callback

        # Partial result of the most recent run, kept when a run aborts
        self.last_result: Optional[PipelineResult] = None

    async def process_feeds(self, feed_urls: List[str], provider: AIProviderType,
                            config: Optional[ProviderConfig] = None,
                            language: Optional[str] = None) -> PipelineResult:
        """Process every new item of the given feeds.

        Args:
            feed_urls: RSS/Atom feed URLs
            provider: AI provider for the run
            config: Provider credentials and models
            language: Output language (default from settings)

        Returns:
            PipelineResult with processed articles and per-item errors

        Raises:
            ConfigurationError: If the provider is not configured
            LocalUnreachableError: If the local model server is down
        """
        config = self.ai_manager.validate_config(provider, config)

        start_time = time.time()
        result = PipelineResult(total_feeds_processed=len(feed_urls))
        self.last_result = result

        self.logger.info(f"Starting pipeline for {len(feed_urls)} feeds with provider {provider}")

        self._report("fetch", 0, len(feed_urls))
        fetch_results = await self.feed_fetcher.fetch_feeds_batch(feed_urls)

        all_items: List[ContentItem] = []
        for fetch_result in fetch_results:
            if fetch_result.success:
                result.successful_feed_fetches += 1
                all_items.extend(fetch_result.items)
            else:
                result.errors.append(f"Feed fetch failed: {fetch_result.feed_url} - {fetch_result.error}")

        result.total_items_fetched = len(all_items)

        items = []
        seen = set()
        for item in all_items:
            if not item.source_url or item.source_url in seen:
                continue
            seen.add(item.source_url)
            if self.history.has(item.source_url):
                result.items_skipped_processed += 1
                continue
            items.append(item)

        result.items_to_process = len(items)
        self.logger.info(
            f"Collected {len(all_items)} items, {len(items)} new, "
            f"{result.items_skipped_processed} already processed"
        )

        for index, item in enumerate(items, start=1):
            try:
                article = await self._process_item(item, index, len(items), provider, config, language)
                result.articles.append(article)

            except LocalUnreachableError:
                # Every remaining item would fail the same way
                result.processing_time_seconds = time.time() - start_time
                self.logger.error("Local model server unreachable, aborting run")
                raise

            except SatireFeedError as e:
                self.logger.error(f"Failed to process '{item.title[:60]}': {e}")
                result.errors.append(f"{item.title}: {e.message}")

            except Exception as e:
                self.logger.error(f"Unexpected error processing '{item.title[:60]}': {e}", exc_info=True)
                result.errors.append(f"{item.title}: {e}")

        result.processing_time_seconds = time.time() - start_time
        self.logger.info(
            f"Pipeline complete: {result.articles_processed}/{len(items)} articles processed, "
            f"{len(result.errors)} errors in {result.processing_time_seconds:.2f}s"
        )
        return result

    async def process_url(self, url: str, provider: AIProviderType,
                          config: Optional[ProviderConfig] = None,
                          language: Optional[str] = None) -> ProcessedArticle:
        """Scrape a single article page and process it.

        Raises:
            ConfigurationError: If the provider is not configured
            SatireFeedError: If scraping or any AI step fails
        """
        config = self.ai_manager.validate_config(provider, config)

        self._report("scrape", 1, 1)
        item = await self.page_scraper.scrape(url)
        return await self._process_item(item, 1, 1, provider, config, language)

    async def _process_item(self, item: ContentItem, index: int, total: int,
                            provider: AIProviderType, config: ProviderConfig,
                            language: Optional[str]) -> ProcessedArticle:
        """Search, summarize and write posts for one item."""
        log = self.logger.bind(article_id=item.source_url or item.title[:60])
        log.info(f"Processing article {index}/{total}: {item.title[:80]}")

        self._report("search", index, total)
        context = await self._search_context(item.title)

        max_length = self.settings.processing.max_content_length
        body = item.body[:max_length]
        content = f"{item.title}\n\n{body}\n\nAdditional Context from Web Search:\n{context}"

        language = await self._resolve_language(item, index, total, provider, config, language)

        self._report("summarize", index, total)
        summary = await self.ai_manager.summarize(content, provider, config, language)
        await self._pace(provider)

        self._report("generate_posts", index, total)
        posts = await self.ai_manager.generate_posts(summary, provider, config, language)
        await self._pace(provider)

        if len(posts) == 0:
            log.warning(f"No posts generated for '{item.title[:60]}'")

        article = ProcessedArticle(
            id=item.source_url or f"{item.title}-{int(time.time() * 1000)}-{index}",
            title=item.title,
            link=item.source_url,
            summary=summary,
            posts=posts,
            provider=AIProviderType(provider),
            language=language,
            published_at=item.published_at,
        )

        self.history.add(item.source_url)
        return article

    async def _resolve_language(self, item: ContentItem, index: int, total: int,
                                provider: AIProviderType, config: ProviderConfig,
                                language: Optional[str]) -> str:
        if language:
            return language

        if self.settings.processing.auto_detect_language:
            self._report("detect_language", index, total)
            detected = await self.ai_manager.detect_language(item.body or item.title, provider, config)
            await self._pace(provider)
            self.logger.debug(f"Detected language '{detected}' for {item.title[:60]}")
            return detected

        return self.settings.processing.default_language

    async def _search_context(self, query: str) -> str:
        """Fetch web context; never fails the item."""
        api_key = self.settings.search.get_api_key()
        if not api_key:
            self.logger.warning(
                f"No {self.settings.search.provider.value} API key configured, skipping web search"
            )
            return NO_CONTEXT_MESSAGE

        try:
            return await self.search_client.search(query, api_key)
        except SearchError as e:
            self.logger.warning(f"Web search failed, continuing without context: {e}")
            return NO_CONTEXT_MESSAGE

    async def _pace(self, provider: AIProviderType) -> None:
        """Pause between Gemini calls; other providers are not paced."""
        if AIProviderType(provider) != AIProviderType.GEMINI:
            return
        delay = self.settings.processing.pacing_delay_seconds
        if delay > 0:
            await self.clock.sleep(delay)

    def _report(self, step: str, index: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(step, index, total)
