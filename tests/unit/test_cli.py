"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner

from satirefeed.cli import cli
from satirefeed.models import AIProviderType, GeneratedPost, ProcessedArticle
from satirefeed.processing.pipeline import PipelineResult
from satirefeed.storage.history import ProcessedLinkStore
from satirefeed.utils.exceptions import LocalUnreachableError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def settings(test_settings, monkeypatch):
    monkeypatch.setattr("satirefeed.cli.get_settings", lambda: test_settings)
    return test_settings


class TestCheckConfig:

    def test_missing_provider_key_fails(self, runner, settings):
        result = runner.invoke(cli, ["check-config"])

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output

    def test_configured_provider_passes(self, runner, settings):
        settings.ai.gemini_api_key = "test-key"

        result = runner.invoke(cli, ["check-config"])

        assert result.exit_code == 0
        assert "All configuration checks passed" in result.output


class TestClearHistory:

    def test_clear_history(self, runner, settings, tmp_path):
        path = tmp_path / "processed_links.json"
        settings.history.file_path = str(path)
        store = ProcessedLinkStore(path)
        store.add("https://news.example.com/1")
        store.add("https://news.example.com/2")

        result = runner.invoke(cli, ["clear-history", "--yes"])

        assert result.exit_code == 0
        assert "2 links" in result.output
        assert not path.exists()


class TestProcessing:

    def test_process_feeds_requires_provider_config(self, runner, settings):
        result = runner.invoke(cli, ["process-feeds", "https://news.example.com/rss", "-p", "groq"])

        assert result.exit_code == 1
        assert "groq_api_key" in result.output

    def test_unknown_provider_rejected(self, runner, settings):
        result = runner.invoke(cli, ["process-url", "https://news.example.com/1", "-p", "openrouter"])

        assert result.exit_code == 2

    def test_articles_done_before_abort_are_shown(self, runner, settings, monkeypatch):
        class AbortingPipeline:
            def __init__(self, **kwargs):
                self.last_result = None

            async def process_feeds(self, feed_urls, provider, config, language):
                self.last_result = PipelineResult(total_feeds_processed=1, successful_feed_fetches=1,
                                                  total_items_fetched=2, items_to_process=2)
                self.last_result.articles.append(ProcessedArticle(
                    id="https://news.example.com/1",
                    title="First story",
                    link="https://news.example.com/1",
                    summary="Short summary.",
                    posts=[GeneratedPost(text="A joke")],
                    provider=AIProviderType.OLLAMA,
                ))
                raise LocalUnreachableError("Connection refused", base_url="http://localhost:11434")

        settings.logging.file_path = None
        monkeypatch.setattr("satirefeed.cli.ProcessingPipeline", AbortingPipeline)

        result = runner.invoke(cli, ["process-feeds", "https://news.example.com/rss", "-p", "ollama"])

        assert result.exit_code == 1
        assert "First story" in result.output
        assert "A joke" in result.output
        assert "Processing Summary" in result.output
        assert "Ollama" in result.output
        assert result.output.index("First story") < result.output.index("Could not connect")
