"""Tests for the web search clients."""

from unittest.mock import AsyncMock, patch

import pytest

from satirefeed.config.settings import SearchProvider
from satirefeed.search.base import NO_RESULTS_MESSAGE
from satirefeed.search.clients import (
    ExaSearchClient,
    SerperSearchClient,
    TavilySearchClient,
    create_search_client,
)
from satirefeed.utils.exceptions import SearchError


class TestTavily:

    def test_request(self):
        url, payload, headers = TavilySearchClient(max_results=3)._build_request("query", "tvly-key")

        assert url == "https://api.tavily.com/search"
        assert payload["api_key"] == "tvly-key"
        assert payload["include_answer"] is True
        assert payload["max_results"] == 3

    def test_prefers_answer(self):
        data = {"answer": "The answer.", "results": [{"content": "Result one."}]}

        assert TavilySearchClient()._extract_context(data) == "The answer."

    def test_joins_results(self):
        data = {"results": [{"content": "Result one."}, {"content": ""}, {"content": "Result two."}]}

        assert TavilySearchClient()._extract_context(data) == "Result one.\n\nResult two."

    @pytest.mark.asyncio
    async def test_no_results(self):
        client = TavilySearchClient()

        with patch.object(client, "_post_json", AsyncMock(return_value={"results": []})):
            assert await client.search("query", "tvly-key") == NO_RESULTS_MESSAGE

    @pytest.mark.asyncio
    async def test_error_propagates(self):
        client = TavilySearchClient()
        error = SearchError("tavily API error: Unauthorized", service="tavily", status=401)

        with patch.object(client, "_post_json", AsyncMock(side_effect=error)):
            with pytest.raises(SearchError) as exc_info:
                await client.search("query", "bad-key")

        assert exc_info.value.status == 401


class TestSerper:

    def test_request_is_localized(self):
        url, payload, headers = SerperSearchClient()._build_request("query", "serper-key")

        assert url == "https://google.serper.dev/search"
        assert headers["X-API-KEY"] == "serper-key"
        assert payload["gl"] == "pt"
        assert payload["hl"] == "pt-pt"
        assert payload["num"] == 5

    def test_answer_box(self):
        client = SerperSearchClient()

        assert client._extract_context({"answerBox": {"answer": "Yes."}}) == "Yes."
        assert client._extract_context({"answerBox": {"snippet": "Snippet."}}) == "Snippet."

    def test_organic_snippets(self):
        data = {"organic": [{"snippet": "One."}, {"title": "no snippet"}, {"snippet": "Two."}]}

        assert SerperSearchClient()._extract_context(data) == "One.\n\nTwo."


class TestExa:

    @pytest.mark.asyncio
    async def test_search(self):
        client = ExaSearchClient()
        data = {"results": [{"text": "Text one."}, {"text": "Text two."}]}

        with patch.object(client, "_post_json", AsyncMock(return_value=data)) as post:
            context = await client.search("query", "exa-key")

        assert context == "Text one.\n\nText two."
        url, payload, headers = post.await_args.args
        assert url == "https://api.exa.ai/search"
        assert headers["x-api-key"] == "exa-key"


def test_create_search_client():
    assert isinstance(create_search_client(SearchProvider.TAVILY), TavilySearchClient)
    assert isinstance(create_search_client("serper"), SerperSearchClient)
    assert create_search_client(SearchProvider.EXA, max_results=7).max_results == 7
