"""Concrete web search services."""

from typing import Any, Dict, Optional, Tuple

from .base import SearchClient
from ..config.settings import SearchProvider


def _join_texts(results: Any, key: str) -> Optional[str]:
    if not isinstance(results, list):
        return None
    texts = [r.get(key) for r in results if isinstance(r, dict) and r.get(key)]
    return "\n\n".join(texts) or None


class TavilySearchClient(SearchClient):
    """Tavily search; prefers the generated answer over raw results."""

    service_name = "tavily"
    API_URL = "https://api.tavily.com/search"

    def _build_request(self, query: str, api_key: str) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        payload = {
            "api_key": api_key,
            "query": query,
            "search_depth": "basic",
            "include_answer": True,
            "max_results": self.max_results,
        }
        return self.API_URL, payload, {"Content-Type": "application/json"}

    def _extract_context(self, data: Dict[str, Any]) -> Optional[str]:
        if data.get("answer"):
            return data["answer"]
        return _join_texts(data.get("results"), "content")


class SerperSearchClient(SearchClient):
    """Serper (Google results); prefers the answer box."""

    service_name = "serper"
    API_URL = "https://google.serper.dev/search"

    def __init__(self, timeout: int = 30, max_results: int = 5,
                 location: str = "Portugal", country: str = "pt", locale: str = "pt-pt"):
        super().__init__(timeout=timeout, max_results=max_results)
        self.location = location
        self.country = country
        self.locale = locale

    def _build_request(self, query: str, api_key: str) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        payload = {
            "q": query,
            "location": self.location,
            "gl": self.country,
            "hl": self.locale,
            "num": self.max_results,
        }
        headers = {"X-API-KEY": api_key, "Content-Type": "application/json"}
        return self.API_URL, payload, headers

    def _extract_context(self, data: Dict[str, Any]) -> Optional[str]:
        answer_box = data.get("answerBox")
        if isinstance(answer_box, dict):
            if answer_box.get("answer"):
                return answer_box["answer"]
            if answer_box.get("snippet"):
                return answer_box["snippet"]
        return _join_texts(data.get("organic"), "snippet")


class ExaSearchClient(SearchClient):
    """Exa neural search; joins the text of each result."""

    service_name = "exa"
    API_URL = "https://api.exa.ai/search"
    MAX_CHARACTERS = 1000

    def _build_request(self, query: str, api_key: str) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        payload = {
            "query": query,
            "numResults": self.max_results,
            "useAutoprompt": True,
            "type": "neural",
            "text": {"maxCharacters": self.MAX_CHARACTERS, "includeHtmlTags": False},
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            # Exa rejects requests without a user agent
            "User-Agent": "SatireFeed/1.0",
        }
        return self.API_URL, payload, headers

    def _extract_context(self, data: Dict[str, Any]) -> Optional[str]:
        return _join_texts(data.get("results"), "text")


_CLIENTS = {
    SearchProvider.TAVILY: TavilySearchClient,
    SearchProvider.SERPER: SerperSearchClient,
    SearchProvider.EXA: ExaSearchClient,
}


def create_search_client(provider: SearchProvider, timeout: int = 30,
                         max_results: Optional[int] = None) -> SearchClient:
    """Build the client for a search service."""
    client_class = _CLIENTS[SearchProvider(provider)]
    if max_results is None:
        return client_class(timeout=timeout)
    return client_class(timeout=timeout, max_results=max_results)
