"""
Web Search Client Interface
===========================

Search services used to enrich an article with live context before it is
summarized. Each client returns a single block of text.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..utils.exceptions import ErrorCode, SearchError
from ..utils.logging import get_logger_for_component

NO_RESULTS_MESSAGE = "No relevant information found from web search."


class SearchClient(ABC):
    """Base class for web search services."""

    service_name = "search"

    def __init__(self, timeout: int = 30, max_results: int = 3):
        """Initialize search client.

        Args:
            timeout: Request timeout in seconds
            max_results: Number of results to request
        """
        self.timeout = timeout
        self.max_results = max_results
        self.logger = get_logger_for_component(f"{self.service_name}_search")

    async def search(self, query: str, api_key: str) -> str:
        """Search the web and return context text for ``query``.

        Args:
            query: Search query, usually the article title
            api_key: Service API key

        Returns:
            Context text, or a fixed message when nothing was found

        Raises:
            SearchError: On HTTP or network failure
        """
        url, payload, headers = self._build_request(query, api_key)
        self.logger.debug(f"Searching {self.service_name} for: {query[:80]}")

        data = await self._post_json(url, payload, headers)
        context = self._extract_context(data)

        if not context:
            self.logger.info(f"{self.service_name} returned no results for: {query[:80]}")
            return NO_RESULTS_MESSAGE
        return context

    async def _post_json(self, url: str, payload: Dict[str, Any],
                         headers: Dict[str, str]) -> Dict[str, Any]:
        """POST a JSON body and decode the JSON reply."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=payload, headers=headers) as response:
                    if response.status != 200:
                        try:
                            error_data = await response.json(content_type=None)
                        except ValueError:
                            error_data = {}
                        detail = self._error_detail(error_data) or f"HTTP error! status: {response.status}"
                        raise SearchError(
                            f"{self.service_name} API error: {detail}",
                            service=self.service_name,
                            status=response.status,
                        )
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise SearchError(
                            f"{self.service_name} returned invalid JSON: {e}",
                            service=self.service_name,
                            status=response.status,
                        ) from e

        except asyncio.TimeoutError as e:
            raise SearchError(
                f"{self.service_name} request timed out after {self.timeout}s",
                service=self.service_name,
                error_code=ErrorCode.EXTERNAL_SERVICE_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise SearchError(
                f"Failed to reach {self.service_name}: {e}",
                service=self.service_name,
                error_code=ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
            ) from e

    @staticmethod
    def _error_detail(error_data: Any) -> Optional[str]:
        if isinstance(error_data, dict):
            return error_data.get("error") or error_data.get("message")
        return None

    @abstractmethod
    def _build_request(self, query: str, api_key: str) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        """Return the URL, JSON body and headers for a query."""
        pass

    @abstractmethod
    def _extract_context(self, data: Dict[str, Any]) -> Optional[str]:
        """Turn a decoded reply into context text, or None when empty."""
        pass
