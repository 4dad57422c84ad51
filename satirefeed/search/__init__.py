"""
Web Search Enrichment
=====================

Tavily, Serper and Exa clients returning context text for an article.
"""

from .base import NO_RESULTS_MESSAGE, SearchClient
from .clients import (
    ExaSearchClient,
    SerperSearchClient,
    TavilySearchClient,
    create_search_client,
)

__all__ = [
    "NO_RESULTS_MESSAGE",
    "SearchClient",
    "TavilySearchClient",
    "SerperSearchClient",
    "ExaSearchClient",
    "create_search_client",
]
