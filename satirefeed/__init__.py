"""
SatireFeed - Satirical Posts From the News
==========================================

Ingests RSS feeds or single articles, enriches them with web search context
and turns them into summaries and satirical short-form posts using Gemini,
Groq or a local Ollama model.

Main Components:
- Configuration: environment variables and .env with Pydantic validation
- Ingestion: RSS fetching, HTML cleaning, page scraping
- AI Integration: provider routing with a Groq rate budget
- Processing: per-article search, summary and post generation
"""

__version__ = "1.0.0"
__author__ = "SatireFeed Development Team"
__description__ = "Satirical post generator for news feeds"

from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import SatireFeedError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "SatireFeedError",
]
