"""
Base AI Provider Interface
=========================

Abstract base class for the LLM backends used to summarize articles and
write satirical posts, plus the output-shape handling they share.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ...models import AIProviderType
from ...utils.exceptions import MalformedOutputError

# JSON field holding the generated posts
POSTS_FIELD = "tweets"

DEFAULT_LANGUAGE = "English"

# Content shorter than this is not worth a language detection call
MIN_DETECTION_LENGTH = 20

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?|```", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers some models wrap JSON in."""
    return _CODE_FENCE_PATTERN.sub("", text or "").strip()


class AIProvider(ABC):
    """Abstract base class for AI provider implementations."""

    # Whether the backend enforces the posts schema server-side
    native_structured_output: bool = False

    def __init__(self, model_name: str, provider_type: AIProviderType):
        """Initialize AI provider.

        Args:
            model_name: Model to use for requests
            provider_type: Type of provider
        """
        self.model_name = model_name
        self.provider_type = provider_type

    @property
    def name(self) -> str:
        return self.provider_type.value

    @abstractmethod
    async def summarize(self, content: str, language: Optional[str] = None) -> str:
        """Summarize article content.

        Args:
            content: Article text, optionally with appended search context
            language: Target language (default: English)

        Returns:
            Summary text

        Raises:
            TransportError: If the provider request fails
            MalformedOutputError: If the provider returned no summary text
        """
        pass

    @abstractmethod
    async def generate_posts(self, summary: str, language: Optional[str] = None) -> List[str]:
        """Generate satirical posts for a summary.

        Args:
            summary: Article summary
            language: Target language (default: English)

        Returns:
            Post texts; empty when the model omitted the posts field

        Raises:
            TransportError: If the provider request fails
            MalformedOutputError: If the reply is not valid JSON
        """
        pass

    @abstractmethod
    async def detect_language(self, content: str) -> str:
        """Detect the language an article is written in.

        Args:
            content: Article text

        Returns:
            Language name, e.g. "English"
        """
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """Test provider connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        pass

    def _parse_posts_payload(self, raw: Any) -> List[str]:
        """Extract post texts from a JSON reply.

        A reply that is not JSON at all is an error. A JSON reply without a
        usable posts array degrades to an empty list.
        """
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")

        try:
            payload = json.loads(raw) if isinstance(raw, str) else raw
        except (TypeError, ValueError) as e:
            raise MalformedOutputError(
                f"{self.name} returned invalid JSON for posts: {e}",
                raw_output=raw if isinstance(raw, str) else None,
                provider=self.name,
                operation="generate_posts",
            ) from e

        if not isinstance(payload, dict):
            return []

        posts = payload.get(POSTS_FIELD)
        if not isinstance(posts, list):
            return []

        return [post.strip() for post in posts if isinstance(post, str) and post.strip()]

    def _require_summary_text(self, text: Optional[str]) -> str:
        """Summaries have no meaningful empty fallback."""
        summary = (text or "").strip()
        if summary.upper().startswith("SUMMARY:"):
            summary = summary[len("SUMMARY:"):].strip()
        if not summary:
            raise MalformedOutputError(
                f"{self.name} returned an empty summary",
                raw_output=text,
                provider=self.name,
                operation="summarize",
            )
        return summary

    def _clean_language_name(self, text: Optional[str]) -> str:
        """Normalize a language detection reply to a bare language name."""
        language = (text or "").strip().strip('."\'').strip()
        return language.splitlines()[0].strip() if language else DEFAULT_LANGUAGE

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_name})"
