"""
Groq AI Provider Implementation
==============================

Groq provider for fast LLM inference. Every request is admitted through a
shared RateBudget first, since Groq enforces strict per-minute request and
token ceilings.
"""

import time
from typing import Any, Dict, List, Optional

import groq
from groq import AsyncGroq

from .base import AIProvider, DEFAULT_LANGUAGE, MIN_DETECTION_LENGTH
from ..prompts import (
    POST_SYSTEM_PROMPT,
    build_language_detection_prompt,
    build_post_prompt,
    build_summary_prompt,
)
from ..rate_budget import RateBudget
from ..tokens import estimate_tokens
from ...models import AIProviderType, DEFAULT_GROQ_MODEL
from ...utils.exceptions import ErrorCode, MalformedOutputError, TransportError
from ...utils.logging import get_logger_for_component


class GroqProvider(AIProvider):
    """Groq AI provider with budget-gated async requests."""

    def __init__(self, api_key: str, model_name: str = DEFAULT_GROQ_MODEL,
                 rate_budget: Optional[RateBudget] = None,
                 summary_output_tokens: int = 300, posts_output_tokens: int = 800,
                 temperature: Optional[float] = None):
        """Initialize Groq provider.

        Args:
            api_key: Groq API key
            model_name: Model to use (default: openai/gpt-oss-20b)
            rate_budget: Budget shared by all Groq calls in this run
            summary_output_tokens: Expected completion size for summaries
            posts_output_tokens: Expected completion size for post batches
            temperature: Sampling temperature for post generation

        Raises:
            TransportError: If the API key is missing
        """
        if not api_key:
            raise TransportError(
                "Groq API key is required",
                provider="groq",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS
            )

        super().__init__(model_name, AIProviderType.GROQ)

        # No SDK-level resends; every request is admitted by the rate budget
        self.async_client = AsyncGroq(api_key=api_key, max_retries=0)
        self.rate_budget = rate_budget or RateBudget(name="groq")
        self.summary_output_tokens = summary_output_tokens
        self.posts_output_tokens = posts_output_tokens
        self.temperature = temperature

        self.logger = get_logger_for_component("groq_provider", provider="groq")
        self.logger.info(f"Groq provider initialized with model: {model_name}")

    async def summarize(self, content: str, language: Optional[str] = None) -> str:
        """Summarize article content using Groq."""
        prompt = build_summary_prompt(content, language or DEFAULT_LANGUAGE)
        start_time = time.time()

        response = await self._make_chat_completion(
            [{"role": "user", "content": prompt}],
            expected_output_tokens=self.summary_output_tokens,
            operation="summarize",
        )
        summary = self._require_summary_text(self._message_content(response))

        processing_time_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(f"Summary generated: {len(summary)} chars, time={processing_time_ms}ms")
        return summary

    async def generate_posts(self, summary: str, language: Optional[str] = None) -> List[str]:
        """Generate satirical posts using Groq JSON mode."""
        prompt = build_post_prompt(summary, language or DEFAULT_LANGUAGE, require_json_envelope=True)
        messages = [
            {"role": "system", "content": POST_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        response = await self._make_chat_completion(
            messages,
            expected_output_tokens=self.posts_output_tokens,
            operation="generate_posts",
            response_format={"type": "json_object"},
            temperature=self.temperature,
        )
        posts = self._parse_posts_payload(self._message_content(response))

        self.logger.debug(f"Generated {len(posts)} posts")
        return posts

    async def detect_language(self, content: str) -> str:
        """Detect article language using Groq."""
        if not content or len(content.strip()) < MIN_DETECTION_LENGTH:
            return DEFAULT_LANGUAGE

        response = await self._make_chat_completion(
            [{"role": "user", "content": build_language_detection_prompt(content)}],
            expected_output_tokens=self.summary_output_tokens,
            operation="detect_language",
        )
        return self._clean_language_name(self._message_content(response))

    async def test_connection(self) -> bool:
        """Test Groq API connection and authentication.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            self.logger.info("Testing Groq connection...")

            response = await self._make_chat_completion(
                [{"role": "user", "content": "Respond with exactly: 'Connection test successful'"}],
                expected_output_tokens=10,
                operation="test_connection",
                max_tokens=10,
            )
            success = "successful" in (self._message_content(response) or "").lower()

            if success:
                self.logger.info("Groq connection test successful")
            else:
                self.logger.warning("Groq connection test failed - unexpected response")

            return success

        except TransportError as e:
            self.logger.error(f"Groq connection test failed: {e}")
            return False

    async def _make_chat_completion(self, messages: List[Dict[str, str]],
                                    expected_output_tokens: int, operation: str,
                                    **kwargs: Any) -> Any:
        """Admit the request through the budget, then call the chat API.

        Args:
            messages: Chat messages
            expected_output_tokens: Completion size charged to the budget
            operation: Operation name for error context
            **kwargs: Extra completion parameters

        Returns:
            Chat completion response

        Raises:
            SizingError: If the request can never fit the budget
            TransportError: On API or network failure
        """
        prompt_text = "\n".join(message["content"] for message in messages)
        await self.rate_budget.admit(estimate_tokens(prompt_text), expected_output_tokens)

        params = {key: value for key, value in kwargs.items() if value is not None}

        try:
            return await self.async_client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                **params,
            )

        except groq.APIConnectionError as e:
            self.logger.error(f"Groq connection error: {e}")
            raise TransportError(
                f"Connection to Groq failed: {e}",
                provider="groq",
                operation=operation,
                error_code=ErrorCode.AI_CONNECTION_ERROR,
                retryable=True
            ) from e

        except groq.RateLimitError as e:
            self.logger.warning(f"Groq rate limit exceeded: {e}")
            raise TransportError(
                f"Groq rate limit exceeded: {e}",
                provider="groq",
                operation=operation,
                error_code=ErrorCode.AI_RATE_LIMIT,
                rate_limited=True,
                retryable=True
            ) from e

        except groq.APIStatusError as e:
            self.logger.error(f"Groq API error: {e.status_code} - {e.message}")

            if e.status_code == 401:
                raise TransportError(
                    "Invalid Groq API key",
                    provider="groq",
                    operation=operation,
                    error_code=ErrorCode.AI_INVALID_CREDENTIALS
                ) from e
            elif e.status_code == 429:
                raise TransportError(
                    f"Groq rate limit exceeded: {e.message}",
                    provider="groq",
                    operation=operation,
                    error_code=ErrorCode.AI_RATE_LIMIT,
                    rate_limited=True,
                    retryable=True
                ) from e
            else:
                raise TransportError(
                    f"Groq API error: {e.status_code} - {e.message}",
                    provider="groq",
                    operation=operation,
                    error_code=ErrorCode.AI_API_ERROR,
                    retryable=e.status_code >= 500
                ) from e

    def _message_content(self, response: Any) -> Optional[str]:
        """Pull the first choice's text out of a completion."""
        try:
            return response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise MalformedOutputError(
                f"Groq response had no choices: {e}",
                provider="groq",
            ) from e
