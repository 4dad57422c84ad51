"""
Google Gemini AI provider implementation for SatireFeed.

Gemini enforces the posts response schema server-side, so the reply is
trusted to be well-formed JSON. No client-side rate limiting is applied;
the pipeline paces calls instead.
"""

import time
from typing import Any, List, Optional

import google.generativeai as genai

from .base import AIProvider, DEFAULT_LANGUAGE, MIN_DETECTION_LENGTH
from ..prompts import (
    POST_SYSTEM_PROMPT,
    build_language_detection_prompt,
    build_post_prompt,
    build_summary_prompt,
)
from ...models import AIProviderType
from ...utils.exceptions import (
    ErrorCode,
    MalformedOutputError,
    TransportError,
)
from ...utils.logging import get_logger_for_component


POSTS_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "tweets": {
            "type": "array",
            "items": {
                "type": "string",
                "description": "A single satirical tweet.",
            },
        },
    },
    "required": ["tweets"],
}


class GeminiProvider(AIProvider):
    """Google Gemini provider with server-side structured output.

    The API key is applied through ``genai.configure``, which is process-wide,
    so only one key can be active at a time.
    """

    native_structured_output = True

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash",
                 temperature: Optional[float] = None):
        """Initialize Gemini provider.

        Args:
            api_key: Google Gemini API key
            model_name: Model to use (default: gemini-2.5-flash)
            temperature: Sampling temperature for post generation

        Raises:
            TransportError: If the API key is missing
        """
        if not api_key:
            raise TransportError(
                "Gemini API key is required",
                provider="gemini",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS
            )

        super().__init__(model_name, AIProviderType.GEMINI)
        self.temperature = temperature

        genai.configure(api_key=api_key)

        self.model = genai.GenerativeModel(model_name=model_name)
        self.posts_model = genai.GenerativeModel(
            model_name=model_name,
            system_instruction=POST_SYSTEM_PROMPT,
        )

        self.logger = get_logger_for_component("gemini_provider", provider="gemini")
        self.logger.info(f"Gemini provider initialized with model: {model_name}")

    async def summarize(self, content: str, language: Optional[str] = None) -> str:
        """Summarize article content using Gemini."""
        prompt = build_summary_prompt(content, language or DEFAULT_LANGUAGE)
        start_time = time.time()

        response = await self._make_gemini_request(self.model, prompt, operation="summarize")
        summary = self._require_summary_text(self._response_text(response, "summarize"))

        processing_time_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(f"Summary generated: {len(summary)} chars, time={processing_time_ms}ms")
        return summary

    async def generate_posts(self, summary: str, language: Optional[str] = None) -> List[str]:
        """Generate satirical posts using Gemini's response schema."""
        prompt = build_post_prompt(
            summary, language or DEFAULT_LANGUAGE,
            require_json_envelope=not self.native_structured_output,
        )
        generation_config = genai.GenerationConfig(
            response_mime_type="application/json",
            response_schema=POSTS_RESPONSE_SCHEMA,
            temperature=self.temperature,
        )

        response = await self._make_gemini_request(
            self.posts_model, prompt, operation="generate_posts",
            generation_config=generation_config,
        )
        posts = self._parse_posts_payload(self._response_text(response, "generate_posts"))

        self.logger.debug(f"Generated {len(posts)} posts")
        return posts

    async def detect_language(self, content: str) -> str:
        """Detect article language using Gemini."""
        if not content or len(content.strip()) < MIN_DETECTION_LENGTH:
            return DEFAULT_LANGUAGE

        response = await self._make_gemini_request(
            self.model, build_language_detection_prompt(content), operation="detect_language"
        )
        return self._clean_language_name(self._response_text(response, "detect_language"))

    async def test_connection(self) -> bool:
        """Test Gemini API connection and authentication."""
        try:
            self.logger.info("Testing Gemini connection...")
            response = await self._make_gemini_request(
                self.model, "Respond with exactly: 'Connection test successful'",
                operation="test_connection",
            )
            success = "successful" in self._response_text(response, "test_connection").lower()

            if success:
                self.logger.info("Gemini connection test successful")
            else:
                self.logger.warning("Gemini connection test failed - unexpected response")

            return success

        except (TransportError, MalformedOutputError) as e:
            self.logger.error(f"Gemini connection test failed: {e}")
            return False

    async def _make_gemini_request(self, model: Any, prompt: str, operation: str,
                                   generation_config: Any = None) -> Any:
        """Make request to Gemini API.

        Args:
            model: GenerativeModel to call
            prompt: Prompt text
            operation: Operation name for error context
            generation_config: Optional generation config

        Returns:
            Gemini response object

        Raises:
            TransportError: On any API or network failure
        """
        try:
            if generation_config is not None:
                return await model.generate_content_async(
                    prompt, generation_config=generation_config
                )
            return await model.generate_content_async(prompt)

        except Exception as e:
            message = str(e).lower()
            self.logger.error(f"Gemini {operation} error: {e}")

            if "api key" in message or "authentication" in message or "permission" in message:
                raise TransportError(
                    "Invalid Gemini API key",
                    provider="gemini",
                    operation=operation,
                    error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                ) from e
            if "quota" in message or "rate limit" in message or "429" in message:
                raise TransportError(
                    f"Gemini rate limit exceeded: {e}",
                    provider="gemini",
                    operation=operation,
                    error_code=ErrorCode.AI_RATE_LIMIT,
                    rate_limited=True,
                    retryable=True,
                ) from e
            raise TransportError(
                f"Gemini API error: {e}",
                provider="gemini",
                operation=operation,
                error_code=ErrorCode.AI_API_ERROR,
                retryable=True,
            ) from e

    def _response_text(self, response: Any, operation: str) -> str:
        """Read response text, treating safety blocks as malformed output."""
        try:
            return response.text
        except ValueError as e:
            # Raised when the candidate was blocked or is empty
            raise MalformedOutputError(
                f"Gemini response blocked or empty: {e}",
                provider="gemini",
                operation=operation,
            ) from e
