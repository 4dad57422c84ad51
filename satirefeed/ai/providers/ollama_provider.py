"""
Ollama AI Provider Implementation
================================

Local model server provider. Talks to the Ollama chat endpoint over plain
HTTP; there is no authentication and no rate limiting.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import aiohttp

from .base import AIProvider, DEFAULT_LANGUAGE, MIN_DETECTION_LENGTH, strip_code_fences
from ..prompts import (
    POST_SYSTEM_PROMPT,
    build_language_detection_prompt,
    build_post_prompt,
    build_summary_prompt,
)
from ...models import AIProviderType
from ...utils.exceptions import (
    ErrorCode,
    LocalUnreachableError,
    MalformedOutputError,
    TransportError,
)
from ...utils.logging import get_logger_for_component

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


class OllamaProvider(AIProvider):
    """Provider for models served by a local Ollama instance."""

    def __init__(self, model_name: str, base_url: str = DEFAULT_OLLAMA_BASE_URL,
                 temperature: Optional[float] = None):
        """Initialize Ollama provider.

        Args:
            model_name: Name of a model pulled into Ollama (e.g. "llama3")
            base_url: Ollama server address
            temperature: Sampling temperature for post generation
        """
        super().__init__(model_name, AIProviderType.OLLAMA)
        self.base_url = (base_url or DEFAULT_OLLAMA_BASE_URL).rstrip("/")
        self.temperature = temperature

        # HTTP session for connection reuse
        self._session: Optional[aiohttp.ClientSession] = None

        self.logger = get_logger_for_component("ollama_provider", provider="ollama")
        self.logger.info(f"Ollama provider initialized with model: {model_name} at {self.base_url}")

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    async def summarize(self, content: str, language: Optional[str] = None) -> str:
        """Summarize article content using the local model."""
        prompt = build_summary_prompt(content, language or DEFAULT_LANGUAGE)
        text = await self._make_chat_request(
            [{"role": "user", "content": prompt}], operation="summarize"
        )
        return self._require_summary_text(text)

    async def generate_posts(self, summary: str, language: Optional[str] = None) -> List[str]:
        """Generate satirical posts using Ollama's JSON format mode."""
        prompt = build_post_prompt(summary, language or DEFAULT_LANGUAGE, require_json_envelope=True)
        messages = [
            {"role": "system", "content": POST_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        text = await self._make_chat_request(messages, operation="generate_posts", json_format=True)
        posts = self._parse_posts_payload(strip_code_fences(text))

        self.logger.debug(f"Generated {len(posts)} posts")
        return posts

    async def detect_language(self, content: str) -> str:
        """Detect article language using the local model."""
        if not content or len(content.strip()) < MIN_DETECTION_LENGTH:
            return DEFAULT_LANGUAGE

        text = await self._make_chat_request(
            [{"role": "user", "content": build_language_detection_prompt(content)}],
            operation="detect_language",
        )
        return self._clean_language_name(text)

    async def test_connection(self) -> bool:
        """Check that the server is up and the model answers."""
        try:
            self.logger.info("Testing Ollama connection...")
            text = await self._make_chat_request(
                [{"role": "user", "content": "Respond with exactly: 'Connection test successful'"}],
                operation="test_connection",
            )
            success = "successful" in text.lower()

            if success:
                self.logger.info("Ollama connection test successful")
            else:
                self.logger.warning("Ollama connection test failed - unexpected response")

            return success

        except TransportError as e:
            self.logger.error(f"Ollama connection test failed: {e}")
            return False

    async def _make_chat_request(self, messages: List[Dict[str, str]], operation: str,
                                 json_format: bool = False) -> str:
        """POST a non-streaming chat request and return the message text.

        Raises:
            LocalUnreachableError: If the server cannot be reached
            TransportError: On a non-200 status or an error reply
            MalformedOutputError: If the reply has no message content
        """
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "stream": False,
        }
        if json_format:
            payload["format"] = "json"
        if self.temperature is not None and operation == "generate_posts":
            payload["options"] = {"temperature": self.temperature}

        session = self._get_session()

        try:
            async with session.post(self.chat_url, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    self.logger.error(f"Ollama API error: {response.status} - {error_text}")
                    raise TransportError(
                        f"Ollama API error: {response.status} - {error_text}",
                        provider="ollama",
                        operation=operation,
                        error_code=ErrorCode.AI_API_ERROR,
                        retryable=response.status >= 500
                    )

                body = await response.text()

        except asyncio.TimeoutError as e:
            # A slow model is still a running server
            self.logger.error(f"Ollama request timed out at {self.base_url}")
            raise TransportError(
                f"Ollama request timed out: {e!r}",
                provider="ollama",
                operation=operation,
                error_code=ErrorCode.EXTERNAL_SERVICE_TIMEOUT,
                retryable=True
            ) from e

        except (aiohttp.ClientConnectionError, OSError) as e:
            self.logger.error(f"Ollama server unreachable at {self.base_url}: {e}")
            raise LocalUnreachableError(
                f"Could not connect to Ollama at {self.base_url}: {e}",
                base_url=self.base_url,
                operation=operation,
            ) from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedOutputError(
                f"Ollama returned a non-JSON response: {e}",
                raw_output=body,
                provider="ollama",
                operation=operation,
            ) from e

        if isinstance(data, dict) and data.get("error"):
            raise TransportError(
                f"Ollama error: {data['error']}",
                provider="ollama",
                operation=operation,
                error_code=ErrorCode.AI_API_ERROR
            )

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise MalformedOutputError(
                "Ollama response had no message content",
                raw_output=body,
                provider="ollama",
                operation=operation,
            )
        return content

    def _get_session(self) -> aiohttp.ClientSession:
        """Shared session; local generation can take minutes, so no timeout applies."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None))
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
