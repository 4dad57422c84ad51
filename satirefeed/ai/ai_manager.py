"""
AI Manager - Provider Routing
=============================

Routes summarization, post generation and language detection to the provider
selected for the run. Configuration is validated before any provider is built
or any request is sent, and adapter failures are re-raised with the operation
and provider that failed.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .providers.base import AIProvider
from .providers.gemini_provider import GeminiProvider
from .providers.groq_provider import GroqProvider
from .providers.ollama_provider import DEFAULT_OLLAMA_BASE_URL, OllamaProvider
from .rate_budget import RateBudget
from ..config.settings import SatireFeedSettings, get_settings
from ..models import AIProviderType, GeneratedPost, ProviderConfig
from ..utils.clock import Clock, get_default_clock
from ..utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    LocalUnreachableError,
    ProviderOperationError,
)
from ..utils.logging import PerformanceLogger, get_logger_for_component

ProviderFactory = Callable[[AIProviderType, ProviderConfig], AIProvider]


class AIManager:
    """Single entry point for all LLM operations of a run."""

    def __init__(self, settings: Optional[SatireFeedSettings] = None,
                 rate_budget: Optional[RateBudget] = None,
                 provider_factory: Optional[ProviderFactory] = None,
                 clock: Optional[Clock] = None):
        """Initialize AI manager.

        Args:
            settings: SatireFeed settings (default: load from config)
            rate_budget: Budget for Groq requests (default: built from settings)
            provider_factory: Builds a provider from a validated config
            clock: Time source for the default rate budget
        """
        self.settings = settings or get_settings()
        self.logger = get_logger_for_component("ai_manager")

        self.clock = clock or get_default_clock()
        self.rate_budget = rate_budget or RateBudget.from_settings(
            self.settings.rate_limits, clock=self.clock, name="groq"
        )

        self._provider_factory = provider_factory or self._create_provider
        self._providers: Dict[Tuple[Any, ...], AIProvider] = {}

        self.logger.info(f"AI Manager initialized with budget {self.rate_budget!r}")

    def resolve_config(self, provider: AIProviderType,
                       config: Optional[ProviderConfig]) -> ProviderConfig:
        """Fill in settings-level defaults the caller may omit."""
        config = config or ProviderConfig()
        updates = {}

        if provider == AIProviderType.GEMINI and not config.gemini_api_key:
            updates["gemini_api_key"] = self.settings.ai.gemini_api_key
        if provider == AIProviderType.OLLAMA and not config.ollama_base_url:
            updates["ollama_base_url"] = self.settings.ai.ollama_base_url or DEFAULT_OLLAMA_BASE_URL

        return config.model_copy(update=updates) if updates else config

    def validate_config(self, provider: AIProviderType,
                        config: Optional[ProviderConfig]) -> ProviderConfig:
        """Check the selected provider has everything it needs.

        Args:
            provider: Selected provider
            config: Per-run provider configuration

        Returns:
            Config with settings-level defaults applied

        Raises:
            ConfigurationError: Naming the first missing field
        """
        try:
            provider = AIProviderType(provider)
        except ValueError:
            raise ConfigurationError(
                f"Unknown AI provider: {provider}",
                config_key="ai_provider",
            )

        config = self.resolve_config(provider, config)

        if provider == AIProviderType.GEMINI:
            required = ["gemini_api_key"]
        elif provider == AIProviderType.GROQ:
            required = ["groq_api_key", "groq_model"]
        else:
            required = ["ollama_model"]

        for field_name in required:
            if not getattr(config, field_name):
                raise ConfigurationError(
                    f"{provider.value} provider requires '{field_name}'",
                    config_key=field_name,
                    error_code=ErrorCode.CONFIG_MISSING,
                )

        return config

    def get_provider(self, provider: AIProviderType,
                     config: Optional[ProviderConfig]) -> AIProvider:
        """Validate configuration and return a cached provider instance."""
        config = self.validate_config(provider, config)
        provider = AIProviderType(provider)

        if provider == AIProviderType.GEMINI:
            key = (provider, config.gemini_api_key, self.settings.ai.gemini_model)
        elif provider == AIProviderType.GROQ:
            key = (provider, config.groq_api_key, config.groq_model)
        else:
            key = (provider, config.ollama_base_url, config.ollama_model)

        if provider == AIProviderType.GEMINI and key not in self._providers:
            # genai.configure is process-wide; a provider built for another key would use this one
            for stale in [k for k in self._providers if k[0] == AIProviderType.GEMINI]:
                del self._providers[stale]

        if key not in self._providers:
            self._providers[key] = self._provider_factory(provider, config)
            self.logger.debug(f"Created {provider.value} provider for {config}")

        return self._providers[key]

    def _create_provider(self, provider: AIProviderType, config: ProviderConfig) -> AIProvider:
        """Default factory building the real adapters."""
        ai = self.settings.ai

        if provider == AIProviderType.GEMINI:
            return GeminiProvider(
                api_key=config.gemini_api_key,
                model_name=ai.gemini_model,
                temperature=ai.temperature,
            )

        if provider == AIProviderType.GROQ:
            limits = self.settings.rate_limits
            return GroqProvider(
                api_key=config.groq_api_key,
                model_name=config.groq_model,
                rate_budget=self.rate_budget,
                summary_output_tokens=limits.summary_output_tokens,
                posts_output_tokens=limits.posts_output_tokens,
                temperature=ai.temperature,
            )

        return OllamaProvider(
            model_name=config.ollama_model,
            base_url=config.ollama_base_url,
            temperature=ai.temperature,
        )

    async def _run(self, operation: str, provider: AIProviderType,
                   config: Optional[ProviderConfig],
                   call: Callable[[AIProvider], Awaitable[Any]]) -> Any:
        """Run one adapter call, enriching any failure with its context."""
        adapter = self.get_provider(provider, config)
        provider_name = AIProviderType(provider).value

        try:
            with PerformanceLogger(self.logger, f"{operation} via {provider_name}"):
                return await call(adapter)

        except (LocalUnreachableError, ConfigurationError):
            raise

        except Exception as e:
            self.logger.error(f"{operation} failed with {provider_name}: {e}")
            raise ProviderOperationError(operation, provider_name, e) from e

    async def summarize(self, content: str, provider: AIProviderType,
                        config: Optional[ProviderConfig] = None,
                        language: Optional[str] = None) -> str:
        """Summarize content with the selected provider.

        Raises:
            ConfigurationError: If the provider is not configured
            LocalUnreachableError: If the local server cannot be reached
            ProviderOperationError: On any other provider failure
        """
        language = language or self.settings.processing.default_language
        return await self._run(
            "summarize", provider, config,
            lambda adapter: adapter.summarize(content, language),
        )

    async def generate_posts(self, summary: str, provider: AIProviderType,
                             config: Optional[ProviderConfig] = None,
                             language: Optional[str] = None) -> List[GeneratedPost]:
        """Generate satirical posts with the selected provider.

        An empty list is a degraded but valid result.
        """
        language = language or self.settings.processing.default_language
        texts = await self._run(
            "generate_posts", provider, config,
            lambda adapter: adapter.generate_posts(summary, language),
        )
        return [GeneratedPost(text=text) for text in texts]

    async def detect_language(self, content: str, provider: AIProviderType,
                              config: Optional[ProviderConfig] = None) -> str:
        """Detect the language content is written in."""
        return await self._run(
            "detect_language", provider, config,
            lambda adapter: adapter.detect_language(content),
        )

    async def test_provider(self, provider: AIProviderType,
                            config: Optional[ProviderConfig] = None) -> bool:
        """Check connectivity of the selected provider."""
        return await self._run(
            "test_connection", provider, config,
            lambda adapter: adapter.test_connection(),
        )

    async def close(self) -> None:
        """Release provider resources such as HTTP sessions."""
        for adapter in self._providers.values():
            if isinstance(adapter, OllamaProvider):
                await adapter.close()
        self._providers.clear()
