"""
SatireFeed Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..models import AIProviderType, GROQ_MODELS, DEFAULT_GROQ_MODEL
from ..utils.exceptions import ConfigurationError, ErrorCode


class SearchProvider(str, Enum):
    """Web search services used for context enrichment."""
    TAVILY = "tavily"
    SERPER = "serper"
    EXA = "exa"


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AISettings(BaseModel):
    """AI providers configuration."""
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model")

    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    groq_model: str = Field(default=DEFAULT_GROQ_MODEL, description="Groq model id")

    ollama_model: Optional[str] = Field(default=None, description="Local Ollama model name")
    ollama_base_url: str = Field(default="http://localhost:11434", description="Ollama server URL")

    temperature: float = Field(default=0.9, ge=0.0, le=2.0, description="Sampling temperature for post generation")

    @field_validator('groq_model')
    @classmethod
    def validate_groq_model(cls, v):
        """Ensure the Groq model is one we support."""
        if v not in GROQ_MODELS:
            raise ValueError(f"groq_model must be one of: {', '.join(GROQ_MODELS)}")
        return v


class RateLimitSettings(BaseModel):
    """Client-side request/token budget for the Groq provider."""
    requests_per_minute: int = Field(default=30, ge=1, description="Request ceiling per window")
    tokens_per_minute: int = Field(default=8000, ge=100, description="Token ceiling per window")
    window_seconds: float = Field(default=60.0, gt=0, description="Sliding window length")
    safety_margin_seconds: float = Field(default=0.05, ge=0.0, le=5.0, description="Extra wait after an entry expires")
    summary_output_tokens: int = Field(default=300, ge=1, description="Expected output tokens for a summary")
    posts_output_tokens: int = Field(default=800, ge=1, description="Expected output tokens for a post batch")


class ProcessingSettings(BaseModel):
    """Processing pipeline configuration."""
    ai_provider: AIProviderType = Field(default=AIProviderType.GEMINI, description="Default AI provider")
    default_language: str = Field(default="English", min_length=1, description="Language for summaries and posts")
    auto_detect_language: bool = Field(default=False, description="Detect article language before summarizing")
    pacing_delay_seconds: float = Field(default=2.0, ge=0.0, le=60.0, description="Pause after each Gemini call")
    parallel_feeds: int = Field(default=5, ge=1, le=20, description="Concurrent feed fetches")
    max_content_length: int = Field(default=12000, ge=500, le=100000, description="Max article characters sent to the model")


class SearchSettings(BaseModel):
    """Web search enrichment configuration."""
    provider: SearchProvider = Field(default=SearchProvider.TAVILY, description="Search service")
    tavily_api_key: Optional[str] = Field(default=None, description="Tavily API key")
    serper_api_key: Optional[str] = Field(default=None, description="Serper API key")
    exa_api_key: Optional[str] = Field(default=None, description="Exa API key")
    max_results: int = Field(default=3, ge=1, le=10, description="Search results to merge into context")

    def get_api_key(self, provider: Optional[SearchProvider] = None) -> Optional[str]:
        """Get API key for the given (or configured) search service."""
        provider = provider or self.provider
        if provider == SearchProvider.TAVILY:
            return self.tavily_api_key
        elif provider == SearchProvider.SERPER:
            return self.serper_api_key
        elif provider == SearchProvider.EXA:
            return self.exa_api_key
        return None


class LimitsSettings(BaseModel):
    """Network limits for feed, page and search requests."""
    request_timeout: int = Field(default=30, ge=5, le=300, description="Request timeout in seconds")


class HistorySettings(BaseModel):
    """Processed-article history configuration."""
    file_path: Optional[str] = Field(default="data/processed_links.json", description="History file path (None keeps it in memory)")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/satirefeed.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class SatireFeedSettings(BaseSettings):
    """Main application settings."""

    ai: AISettings = Field(default_factory=AISettings)
    rate_limits: RateLimitSettings = Field(default_factory=RateLimitSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="SatireFeed", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "SATIREFEED_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate cross-field configuration."""
        errors = []

        if self.rate_limits.summary_output_tokens >= self.rate_limits.tokens_per_minute:
            errors.append("rate_limits.summary_output_tokens must be below tokens_per_minute")
        if self.rate_limits.posts_output_tokens >= self.rate_limits.tokens_per_minute:
            errors.append("rate_limits.posts_output_tokens must be below tokens_per_minute")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> SatireFeedSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = SatireFeedSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_PARSE_ERROR
        ) from e


_settings: Optional[SatireFeedSettings] = None


def get_settings(reload: bool = False) -> SatireFeedSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
