"""
SatireFeed Custom Exceptions
===========================

Custom exception hierarchy for SatireFeed with error codes, context information
and user-friendly error messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    CONFIG_PARSE_ERROR = "C003"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"

    # Content processing errors (P001-P099)
    CONTENT_INVALID = "P001"
    CONTENT_EXTRACTION_FAILED = "P003"

    # AI processing errors (A001-A099)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_RATE_LIMIT = "A006"
    AI_PROCESSING_ERROR = "A007"
    AI_INVALID_CREDENTIALS = "A009"
    AI_CONNECTION_ERROR = "A010"
    LOCAL_UNREACHABLE = "A011"
    AI_REQUEST_TOO_LARGE = "A012"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # External service errors (E001-E099)
    EXTERNAL_SERVICE_ERROR = "E001"
    EXTERNAL_SERVICE_UNAVAILABLE = "E002"
    EXTERNAL_SERVICE_TIMEOUT = "E003"


class SatireFeedError(Exception):
    """Base exception for all SatireFeed errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize SatireFeed error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(SatireFeedError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for SatireFeedError
        """
        context = kwargs.pop("context", {})
        if config_key:
            context["config_key"] = config_key
        self.config_key = config_key

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.pop("user_message", f"Configuration error: {message}"),
            **kwargs,
        )


class AIError(SatireFeedError):
    """AI processing and API errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        operation: Optional[str] = None,
        retryable: bool = False,
        rate_limited: bool = False,
        **kwargs,
    ):
        """Initialize AI error.

        Args:
            message: Error message
            provider: AI provider name (e.g., 'gemini', 'groq')
            operation: Operation being performed (e.g., 'summarize')
            retryable: Whether the caller may retry the request
            rate_limited: Whether the provider rejected the request for rate limits
            **kwargs: Additional arguments for SatireFeedError
        """
        context = kwargs.pop("context", {})
        if provider:
            context["ai_provider"] = provider
        if operation:
            context["operation"] = operation

        self.provider = provider
        self.operation = operation
        self.retryable = retryable
        self.rate_limited = rate_limited

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.AI_API_ERROR),
            context=context,
            user_message=kwargs.pop(
                "user_message", "AI processing temporarily unavailable"
            ),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class TransportError(AIError):
    """Network or HTTP failure talking to an AI provider."""


class LocalUnreachableError(TransportError):
    """The local model server could not be reached."""

    def __init__(self, message: str, base_url: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if base_url:
            context["base_url"] = base_url
        self.base_url = base_url

        super().__init__(
            message,
            provider=kwargs.pop("provider", "ollama"),
            error_code=ErrorCode.LOCAL_UNREACHABLE,
            context=context,
            user_message=kwargs.pop(
                "user_message",
                f"Could not connect to the local Ollama server at {base_url}. "
                "Please ensure Ollama is running.",
            ),
            retryable=kwargs.pop("retryable", True),
            **kwargs,
        )


class MalformedOutputError(AIError):
    """Model output did not have the expected shape."""

    def __init__(self, message: str, raw_output: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if raw_output is not None:
            context["raw_output"] = raw_output[:500]

        super().__init__(
            message,
            error_code=ErrorCode.AI_INVALID_RESPONSE,
            context=context,
            user_message=kwargs.pop(
                "user_message", "The AI returned an unexpected response"
            ),
            **kwargs,
        )


class ProviderOperationError(AIError):
    """Provider failure enriched with the operation and provider that failed."""

    def __init__(self, operation: str, provider: str, original: Exception):
        self.original = original
        error_code = getattr(original, "error_code", None) or ErrorCode.AI_PROCESSING_ERROR
        user_message = getattr(original, "user_message", None)

        super().__init__(
            f"{operation} failed with provider '{provider}': {original}",
            provider=provider,
            operation=operation,
            retryable=getattr(original, "retryable", False),
            rate_limited=getattr(original, "rate_limited", False),
            error_code=error_code,
            context={"original_exception_type": type(original).__name__},
            user_message=user_message or f"Failed to {operation} with {provider}",
        )


class SizingError(SatireFeedError):
    """A single request is larger than the rate budget can ever admit."""

    def __init__(self, message: str, requested_tokens: int, token_ceiling: int, **kwargs):
        context = kwargs.pop("context", {})
        context["requested_tokens"] = requested_tokens
        context["token_ceiling"] = token_ceiling
        self.requested_tokens = requested_tokens
        self.token_ceiling = token_ceiling

        super().__init__(
            message=message,
            error_code=ErrorCode.AI_REQUEST_TOO_LARGE,
            context=context,
            user_message=kwargs.pop(
                "user_message", "Article is too long for the selected model's rate limit"
            ),
            recoverable=False,
            **kwargs,
        )


class FeedError(SatireFeedError):
    """Feed ingestion and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for SatireFeedError
        """
        context = kwargs.pop("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.FEED_FETCH_TIMEOUT),
            context=context,
            user_message=kwargs.pop(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class FeedFetchError(FeedError):
    """RSS feed or page fetching errors."""

    pass


class SearchError(SatireFeedError):
    """Web search enrichment errors."""

    def __init__(self, message: str, service: Optional[str] = None,
                 status: Optional[int] = None, **kwargs):
        context = kwargs.pop("context", {})
        if service:
            context["search_service"] = service
        if status is not None:
            context["status"] = status
        self.service = service
        self.status = status

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.EXTERNAL_SERVICE_ERROR),
            context=context,
            user_message=kwargs.pop("user_message", "Web search unavailable"),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class ValidationError(SatireFeedError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for SatireFeedError
        """
        context = kwargs.pop("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.pop(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.pop("recoverable", False),
            **kwargs,
        )


class ContentValidationError(SatireFeedError):
    """Content extraction and validation errors."""

    def __init__(self, message: str, source_url: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if source_url:
            context["source_url"] = source_url

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.CONTENT_EXTRACTION_FAILED),
            context=context,
            user_message=kwargs.pop(
                "user_message", f"Content validation failed: {message}"
            ),
            **kwargs,
        )


def is_retryable_error(exception: Exception) -> bool:
    """Check if an error is worth retrying by the caller.

    Args:
        exception: Exception to check

    Returns:
        True if the error is potentially retryable
    """
    if isinstance(exception, AIError):
        return exception.retryable or exception.rate_limited

    if not isinstance(exception, SatireFeedError) or not exception.recoverable:
        return False

    retryable_codes = {
        ErrorCode.FEED_NETWORK_ERROR,
        ErrorCode.FEED_FETCH_TIMEOUT,
        ErrorCode.EXTERNAL_SERVICE_TIMEOUT,
        ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
    }

    return exception.error_code in retryable_codes


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, SatireFeedError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
