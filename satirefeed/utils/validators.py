"""
SatireFeed Input Validators
===========================

URL checks for feed addresses and article links. Only plain web pages are
accepted; everything else is rejected before any request goes out.
"""

from urllib.parse import urlsplit, urlunsplit

from .exceptions import ErrorCode, ValidationError


class URLValidator:
    """Validation and normalization of feed and article URLs."""

    ALLOWED_SCHEMES = ("http", "https")

    # Schemes that can hide inside an otherwise valid http URL
    EMBEDDED_SCHEMES = ("javascript:", "data:", "file:", "vbscript:")

    @classmethod
    def validate_url(cls, url: str, field_name: str = "url") -> str:
        """Validate a URL and return its normalized form.

        Scheme and host are lower-cased, an empty path becomes ``/`` and the
        fragment is dropped, so the same article always yields the same link.

        Args:
            url: URL to check
            field_name: Field name reported in the error

        Returns:
            Normalized URL

        Raises:
            ValidationError: If the URL is missing, malformed or not http(s)
        """
        if not isinstance(url, str) or not url.strip():
            raise ValidationError(
                "URL is required",
                field_name=field_name,
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
            )

        url = url.strip()
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise ValidationError(f"Malformed URL: {e}", field_name=field_name) from e

        scheme = parts.scheme.lower()
        if scheme not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"Unsupported URL scheme '{parts.scheme or '(none)'}', expected http or https",
                field_name=field_name,
            )
        if not parts.hostname:
            raise ValidationError("URL has no host name", field_name=field_name)

        lowered = url.lower()
        if any(embedded in lowered for embedded in cls.EMBEDDED_SCHEMES):
            raise ValidationError("URL contains an embedded script or data scheme", field_name=field_name)

        return urlunsplit((scheme, parts.netloc.lower(), parts.path or "/", parts.query, ""))

