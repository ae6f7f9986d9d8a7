"""Error codes and exception taxonomy for Smart Summary."""
import json
from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Normalized error codes for Smart Summary.

    Used in exceptions, structured logs, and metrics labels.
    """
    # Setup errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Upstream errors (from LLM providers)
    RATE_LIMITED = "RATE_LIMITED"  # 429 from upstream
    PROVIDER_ERROR = "PROVIDER_ERROR"  # Any other upstream status
    NETWORK_ERROR = "NETWORK_ERROR"  # Network/timeout/unclassified

    # Record store errors
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

    # Transport errors
    STREAM_TIMEOUT = "STREAM_TIMEOUT"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @classmethod
    def from_http_status(cls, status_code: Optional[int]) -> "ErrorCode":
        """Map upstream HTTP status code to error code."""
        if status_code is None:
            return cls.NETWORK_ERROR
        if status_code == 429:
            return cls.RATE_LIMITED
        if status_code >= 400:
            return cls.PROVIDER_ERROR
        return cls.INTERNAL_ERROR


class SummaryError(Exception):
    """Base class for all Smart Summary failures."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(SummaryError):
    """No LLM provider is usable."""

    code = ErrorCode.CONFIGURATION_ERROR


class LLMServiceError(SummaryError):
    """Generic upstream provider failure.

    Raised for non-success statuses other than 429, malformed bodies and
    network failures. Triggers fallback when raised by the primary provider.
    """

    code = ErrorCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        api_error: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.api_error = api_error
        self.code = ErrorCode.from_http_status(status_code)


class LLMRateLimitError(LLMServiceError):
    """Upstream returned 429. Never triggers fallback."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        api_error: Any = None,
    ):
        super().__init__(message, status_code=429, api_error=api_error)
        self.retry_after = retry_after


class PersistenceError(SummaryError):
    """Record store create/update failed."""

    code = ErrorCode.PERSISTENCE_ERROR


def error_message(error: Any) -> str:
    """Extract a human-readable message from any failure shape.

    Exceptions expose their message, plain strings are used as-is and
    anything else is serialized.
    """
    if isinstance(error, SummaryError):
        return error.message
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, str):
        return error
    try:
        return json.dumps(error)
    except (TypeError, ValueError):
        return repr(error)
