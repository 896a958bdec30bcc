"""Provider error taxonomy.

WHY SEPARATE ERROR CLASSES:
- Callers can tell a bad document apart from a provider outage
- Adapters map SDK exceptions to these, so services stay provider-agnostic
"""


__all__ = [
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ContentFilterError",
    "ContextLengthError",
    "TransientError",
]


class ProviderError(Exception):
    """Base class for all provider errors.

    Catch this to handle any AI provider failure with a single handler.
    """

    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded."""

    def __init__(self, message: str, retry_after_seconds: float | None = None):
        """Initialize RateLimitError.

        Args:
            message: Error description from the provider.
            retry_after_seconds: Optional hint from provider on when to retry.
        """
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(ProviderError):
    """Invalid or expired API key. Needs operator intervention, not a retry."""

    pass


class ContentFilterError(ProviderError):
    """Document or prompt blocked by the provider's safety filter."""

    pass


class ContextLengthError(ProviderError):
    """Input exceeded the model's context window.

    Common with long multi-page CVs; the caller should truncate, not retry.
    """

    pass


class TransientError(ProviderError):
    """Temporary failure (network, server overload).

    Includes connection errors, timeouts and 5xx responses.
    """

    pass
