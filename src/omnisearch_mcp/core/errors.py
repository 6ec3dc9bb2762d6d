"""Provider error taxonomy.

Every failure that crosses a layer boundary is a ``ProviderError`` carrying
one of four kinds and the name of the provider it is attributed to. Shared
middleware (validation, HTTP classification, polling) always receives the
provider name from its caller so a multi-provider dispatch can tell which
backend failed.

Example usage:
    from omnisearch_mcp.core.errors import ErrorHandler, ErrorKind, ProviderError

    errors = ErrorHandler("tavily")
    try:
        raise errors.invalid_input("Query cannot be empty")
    except ProviderError as exc:
        assert exc.kind is ErrorKind.INVALID_INPUT
        assert exc.provider == "tavily"
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class ErrorKind(str, Enum):
    """Closed set of error kinds shared by all providers."""

    INVALID_INPUT = "invalid_input"  # Caller data failed validation, never retried
    API_ERROR = "api_error"  # 401/403, malformed response, unclassified 4xx, network
    RATE_LIMIT = "rate_limit"  # 429, may carry a reset-time hint
    PROVIDER_ERROR = "provider_error"  # 5xx, upstream job failure or timeout


class ProviderError(Exception):
    """Base exception for all provider failures.

    Attributes are read-only once the error is constructed.

    Attributes:
        kind: Error kind from the closed taxonomy
        message: Human-readable error description
        provider: Name of the provider the error is attributed to
        details: Optional structured payload (e.g. rate-limit reset time)
    """

    default_kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        provider: str,
        details: Optional[Mapping[str, Any]] = None,
        kind: Optional[ErrorKind] = None,
    ):
        self._kind = ErrorKind(kind) if kind is not None else self.default_kind
        self._message = message
        self._provider = provider
        self._details: Mapping[str, Any] = MappingProxyType(dict(details or {}))
        super().__init__(f"[{provider}] {message}")

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def details(self) -> Mapping[str, Any]:
        return self._details

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self._kind.value!r}, "
            f"provider={self._provider!r}, message={self._message!r})"
        )


class InvalidInputError(ProviderError):
    """Caller-supplied data failed validation."""

    default_kind = ErrorKind.INVALID_INPUT


class ApiError(ProviderError):
    """Authentication failure, malformed upstream response, or unclassified 4xx."""

    default_kind = ErrorKind.API_ERROR


class RateLimitError(ProviderError):
    """Upstream returned HTTP 429.

    ``details["reset_time"]`` holds a timezone-aware ``datetime`` when the
    upstream sent a parseable reset header.
    """

    default_kind = ErrorKind.RATE_LIMIT

    @property
    def reset_time(self):
        return self.details.get("reset_time")


class UpstreamProviderError(ProviderError):
    """Upstream 5xx, or an asynchronous job that failed or timed out."""

    default_kind = ErrorKind.PROVIDER_ERROR


def is_retryable(exc: BaseException) -> bool:
    """Return False for validation errors, True for everything else."""
    if isinstance(exc, ProviderError):
        return exc.kind is not ErrorKind.INVALID_INPUT
    return True


class ErrorHandler:
    """Builds taxonomy errors attributed to a single provider.

    Methods return the exception so call sites read ``raise errors.x(...)``.
    """

    def __init__(self, provider: str):
        self.provider = provider

    def invalid_input(
        self, message: str, details: Optional[Mapping[str, Any]] = None
    ) -> InvalidInputError:
        return InvalidInputError(message, self.provider, details)

    def api_error(
        self, message: str, details: Optional[Mapping[str, Any]] = None
    ) -> ApiError:
        return ApiError(message, self.provider, details)

    def rate_limit(
        self, message: str = "Rate limit exceeded", details: Optional[Mapping[str, Any]] = None
    ) -> RateLimitError:
        return RateLimitError(message, self.provider, details)

    def provider_error(
        self, message: str, details: Optional[Mapping[str, Any]] = None
    ) -> UpstreamProviderError:
        return UpstreamProviderError(message, self.provider, details)

    def wrap(self, exc: BaseException, context: str) -> ProviderError:
        """Convert an arbitrary exception into a taxonomy error.

        ``ProviderError`` instances pass through unchanged so their kind and
        original provider attribution survive.
        """
        if isinstance(exc, ProviderError):
            return exc
        message = str(exc) or type(exc).__name__
        return UpstreamProviderError(
            f"Failed to {context}: {message}",
            self.provider,
            {"error_type": type(exc).__name__},
        )


__all__ = [
    "ApiError",
    "ErrorHandler",
    "ErrorKind",
    "InvalidInputError",
    "ProviderError",
    "RateLimitError",
    "UpstreamProviderError",
    "is_retryable",
]
