"""Value objects shared by providers, routers and the tool layer.

All result types are frozen dataclasses created per request. ``to_dict``
produces the JSON-safe shape returned to tool callers.
"""

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional

from omnisearch_mcp.core.http import AuthType

ExtractDepth = Literal["basic", "advanced"]
VALID_EXTRACT_DEPTHS = frozenset(["basic", "advanced"])
DEFAULT_EXTRACT_DEPTH: ExtractDepth = "basic"


@dataclass(frozen=True)
class ProviderConfig:
    """Resolved per-provider configuration, immutable for the provider's lifetime.

    Attributes:
        api_key: Credential for the upstream API
        base_url: Endpoint prefix for requests
        timeout: Per-request deadline in seconds
        max_retries: Retry budget used by ``execute_with_retry``
        auth_type: How ``api_key`` is attached (bearer, api-key or custom)
        custom_headers: Extra headers sent with every request
        retry_delay: Initial backoff delay in seconds
    """

    api_key: str
    base_url: str
    timeout: float = 30.0
    max_retries: int = 3
    auth_type: AuthType = "bearer"
    custom_headers: Mapping[str, str] = field(default_factory=dict)
    retry_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be non-negative, got {self.retry_delay}")
        object.__setattr__(self, "custom_headers", MappingProxyType(dict(self.custom_headers)))

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(base_url={self.base_url!r}, timeout={self.timeout}, "
            f"max_retries={self.max_retries}, auth_type={self.auth_type!r})"
        )


@dataclass(frozen=True)
class SearchParams:
    """Validated search request parameters."""

    query: str
    limit: Optional[int] = None
    include_domains: Optional[list[str]] = None
    exclude_domains: Optional[list[str]] = None


@dataclass(frozen=True)
class SearchResult:
    """Normalized search result from any provider.

    Ordering within a result list is the provider's (relevance or position)
    and is never re-sorted.

    Attributes:
        title: Title or headline of the result
        url: URL of the result ('' for synthesized AI answers)
        snippet: Brief excerpt, description or answer text
        source_provider: Name of the provider that produced the result
        score: Relevance score if the provider supplies or implies one
        metadata: Additional provider-specific fields
    """

    title: str
    url: str
    snippet: str
    source_provider: str
    score: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RawContent:
    url: str
    content: str


@dataclass(frozen=True)
class ProcessingResult:
    """Combined output of a processing provider.

    ``raw_contents`` keeps per-source attribution in input order and never
    holds more entries than there were input URLs.
    """

    content: str
    raw_contents: list[RawContent]
    metadata: dict[str, Any]
    source_provider: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Enhancement:
    type: str
    description: str


@dataclass(frozen=True)
class Source:
    title: str
    url: str


@dataclass(frozen=True)
class EnhancementResult:
    original_content: str
    enhanced_content: str
    enhancements: list[Enhancement]
    source_provider: str
    sources: Optional[list[Source]] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = [
    "DEFAULT_EXTRACT_DEPTH",
    "Enhancement",
    "EnhancementResult",
    "ExtractDepth",
    "ProcessingResult",
    "ProviderConfig",
    "RawContent",
    "SearchParams",
    "SearchResult",
    "Source",
    "VALID_EXTRACT_DEPTHS",
]
