"""Abstract base classes for providers.

Every concrete provider wraps exactly one upstream API and inherits from one
of three skeletons:

- ``SearchProvider``: ``search(params) -> list[SearchResult]``
- ``ProcessingProvider``: ``process_content(url, extract_depth) -> ProcessingResult``
- ``EnhancementProvider``: ``enhance_content(content) -> EnhancementResult``

The shared ``BaseProvider`` validates the ``ProviderConfig`` once, builds one
``HttpClient`` with authentication pre-applied, and binds an ``ErrorHandler``
to the provider name. Subclasses only build request bodies and map
responses; they never reimplement validation, retry or HTTP classification.

Capabilities are declared, not probed: a provider lists what it supports in
``capabilities`` and routers check the set when they are constructed.

Example usage:
    class BraveSearchProvider(SearchProvider):
        name = "brave"
        description = "Privacy-focused web search"
        capabilities = frozenset([Capability.WEB_SEARCH])

        async def search(self, params):
            validated = self.validate_search_params(params)
            ...
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Literal, Mapping, Optional, Sequence, TypeVar, Union

import httpx

from omnisearch_mcp.core.errors import ErrorHandler, ProviderError, is_retryable
from omnisearch_mcp.core.http import HttpClient, HttpClientConfig, with_auth
from omnisearch_mcp.core.models import (
    DEFAULT_EXTRACT_DEPTH,
    ExtractDepth,
    ProcessingResult,
    ProviderConfig,
    RawContent,
    SearchParams,
    SearchResult,
    VALID_EXTRACT_DEPTHS,
)
from omnisearch_mcp.core.operators import (
    OperatorFilters,
    ParsedQuery,
    apply_search_operators,
    build_query_with_operators,
    parse_search_operators,
)
from omnisearch_mcp.core.polling import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_STATUS_TIMEOUT,
    PollingConfig,
    PollOutcome,
    interpret_job_status,
    poll,
    poll_job,
)
from omnisearch_mcp.core.retry import SleepFunc, retry_with_backoff
from omnisearch_mcp.core.shared import count_words
from omnisearch_mcp.core.validation import (
    UrlValidationOptions,
    validate_api_key,
    validate_enum,
    validate_limit,
    validate_query,
    validate_string_array,
    validate_url_input,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_DOMAINS = 10
MAX_DOMAIN_LENGTH = 100
NO_CONTENT = "No content available"

_METADATA_FIELDS = (
    "id",
    "author",
    "publishedDate",
    "published_date",
    "highlights",
    "summary",
    "domain",
    "language",
    "type",
)


class Capability(str, Enum):
    """Operations a provider declares it supports."""

    WEB_SEARCH = "web_search"
    AI_RESPONSE = "ai_response"
    CODE_SEARCH = "code_search"
    REPOSITORY_SEARCH = "repository_search"
    USER_SEARCH = "user_search"
    PROCESSING = "processing"
    ENHANCEMENT = "enhancement"


# ---------------------------------------------------------------------------
# Shared skeleton
# ---------------------------------------------------------------------------


class BaseProvider(ABC):
    """Common construction for all providers.

    Args:
        config: Resolved provider configuration.
        transport: Optional httpx transport shared by every request.
        sleep_func: Optional sleep used by retries and polling.
    """

    name: str = ""
    description: str = ""
    capabilities: frozenset[Capability] = frozenset()

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep_func: Optional[SleepFunc] = None,
    ):
        if not self.name:
            raise TypeError(f"{type(self).__name__} must define a provider name")
        self.errors = ErrorHandler(self.name)
        api_key = validate_api_key(config.api_key, self.name)
        if not config.base_url:
            raise self.errors.invalid_input(f"Base URL is required for {self.name}")

        self.config = replace(config, api_key=api_key)
        self._transport = transport
        self._sleep = sleep_func
        self.http_client = self._build_http_client()

    def _build_http_client(self) -> HttpClient:
        headers = dict(self.config.custom_headers)
        if self.config.auth_type == "custom":
            headers = {**self.custom_auth_headers(self.config.api_key), **headers}
        # execute_with_retry owns the retry budget, so the client never retries
        client_config = HttpClientConfig(
            provider=self.name,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=0,
            headers=headers,
            transport=self._transport,
            sleep_func=self._sleep,
        )
        return HttpClient(with_auth(client_config, self.config.api_key, self.config.auth_type))

    def custom_auth_headers(self, api_key: str) -> Mapping[str, str]:
        """Headers used when ``auth_type`` is ``custom``."""
        return {}

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
    ) -> T:
        """Run ``operation`` under the provider's retry budget.

        Validation errors are not retried.
        """
        return await retry_with_backoff(
            operation,
            self.config.max_retries if max_retries is None else max_retries,
            self.config.retry_delay,
            should_retry=is_retryable,
            sleep_func=self._sleep,
            label=self.name,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# ---------------------------------------------------------------------------
# Auth schemes
# ---------------------------------------------------------------------------


class BotKeyAuth:
    """Mixin for Kagi's ``Authorization: Bot <key>`` scheme."""

    def custom_auth_headers(self, api_key: str) -> Mapping[str, str]:
        return {"Authorization": f"Bot {api_key}", "Accept": "application/json"}


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class SearchProvider(BaseProvider):
    """Skeleton for web, code and AI-answer search providers."""

    default_limit: int = 10

    @abstractmethod
    async def search(
        self, params: Union[SearchParams, Mapping[str, Any]]
    ) -> list[SearchResult]:
        """Execute a search and return results in provider order."""

    def validate_search_params(
        self, params: Union[SearchParams, Mapping[str, Any]]
    ) -> SearchParams:
        """Validate and normalize query, limit and domain lists."""
        if isinstance(params, SearchParams):
            raw: Mapping[str, Any] = {
                "query": params.query,
                "limit": params.limit,
                "include_domains": params.include_domains,
                "exclude_domains": params.exclude_domains,
            }
        elif isinstance(params, Mapping):
            raw = params
        else:
            raise self.errors.invalid_input("Search parameters must be a mapping")

        return SearchParams(
            query=validate_query(raw.get("query"), self.name),
            limit=validate_limit(raw.get("limit"), self.name),
            include_domains=validate_string_array(
                raw.get("include_domains"),
                "include_domains",
                self.name,
                max_items=MAX_DOMAINS,
                max_item_length=MAX_DOMAIN_LENGTH,
            ),
            exclude_domains=validate_string_array(
                raw.get("exclude_domains"),
                "exclude_domains",
                self.name,
                max_items=MAX_DOMAINS,
                max_item_length=MAX_DOMAIN_LENGTH,
            ),
        )

    def parse_query_operators(self, query: str) -> tuple[ParsedQuery, OperatorFilters]:
        """Split ``query`` into its base query and structured operator filters."""
        parsed = parse_search_operators(query)
        return parsed, apply_search_operators(parsed)

    def build_domain_filters(
        self,
        params: SearchParams,
        filters: Optional[OperatorFilters] = None,
        format: Literal["query", "array"] = "query",
    ) -> dict[str, Any]:
        """Merge explicit and operator domain lists.

        ``format="query"`` returns ``include_filter`` / ``exclude_filter``
        strings (``site:a OR site:b`` and ``-site:x -site:y``);
        ``format="array"`` returns ``include_domains`` / ``exclude_domains``
        lists. Absent sides are ``None``.
        """
        include = _merge_unique(
            params.include_domains or [], filters.include_domains if filters else []
        )
        exclude = _merge_unique(
            params.exclude_domains or [], filters.exclude_domains if filters else []
        )

        if format == "array":
            return {
                "include_domains": include or None,
                "exclude_domains": exclude or None,
            }
        return {
            "include_filter": " OR ".join(f"site:{d}" for d in include) or None,
            "exclude_filter": " ".join(f"-site:{d}" for d in exclude) or None,
        }

    def compose_query(
        self,
        params: SearchParams,
        parsed: ParsedQuery,
        filters: OperatorFilters,
        **flags: bool,
    ) -> str:
        """Rebuild the query with operators and domain filters inline.

        ``flags`` are passed to ``build_query_with_operators`` so a provider
        can keep operators it maps to request parameters out of the query.
        """
        domains = self.build_domain_filters(params, filters, format="query")
        query = build_query_with_operators(
            parsed.base_query, filters, include_domains=False, exclude_domains=False, **flags
        )
        parts = [query, domains["include_filter"], domains["exclude_filter"]]
        return " ".join(p for p in parts if p)

    def format_search_result(
        self, item: Mapping[str, Any], mapping: Optional[Mapping[str, str]] = None
    ) -> SearchResult:
        """Build a ``SearchResult`` from a raw item using optional field renames."""
        keys = {"title": "title", "url": "url", "snippet": "snippet", "score": "score"}
        keys.update(mapping or {})
        score = item.get(keys["score"])
        return SearchResult(
            title=item.get(keys["title"]) or "No title",
            url=item.get(keys["url"]) or "",
            snippet=item.get(keys["snippet"]) or "No description available",
            score=float(score) if score is not None else None,
            source_provider=self.name,
            metadata=self.extract_metadata(item),
        )

    def extract_metadata(self, item: Mapping[str, Any]) -> dict[str, Any]:
        return {key: item[key] for key in _METADATA_FIELDS if item.get(key) is not None}

    def effective_limit(self, params: SearchParams) -> int:
        return params.limit if params.limit is not None else self.default_limit


def _merge_unique(*groups: Sequence[str]) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for domain in group:
            seen.setdefault(domain, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProcessingOptions:
    """Input policy for a processing provider."""

    max_urls: int = 10
    allow_single_url: bool = True
    allow_multiple_urls: bool = True
    url_validation: UrlValidationOptions = field(default_factory=UrlValidationOptions)


@dataclass(frozen=True)
class ContentItem:
    """Content extracted from one source, before aggregation."""

    url: str
    content: str
    title: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregatedContent:
    combined_content: str
    raw_contents: list[RawContent]
    total_word_count: int


@dataclass(frozen=True)
class UrlOutcome:
    """Per-URL result of a concurrent fan-out; exactly one of item/error is set."""

    url: str
    item: Optional[ContentItem] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.item is not None


class ProcessingProvider(BaseProvider):
    """Skeleton for URL extraction, crawling and summarization providers."""

    options: ProcessingOptions = ProcessingOptions()
    capabilities = frozenset([Capability.PROCESSING])

    @abstractmethod
    async def process_content(
        self,
        url: Union[str, Sequence[str]],
        extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH,
    ) -> ProcessingResult:
        """Process one or more URLs into a ``ProcessingResult``."""

    def validate_input(
        self,
        url: Union[str, Sequence[str], None],
        extract_depth: Optional[str] = DEFAULT_EXTRACT_DEPTH,
    ) -> tuple[list[str], ExtractDepth]:
        """Coerce ``url`` to a list and enforce the provider's URL policy.

        Returns:
            The validated URL list and extract depth (default ``basic``).
        """
        if url is None or (not isinstance(url, str) and not isinstance(url, Sequence)):
            raise self.errors.invalid_input("At least one URL is required")

        urls = [url] if isinstance(url, str) else list(url)
        opts = self.options
        if not urls:
            raise self.errors.invalid_input("At least one URL is required")
        if len(urls) == 1 and not opts.allow_single_url:
            raise self.errors.invalid_input(f"{self.name} requires multiple URLs")
        if len(urls) > 1 and not opts.allow_multiple_urls:
            raise self.errors.invalid_input(f"{self.name} accepts only a single URL")
        if len(urls) > opts.max_urls:
            raise self.errors.invalid_input(
                f"Too many URLs: {len(urls)}. Maximum is {opts.max_urls}"
            )

        validate_url_input(urls, self.name, opts.url_validation)
        return urls, self.validate_depth(extract_depth)

    def validate_depth(self, extract_depth: Optional[str]) -> ExtractDepth:
        depth = validate_enum(
            extract_depth if extract_depth is not None else DEFAULT_EXTRACT_DEPTH,
            sorted(VALID_EXTRACT_DEPTHS),
            "extract_depth",
            self.name,
        )
        return depth  # type: ignore[return-value]

    def aggregate_content(
        self, results: Sequence[ContentItem], include_separators: bool = True
    ) -> AggregatedContent:
        """Combine per-source content into one document.

        Each section carries an optional title, the URL and its word count;
        sections are separated by ``---`` when there is more than one.
        """
        sections: list[str] = []
        raw_contents: list[RawContent] = []
        total_word_count = 0

        for result in results:
            content = result.content or NO_CONTENT
            word_count = count_words(content)
            total_word_count += word_count

            header = f"# {result.title}\n\n" if result.title else ""
            section = f"{header}**URL:** {result.url}\n**Word Count:** {word_count}\n\n{content}"
            if include_separators and len(results) > 1:
                section += "\n\n---\n\n"
            sections.append(section)
            raw_contents.append(RawContent(url=result.url, content=content))

        return AggregatedContent(
            combined_content="".join(sections),
            raw_contents=raw_contents,
            total_word_count=total_word_count,
        )

    def calculate_metadata(
        self, urls: Sequence[str], extract_depth: ExtractDepth, **additional: Any
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "urls_processed": len(urls),
            "extract_depth": extract_depth,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        }
        metadata.update(additional)
        return metadata

    def build_result(
        self,
        items: Sequence[ContentItem],
        urls: Sequence[str],
        extract_depth: ExtractDepth,
        **additional: Any,
    ) -> ProcessingResult:
        """Aggregate ``items`` and wrap them with metadata."""
        aggregated = self.aggregate_content(items)
        additional.setdefault("word_count", aggregated.total_word_count)
        additional.setdefault("successful_extractions", len(items))
        if len(items) == 1 and items[0].title:
            additional.setdefault("title", items[0].title)
        return ProcessingResult(
            content=aggregated.combined_content,
            raw_contents=aggregated.raw_contents,
            metadata=self.calculate_metadata(urls, extract_depth, **additional),
            source_provider=self.name,
        )

    async def fetch_each(
        self,
        urls: Sequence[str],
        fetch_one: Callable[[str], Awaitable[ContentItem]],
    ) -> list[UrlOutcome]:
        """Fetch every URL concurrently, each under the retry budget.

        Outcomes are returned in input order regardless of completion order.
        """

        async def attempt(url: str) -> ContentItem:
            return await self.execute_with_retry(lambda: fetch_one(url))

        gathered = await asyncio.gather(*(attempt(u) for u in urls), return_exceptions=True)

        outcomes: list[UrlOutcome] = []
        for url, result in zip(urls, gathered):
            if isinstance(result, ContentItem):
                outcomes.append(UrlOutcome(url=url, item=result))
            elif isinstance(result, Exception):
                logger.warning("%s failed to process %s: %s", self.name, url, result)
                outcomes.append(UrlOutcome(url=url, error=self.errors.wrap(result, f"process {url}")))
            else:
                raise result  # type: ignore[misc]
        return outcomes

    def aggregate_url_results(
        self,
        outcomes: Sequence[UrlOutcome],
        urls: Sequence[str],
        extract_depth: ExtractDepth,
        **additional: Any,
    ) -> ProcessingResult:
        """Failure-tolerant aggregation over per-URL outcomes.

        Failed URLs are listed in ``metadata.failed_urls``.

        Raises:
            UpstreamProviderError: Every URL failed.
        """
        successes = [o.item for o in outcomes if o.item is not None]
        failures = [o for o in outcomes if o.item is None]

        if not successes:
            raise self.errors.provider_error(
                "Failed to process all URLs",
                {"errors": {o.url: o.error.message if o.error else "unknown" for o in failures}},
            )
        if failures:
            additional["failed_urls"] = [o.url for o in failures]
        return self.build_result(successes, urls, extract_depth, **additional)

    async def poll_for_completion(
        self,
        status_check: Callable[[], Awaitable[PollOutcome]],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> Any:
        return await poll(
            status_check,
            max_attempts,
            poll_interval,
            provider=self.name,
            sleep_func=self._sleep,
        )

    async def poll_job_status(
        self,
        status_url: str,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_STATUS_TIMEOUT,
        interpret: Callable[[Any], PollOutcome] = interpret_job_status,
    ) -> Any:
        """Poll a bearer-authenticated status endpoint for this provider."""
        config = PollingConfig(
            provider_name=self.name,
            status_url=status_url,
            api_key=self.config.api_key,
            max_attempts=max_attempts,
            poll_interval=poll_interval,
            timeout=timeout,
        )
        return await poll_job(
            config, interpret=interpret, transport=self._transport, sleep_func=self._sleep
        )


# ---------------------------------------------------------------------------
# Enhancement
# ---------------------------------------------------------------------------


class EnhancementProvider(BaseProvider):
    """Skeleton for fact-checking and enrichment providers."""

    capabilities = frozenset([Capability.ENHANCEMENT])
    max_content_length: int = 10_000

    @abstractmethod
    async def enhance_content(self, content: str) -> Any:
        """Return an ``EnhancementResult`` for ``content``."""

    def validate_content(self, content: Any) -> str:
        if not isinstance(content, str) or not content.strip():
            raise self.errors.invalid_input("Content must be a non-empty string")
        if len(content) > self.max_content_length:
            raise self.errors.invalid_input(
                f"Content cannot exceed {self.max_content_length} characters"
            )
        return content.strip()


__all__ = [
    "AggregatedContent",
    "BaseProvider",
    "BotKeyAuth",
    "Capability",
    "ContentItem",
    "EnhancementProvider",
    "ProcessingOptions",
    "ProcessingProvider",
    "SearchProvider",
    "UrlOutcome",
]
