"""HTTP request execution and response classification.

Two layers:

``execute_request`` performs one network call with an absolute deadline and
turns the response into either an ``HttpResponse`` or a taxonomy error:

    ========================  ==============================================
    status                    outcome
    ========================  ==============================================
    2xx / expected_statuses   success, body parsed as JSON else raw text
    401                       ApiError "Invalid API key"
    403                       ApiError "API key does not have access ..."
    429                       RateLimitError with ``reset_time`` detail
    5xx                       UpstreamProviderError
    other 4xx                 ApiError with the upstream message
    network error / timeout   ApiError
    ========================  ==============================================

``HttpClient`` adds per-verb helpers wrapped in ``retry_with_backoff`` and is
configured by an immutable ``HttpClientConfig``. The ``with_*`` functions
are pure: each returns a new config and never mutates its input.

Example usage:
    client = HttpClient(HttpClientConfig(provider="tavily", base_url=TAVILY_URL))
    client = client.with_auth(api_key, "bearer").with_timeout(10.0)
    response = await client.post("/search", json={"query": "python"})
    response.data  # parsed JSON
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Literal, Mapping, Optional

import httpx

from omnisearch_mcp.core.errors import ApiError, RateLimitError, UpstreamProviderError
from omnisearch_mcp.core.retry import (
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_RETRIES,
    SleepFunc,
    retry_with_backoff,
)
from omnisearch_mcp.core.shared import (
    extract_error_message,
    parse_reset_time,
    redact_headers,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0  # seconds

RESET_HEADERS = ("x-ratelimit-reset", "retry-after")

AuthType = Literal["bearer", "api-key", "custom"]


@dataclass(frozen=True)
class HttpResponse:
    """Classified successful response."""

    status_code: int
    data: Any
    headers: Mapping[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _reset_time_from(headers: httpx.Headers):
    for name in RESET_HEADERS:
        reset = parse_reset_time(headers.get(name))
        if reset is not None:
            return reset
    return None


def classify_response(
    response: httpx.Response,
    provider: str,
    expected_statuses: Iterable[int] = (),
) -> HttpResponse:
    """Map an httpx response to ``HttpResponse`` or raise a taxonomy error."""
    status = response.status_code
    body = _parse_body(response)

    if 200 <= status < 300 or status in expected_statuses:
        return HttpResponse(status_code=status, data=body, headers=dict(response.headers))

    details: dict[str, Any] = {"status_code": status}

    if status == 401:
        raise ApiError("Invalid API key", provider, details)
    if status == 403:
        raise ApiError("API key does not have access to this endpoint", provider, details)
    if status == 429:
        reset_time = _reset_time_from(response.headers)
        if reset_time is not None:
            details["reset_time"] = reset_time
        raise RateLimitError("Rate limit exceeded", provider, details)

    message = extract_error_message(body, response.reason_phrase or f"HTTP {status}")
    if status >= 500:
        raise UpstreamProviderError(f"{provider} API error: {message}", provider, details)
    raise ApiError(message, provider, details)


# ---------------------------------------------------------------------------
# Request executor
# ---------------------------------------------------------------------------


async def execute_request(
    url: str,
    *,
    provider: str,
    method: str = "GET",
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, Any]] = None,
    json: Any = None,
    content: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    expected_statuses: Iterable[int] = (),
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> HttpResponse:
    """Perform one HTTP request and classify the result.

    ``timeout`` is an absolute deadline in seconds for the whole exchange;
    past it the request is cancelled and reported as ``ApiError``.
    """
    logger.debug(
        "%s %s %s headers=%s", provider, method, url, redact_headers(dict(headers or {}))
    )

    async def make_request() -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            return await client.request(
                method,
                url,
                headers=dict(headers or {}),
                params=dict(params) if params else None,
                json=json,
                content=content,
            )

    try:
        response = await asyncio.wait_for(make_request(), timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise ApiError(
            f"Request timeout after {timeout:g}s", provider, {"timeout": timeout}
        ) from e
    except httpx.RequestError as e:
        raise ApiError(f"Network error: {e}", provider) from e

    return classify_response(response, provider, expected_statuses)


# ---------------------------------------------------------------------------
# Client configuration and pure builders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HttpClientConfig:
    """Immutable configuration for ``HttpClient``.

    Attributes:
        provider: Provider name errors are attributed to
        base_url: Prefix for relative request paths
        timeout: Per-request deadline in seconds
        max_retries: Retries per verb call (0 disables retry)
        initial_delay: First backoff delay in seconds
        headers: Headers sent with every request
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        sleep_func: Optional sleep used between retries
    """

    provider: str
    base_url: str = ""
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY
    headers: Mapping[str, str] = field(default_factory=dict)
    transport: Optional[httpx.AsyncBaseTransport] = None
    sleep_func: Optional[SleepFunc] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


def with_auth(
    config: HttpClientConfig, api_key: str, auth_type: AuthType = "bearer"
) -> HttpClientConfig:
    """Return a config with authentication headers for ``auth_type``.

    ``custom`` auth leaves headers untouched; the caller supplies them via
    ``with_headers``.
    """
    if auth_type == "bearer":
        return with_headers(config, {"Authorization": f"Bearer {api_key}"})
    if auth_type == "api-key":
        return with_headers(config, {"X-API-Key": api_key})
    return config


def with_headers(config: HttpClientConfig, headers: Mapping[str, str]) -> HttpClientConfig:
    return replace(config, headers={**config.headers, **headers})


def with_timeout(config: HttpClientConfig, timeout: float) -> HttpClientConfig:
    return replace(config, timeout=timeout)


def with_retry(
    config: HttpClientConfig, max_retries: int, initial_delay: Optional[float] = None
) -> HttpClientConfig:
    return replace(
        config,
        max_retries=max_retries,
        initial_delay=config.initial_delay if initial_delay is None else initial_delay,
    )


def with_transport(
    config: HttpClientConfig, transport: Optional[httpx.AsyncBaseTransport]
) -> HttpClientConfig:
    return replace(config, transport=transport)


def join_url(base_url: str, path: str) -> str:
    """Join ``path`` onto ``base_url``; absolute URLs pass through."""
    if path.startswith(("http://", "https://")):
        return path
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class HttpClient:
    """Per-verb HTTP helpers over an immutable ``HttpClientConfig``.

    Builder methods return a new client; the receiver is never changed, so
    one client can be shared by concurrent calls.
    """

    def __init__(self, config: HttpClientConfig):
        self.config = config

    @property
    def provider(self) -> str:
        return self.config.provider

    def with_auth(self, api_key: str, auth_type: AuthType = "bearer") -> "HttpClient":
        return HttpClient(with_auth(self.config, api_key, auth_type))

    def with_headers(self, headers: Mapping[str, str]) -> "HttpClient":
        return HttpClient(with_headers(self.config, headers))

    def with_timeout(self, timeout: float) -> "HttpClient":
        return HttpClient(with_timeout(self.config, timeout))

    def with_retry(
        self, max_retries: int, initial_delay: Optional[float] = None
    ) -> "HttpClient":
        return HttpClient(with_retry(self.config, max_retries, initial_delay))

    def with_transport(self, transport: Optional[httpx.AsyncBaseTransport]) -> "HttpClient":
        return HttpClient(with_transport(self.config, transport))

    async def request(
        self,
        method: str,
        path: str = "",
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        expected_statuses: Iterable[int] = (),
    ) -> HttpResponse:
        cfg = self.config
        url = join_url(cfg.base_url, path)
        merged_headers = {**cfg.headers, **(headers or {})}
        statuses = tuple(expected_statuses)

        async def send() -> HttpResponse:
            return await execute_request(
                url,
                provider=cfg.provider,
                method=method,
                headers=merged_headers,
                params=params,
                json=json,
                timeout=timeout if timeout is not None else cfg.timeout,
                expected_statuses=statuses,
                transport=cfg.transport,
            )

        return await retry_with_backoff(
            send,
            cfg.max_retries,
            cfg.initial_delay,
            sleep_func=cfg.sleep_func,
            label=f"{cfg.provider} {method} {url}",
        )

    async def get(self, path: str = "", **kwargs: Any) -> HttpResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str = "", json: Any = None, **kwargs: Any) -> HttpResponse:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str = "", json: Any = None, **kwargs: Any) -> HttpResponse:
        return await self.request("PUT", path, json=json, **kwargs)

    async def patch(self, path: str = "", json: Any = None, **kwargs: Any) -> HttpResponse:
        return await self.request("PATCH", path, json=json, **kwargs)

    async def delete(self, path: str = "", **kwargs: Any) -> HttpResponse:
        return await self.request("DELETE", path, **kwargs)


__all__ = [
    "AuthType",
    "HttpClient",
    "HttpClientConfig",
    "HttpResponse",
    "classify_response",
    "execute_request",
    "join_url",
    "with_auth",
    "with_headers",
    "with_retry",
    "with_timeout",
    "with_transport",
]
