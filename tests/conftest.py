"""Shared test fixtures and factories.

Provides provider config factories, MockTransport handlers that answer with
canned JSON, and a sleep replacement that records requested delays so retry
and polling tests run instantly.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

from omnisearch_mcp.core.models import ProviderConfig

# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_provider_config(**overrides: Any) -> ProviderConfig:
    """Build a ProviderConfig with a test key and a fake base URL."""
    values: Dict[str, Any] = {
        "api_key": "test-api-key-123",
        "base_url": "https://api.example.test",
        "timeout": 5.0,
        "max_retries": 0,
        "retry_delay": 0.01,
    }
    values.update(overrides)
    return ProviderConfig(**values)


Responder = Union[Any, Callable[[httpx.Request], httpx.Response]]


def json_handler(
    body: Any = None,
    status_code: int = 200,
    *,
    headers: Optional[Dict[str, str]] = None,
    requests: Optional[List[httpx.Request]] = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Return a MockTransport handler that always answers with ``body``.

    Requests are appended to ``requests`` when a list is supplied.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, json=body, headers=headers)

    return handler


def routed_handler(
    routes: Dict[str, Responder],
    *,
    requests: Optional[List[httpx.Request]] = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """MockTransport handler choosing a response by URL path.

    Values are either a JSON body (answered with 200) or a callable taking
    the request and returning an ``httpx.Response``. Unknown paths get 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    return handler


def sequence_handler(
    responses: List[httpx.Response],
    *,
    requests: Optional[List[httpx.Request]] = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Answer successive requests with ``responses``; the last one repeats."""
    remaining = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if len(remaining) > 1:
            return remaining.pop(0)
        last = remaining[0]
        return httpx.Response(last.status_code, content=last.content, headers=last.headers)

    return handler


def mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


def request_json(request: httpx.Request) -> Any:
    """Decode the JSON body of a captured request."""
    return json.loads(request.content.decode() or "null")


class RecordingSleep:
    """Async sleep stand-in that records delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def provider_config() -> ProviderConfig:
    return make_provider_config()
