"""Tests for the HTTP request layer.

Tests cover:
1. Status classification (2xx, 401, 403, 429, 5xx, other 4xx)
2. Rate-limit reset-time headers
3. Network errors and timeouts
4. Pure config builders and URL joining
5. HttpClient verbs, header merging and per-verb retry
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from conftest import RecordingSleep, json_handler, request_json, sequence_handler
from omnisearch_mcp.core.errors import (
    ApiError,
    ErrorKind,
    RateLimitError,
    UpstreamProviderError,
)
from omnisearch_mcp.core.http import (
    HttpClient,
    HttpClientConfig,
    execute_request,
    join_url,
    with_auth,
    with_headers,
    with_retry,
    with_timeout,
)

URL = "https://api.example.test/search"


async def _execute(handler, **kwargs):
    return await execute_request(
        URL, provider="tavily", transport=httpx.MockTransport(handler), **kwargs
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestExecuteRequest:
    """Tests for single-request classification."""

    @pytest.mark.asyncio
    async def test_success_parses_json(self):
        response = await _execute(json_handler({"results": [1, 2]}))
        assert response.status_code == 200
        assert response.data == {"results": [1, 2]}

    @pytest.mark.asyncio
    async def test_success_falls_back_to_text(self):
        def handler(request):
            return httpx.Response(200, text="plain body")

        response = await _execute(handler)
        assert response.data == "plain body"

    @pytest.mark.asyncio
    async def test_sends_method_params_and_json(self):
        captured = []
        await _execute(
            json_handler({}, requests=captured),
            method="POST",
            params={"q": "python"},
            json={"query": "python"},
        )

        request = captured[0]
        assert request.method == "POST"
        assert request.url.params["q"] == "python"
        assert request_json(request) == {"query": "python"}

    @pytest.mark.asyncio
    async def test_401_is_invalid_key(self):
        with pytest.raises(ApiError) as exc_info:
            await _execute(json_handler({"error": "nope"}, 401))
        assert exc_info.value.message == "Invalid API key"
        assert exc_info.value.details["status_code"] == 401

    @pytest.mark.asyncio
    async def test_403_is_forbidden(self):
        with pytest.raises(ApiError, match="does not have access"):
            await _execute(json_handler({}, 403))

    @pytest.mark.asyncio
    async def test_429_without_reset_header(self):
        with pytest.raises(RateLimitError) as exc_info:
            await _execute(json_handler({}, 429))
        assert exc_info.value.reset_time is None

    @pytest.mark.asyncio
    async def test_429_epoch_reset_header(self):
        handler = json_handler({}, 429, headers={"x-ratelimit-reset": "1700000000"})
        with pytest.raises(RateLimitError) as exc_info:
            await _execute(handler)
        assert exc_info.value.reset_time == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    @pytest.mark.asyncio
    async def test_429_retry_after_seconds(self):
        before = datetime.now(timezone.utc)
        handler = json_handler({}, 429, headers={"retry-after": "30"})
        with pytest.raises(RateLimitError) as exc_info:
            await _execute(handler)

        delta = (exc_info.value.reset_time - before).total_seconds()
        assert 29 <= delta <= 60

    @pytest.mark.asyncio
    async def test_5xx_is_provider_error(self):
        with pytest.raises(UpstreamProviderError) as exc_info:
            await _execute(json_handler({"message": "overloaded"}, 503))

        err = exc_info.value
        assert err.kind is ErrorKind.PROVIDER_ERROR
        assert "overloaded" in err.message
        assert err.details["status_code"] == 503

    @pytest.mark.asyncio
    async def test_other_4xx_uses_upstream_message(self):
        with pytest.raises(ApiError) as exc_info:
            await _execute(json_handler({"error": {"message": "bad query syntax"}}, 422))

        assert exc_info.value.message == "bad query syntax"
        assert exc_info.value.details["status_code"] == 422

    @pytest.mark.asyncio
    async def test_error_message_redacts_secrets(self):
        body = {"message": "invalid api_key=sk-supersecret123"}
        with pytest.raises(ApiError) as exc_info:
            await _execute(json_handler(body, 400))
        assert "sk-supersecret123" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_expected_status_is_success(self):
        response = await _execute(json_handler({"partial": True}, 404), expected_statuses=(404,))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_network_error_is_api_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ApiError, match="Network error"):
            await _execute(handler)

    @pytest.mark.asyncio
    async def test_deadline_is_api_error(self):
        async def slow(request):
            await asyncio.sleep(1.0)
            return httpx.Response(200, json={})

        with pytest.raises(ApiError) as exc_info:
            await execute_request(
                URL, provider="tavily", timeout=0.05, transport=httpx.MockTransport(slow)
            )
        assert "timeout" in exc_info.value.message.lower()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


class TestBuilders:
    """Tests for pure config builders."""

    def test_with_auth_bearer(self):
        base = HttpClientConfig(provider="tavily")
        cfg = with_auth(base, "key", "bearer")
        assert cfg.headers["Authorization"] == "Bearer key"
        assert "Authorization" not in base.headers

    def test_with_auth_api_key(self):
        cfg = with_auth(HttpClientConfig(provider="exa"), "key", "api-key")
        assert cfg.headers["X-API-Key"] == "key"

    def test_with_auth_custom_leaves_headers(self):
        base = HttpClientConfig(provider="brave", headers={"Accept": "application/json"})
        assert with_auth(base, "key", "custom").headers == base.headers

    def test_with_headers_merges(self):
        base = HttpClientConfig(provider="x", headers={"A": "1", "B": "2"})
        cfg = with_headers(base, {"B": "3"})
        assert dict(cfg.headers) == {"A": "1", "B": "3"}
        assert base.headers["B"] == "2"

    def test_with_timeout_and_retry(self):
        base = HttpClientConfig(provider="x")
        assert with_timeout(base, 5.0).timeout == 5.0
        cfg = with_retry(base, 1)
        assert cfg.max_retries == 1
        assert cfg.initial_delay == base.initial_delay

    @pytest.mark.parametrize(
        "base,path,expected",
        [
            ("https://a.test/v1", "/search", "https://a.test/v1/search"),
            ("https://a.test/v1/", "search", "https://a.test/v1/search"),
            ("https://a.test/v1", "", "https://a.test/v1"),
            ("https://a.test/v1", "https://b.test/x", "https://b.test/x"),
        ],
    )
    def test_join_url(self, base, path, expected):
        assert join_url(base, path) == expected


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TestHttpClient:
    """Tests for HttpClient verbs."""

    def _client(self, handler, **config):
        cfg = HttpClientConfig(provider="tavily", base_url="https://api.example.test", **config)
        return HttpClient(cfg).with_transport(httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_post_joins_path_and_sends_headers(self):
        captured = []
        client = self._client(json_handler({"ok": True}, requests=captured)).with_auth("k")

        response = await client.post("/search", json={"query": "q"}, headers={"X-Extra": "1"})

        request = captured[0]
        assert response.data == {"ok": True}
        assert str(request.url) == "https://api.example.test/search"
        assert request.headers["Authorization"] == "Bearer k"
        assert request.headers["X-Extra"] == "1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verb", ["get", "put", "patch", "delete"])
    async def test_verbs(self, verb):
        captured = []
        client = self._client(json_handler({}, requests=captured))
        await getattr(client, verb)("/item")
        assert captured[0].method == verb.upper()

    @pytest.mark.asyncio
    async def test_builders_return_new_clients(self):
        client = self._client(json_handler({}))
        authed = client.with_auth("key")
        assert authed is not client
        assert "Authorization" not in client.config.headers

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        sleep = RecordingSleep()
        captured = []
        handler = sequence_handler(
            [httpx.Response(503, json={}), httpx.Response(200, json={"ok": True})],
            requests=captured,
        )
        client = self._client(handler, max_retries=2, initial_delay=0.5, sleep_func=sleep)

        response = await client.get("/search")

        assert response.data == {"ok": True}
        assert len(captured) == 2
        assert sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_zero_retries_fails_fast(self):
        captured = []
        client = self._client(json_handler({}, 500, requests=captured), max_retries=0)

        with pytest.raises(UpstreamProviderError):
            await client.get()
        assert len(captured) == 1
