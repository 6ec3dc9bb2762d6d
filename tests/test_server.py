"""Tests for server creation, tool registration and tool envelopes."""

import logging

import httpx
import pytest
from click.testing import CliRunner

from conftest import RecordingSleep
from omnisearch_mcp import __version__
from omnisearch_mcp.config import ServerConfig
from omnisearch_mcp.core.errors import RateLimitError
from omnisearch_mcp.core.models import SearchResult
from omnisearch_mcp.providers.registry import initialize_providers
from omnisearch_mcp.server import create_server, main
from omnisearch_mcp.tools.common import run_tool, serialize_search_results

TAVILY_RESULTS = {
    "results": [
        {"title": "MCP spec", "url": "https://mcp.test", "content": "Model Context Protocol", "score": 0.9}
    ]
}
GROUNDING = {
    "data": {"factuality": 0.5, "result": False, "reason": "Unclear.", "references": []}
}


def upstream(request: httpx.Request) -> httpx.Response:
    """Fake the Tavily and Jina endpoints by host and path."""
    host, path = request.url.host, request.url.path
    if host == "api.tavily.com" and path == "/search":
        if "denied" in request.content.decode():
            return httpx.Response(401, json={"detail": "bad key"})
        return httpx.Response(200, json=TAVILY_RESULTS)
    if host == "g.jina.ai":
        return httpx.Response(200, json=GROUNDING)
    return httpx.Response(404, json={"error": f"unexpected {host}{path}"})


def build_server(disabled=(), **keys):
    config = ServerConfig(server_name="omnisearch-test", api_keys=keys, disabled_tools=list(disabled))
    registry = initialize_providers(
        config, transport=httpx.MockTransport(upstream), sleep_func=RecordingSleep()
    )
    return create_server(config, registry)


@pytest.fixture
def mcp_server():
    return build_server(TAVILY_API_KEY="tvly-key", JINA_AI_API_KEY="jina-key")


class TestToolRegistration:
    """Tests for which tools are exposed."""

    def test_server_has_name(self, mcp_server):
        assert mcp_server.name == "omnisearch-test"

    def test_tools_follow_configured_keys(self, mcp_server):
        tools = mcp_server._tool_manager._tools
        assert set(tools) == {
            "web_search",
            "tavily_extract_process",
            "jina_reader_process",
            "jina_grounding_enhance",
        }

    def test_router_description_lists_available_providers(self, mcp_server):
        tool = mcp_server._tool_manager._tools["web_search"]
        assert tool.description.endswith("Available: tavily.")

    def test_disabled_tools_are_skipped(self):
        server = build_server(disabled=["web_search"], TAVILY_API_KEY="tvly-key")
        assert set(server._tool_manager._tools) == {"tavily_extract_process"}

    def test_shared_keys_enable_routers(self):
        server = build_server(
            FIRECRAWL_API_KEY="fc", EXA_API_KEY="exa", KAGI_API_KEY="kagi", GITHUB_API_KEY="gh"
        )
        tools = server._tool_manager._tools
        assert {"firecrawl_process", "exa_process", "ai_search", "github_search"} <= set(tools)
        assert "kagi_summarizer_process" in tools
        assert "kagi_enrichment_enhance" in tools

    def test_no_keys_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="omnisearch_mcp.server"):
            server = build_server()
        assert server._tool_manager._tools == {}
        assert "No tools registered" in caplog.text


class TestToolInvocation:
    """Tests calling registered tools end to end against mocked upstreams."""

    @pytest.mark.asyncio
    async def test_web_search_success(self, mcp_server):
        tool = mcp_server._tool_manager._tools["web_search"]

        response = await tool.fn(query="mcp", provider="tavily", limit=5)

        assert response["success"] is True
        assert response["error"] is None
        assert response["meta"]["provider"] == "tavily"
        assert response["data"]["count"] == 1
        assert response["data"]["results"][0]["url"] == "https://mcp.test"
        assert response["data"]["results"][0]["source_provider"] == "tavily"

    @pytest.mark.asyncio
    async def test_unknown_provider_is_validation_error(self, mcp_server):
        tool = mcp_server._tool_manager._tools["web_search"]

        response = await tool.fn(query="mcp", provider="brave")

        assert response["success"] is False
        assert response["error"] == "web_search error: Invalid provider: brave. Valid options: tavily"
        assert response["data"]["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, mcp_server):
        tool = mcp_server._tool_manager._tools["web_search"]

        response = await tool.fn(query="   ", provider="tavily")

        assert response["success"] is False
        assert response["data"]["provider"] == "tavily"
        assert response["data"]["error_type"] == "validation"

    @pytest.mark.asyncio
    async def test_upstream_auth_failure(self, mcp_server):
        tool = mcp_server._tool_manager._tools["web_search"]

        response = await tool.fn(query="denied", provider="tavily")

        assert response["success"] is False
        assert response["data"]["error_code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_enhance_tool(self, mcp_server):
        tool = mcp_server._tool_manager._tools["jina_grounding_enhance"]

        response = await tool.fn(content="The moon is cheese")

        assert response["success"] is True
        assert response["data"]["enhanced_content"].startswith("Factuality Score: 0.5")
        assert response["data"]["source_provider"] == "jina_grounding"

    @pytest.mark.asyncio
    async def test_processing_rejects_local_urls(self, mcp_server):
        tool = mcp_server._tool_manager._tools["tavily_extract_process"]

        response = await tool.fn(url="http://127.0.0.1/admin")

        assert response["success"] is False
        assert response["data"]["error_code"] == "VALIDATION_ERROR"


class TestRunTool:
    @pytest.mark.asyncio
    async def test_success_envelope(self):
        async def operation():
            return [SearchResult(title="t", url="u", snippet="s", source_provider="brave")]

        response = await run_tool("web_search", operation, serialize_search_results, selected="brave")

        assert response["success"] is True
        assert response["data"]["count"] == 1
        assert response["meta"] == {"version": "response-v2", "provider": "brave"}

    @pytest.mark.asyncio
    async def test_provider_error_envelope(self):
        async def operation():
            raise RateLimitError("Rate limit exceeded", "brave")

        response = await run_tool("web_search", operation)

        assert response["success"] is False
        assert response["data"]["error_code"] == "RATE_LIMITED"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_internal(self, caplog):
        async def operation():
            raise KeyError("missing")

        with caplog.at_level(logging.ERROR, logger="omnisearch_mcp.tools.common"):
            response = await run_tool("ai_search", operation)

        assert response["success"] is False
        assert response["data"]["error_code"] == "INTERNAL_ERROR"
        assert response["data"]["details"] == {"tool": "ai_search", "error_type": "KeyError"}
        assert "Unexpected error in tool ai_search" in caplog.text


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_rejects_unknown_log_level(self):
        result = CliRunner().invoke(main, ["--log-level", "TRACE"])
        assert result.exit_code != 0
