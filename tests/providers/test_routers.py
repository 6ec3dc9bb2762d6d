"""Tests for selector-based dispatch routers."""

import httpx
import pytest

from conftest import json_handler, make_provider_config
from omnisearch_mcp.core.errors import ApiError, InvalidInputError
from omnisearch_mcp.core.models import ProcessingResult, SearchResult
from omnisearch_mcp.providers.base import ProcessingProvider, SearchProvider
from omnisearch_mcp.providers.search import GitHubSearchProvider
from omnisearch_mcp.providers.unified import (
    AISearchRouter,
    FirecrawlProcessRouter,
    GitHubSearchRouter,
    WebSearchRouter,
)


class RecordingSearch(SearchProvider):
    """Search provider that records the arguments it was called with."""

    def __init__(self, name, error=None):
        self.name = name
        self.error = error
        self.calls = []
        super().__init__(make_provider_config())

    async def search(self, params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return [SearchResult(title=self.name, url="https://r.test", snippet="s", source_provider=self.name)]


class RecordingProcessor(ProcessingProvider):
    def __init__(self, name):
        self.name = name
        self.calls = []
        super().__init__(make_provider_config())

    async def process_content(self, url, extract_depth="basic"):
        self.calls.append({"url": url, "extract_depth": extract_depth})
        return ProcessingResult(
            content="c", raw_contents=[], metadata={}, source_provider=self.name
        )


@pytest.fixture
def web_router():
    return WebSearchRouter(
        {"tavily": RecordingSearch("tavily"), "brave": RecordingSearch("brave")}
    )


class TestSearchRouting:
    """Tests for provider selection on the web search router."""

    @pytest.mark.asyncio
    async def test_forwards_payload_without_selector(self, web_router):
        results = await web_router.search(
            {"provider": "brave", "query": "mcp", "limit": 3, "include_domains": ["a.com"]}
        )

        brave = web_router._targets["brave"]
        assert results[0].source_provider == "brave"
        assert brave.calls == [{"query": "mcp", "limit": 3, "include_domains": ["a.com"]}]
        assert web_router._targets["tavily"].calls == []

    @pytest.mark.asyncio
    async def test_missing_selector(self, web_router):
        with pytest.raises(InvalidInputError, match="provider is required") as exc_info:
            await web_router.search({"query": "mcp"})
        assert exc_info.value.provider == "web_search"

    @pytest.mark.asyncio
    async def test_invalid_selector_lists_options(self, web_router):
        with pytest.raises(InvalidInputError) as exc_info:
            await web_router.search({"provider": "bing", "query": "mcp"})
        assert exc_info.value.message == "Invalid provider: bing. Valid options: tavily, brave"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("choice", [["tavily"], {"name": "brave"}, 3])
    async def test_non_string_selector_is_invalid_input(self, web_router, choice):
        with pytest.raises(InvalidInputError) as exc_info:
            await web_router.dispatch({"provider": choice, "query": "mcp"})
        assert exc_info.value.message == (
            f"Invalid provider: {choice}. Valid options: tavily, brave"
        )
        assert web_router._targets["tavily"].calls == []

    @pytest.mark.asyncio
    async def test_target_errors_propagate_unchanged(self):
        error = ApiError("Invalid API key", "exa_answer")
        router = AISearchRouter({"exa_answer": RecordingSearch("exa_answer", error=error)})

        with pytest.raises(ApiError) as exc_info:
            await router.search({"provider": "exa_answer", "query": "q"})
        assert exc_info.value is error

    def test_valid_options_and_repr(self, web_router):
        assert web_router.valid_options == ["tavily", "brave"]
        assert repr(web_router) == "WebSearchRouter(options=['tavily', 'brave'])"

    def test_needs_a_target(self):
        with pytest.raises(ValueError, match="web_search needs at least one target"):
            WebSearchRouter({})

    def test_targets_are_fixed(self, web_router):
        with pytest.raises(TypeError):
            web_router._targets["kagi"] = RecordingSearch("kagi")


class TestProcessingRouting:
    @pytest.mark.asyncio
    async def test_mode_selects_processor(self):
        scrape = RecordingProcessor("firecrawl_scrape")
        crawl = RecordingProcessor("firecrawl_crawl")
        router = FirecrawlProcessRouter({"scrape": scrape, "crawl": crawl})

        result = await router.process_content(
            url="https://a.test", mode="crawl", extract_depth="advanced"
        )

        assert result.source_provider == "firecrawl_crawl"
        assert crawl.calls == [{"url": "https://a.test", "extract_depth": "advanced"}]
        assert scrape.calls == []

    @pytest.mark.asyncio
    async def test_unknown_mode(self):
        router = FirecrawlProcessRouter({"scrape": RecordingProcessor("firecrawl_scrape")})
        with pytest.raises(InvalidInputError, match="Invalid mode: screenshot. Valid options: scrape"):
            await router.process_content(url="https://a.test", mode="screenshot")


class TestGitHubRouting:
    """Tests for search_type routing over one GitHub provider."""

    def make_router(self, requests):
        handler = json_handler({"total_count": 0, "items": []}, requests=requests)
        provider = GitHubSearchProvider(
            make_provider_config(auth_type="custom"), transport=httpx.MockTransport(handler)
        )
        return GitHubSearchRouter(provider)

    @pytest.mark.asyncio
    async def test_defaults_to_code(self):
        captured = []
        router = self.make_router(captured)

        await router.search({"query": "filename:pyproject.toml"})

        assert captured[0].url.path == "/search/code"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "search_type,path",
        [("repositories", "/search/repositories"), ("users", "/search/users")],
    )
    async def test_search_type_routes(self, search_type, path):
        captured = []
        router = self.make_router(captured)

        await router.search({"query": "mcp", "search_type": search_type})

        assert captured[0].url.path == path

    @pytest.mark.asyncio
    async def test_invalid_search_type(self):
        router = self.make_router([])
        with pytest.raises(
            InvalidInputError,
            match="Invalid search_type: issues. Valid options: code, repositories, users",
        ):
            await router.search({"query": "mcp", "search_type": "issues"})

    def test_options_follow_capabilities(self):
        router = self.make_router([])
        assert router.valid_options == ["code", "repositories", "users"]
