"""Concrete dispatch routers behind the unified tools."""

from typing import Any, Awaitable, Callable, Mapping

from omnisearch_mcp.core.models import ProcessingResult, SearchResult
from omnisearch_mcp.providers.base import Capability, ProcessingProvider, SearchProvider
from omnisearch_mcp.providers.search.github import GitHubSearchProvider
from omnisearch_mcp.providers.unified.dispatch import DispatchProvider

SearchOperation = Callable[[Mapping[str, Any]], Awaitable[list[SearchResult]]]

# search_type -> capability the GitHub provider must declare
GITHUB_SEARCH_TYPES = {
    "code": Capability.CODE_SEARCH,
    "repositories": Capability.REPOSITORY_SEARCH,
    "users": Capability.USER_SEARCH,
}


class SearchRouter(DispatchProvider[SearchProvider]):
    """Forwards the argument bag to ``SearchProvider.search``."""

    async def forward(self, target: SearchProvider, payload: dict[str, Any]) -> list[SearchResult]:
        return await target.search(payload)

    async def search(self, params: Mapping[str, Any]) -> list[SearchResult]:
        return await self.dispatch(params)


class ProcessingRouter(DispatchProvider[ProcessingProvider]):
    """Forwards the argument bag to ``ProcessingProvider.process_content``."""

    selector = "mode"

    async def forward(
        self, target: ProcessingProvider, payload: dict[str, Any]
    ) -> ProcessingResult:
        return await target.process_content(**payload)

    async def process_content(self, **arguments: Any) -> ProcessingResult:
        return await self.dispatch(arguments)


class WebSearchRouter(SearchRouter):
    name = "web_search"
    description = (
        "Search the web with one of several engines. Choose a provider: "
        "tavily (factual, citation-rich), brave (privacy, technical content), "
        "kagi (high-quality, rich operators) or exa (neural/semantic). "
        "Supports inline operators such as site:, -site:, filetype: and \"exact phrases\"."
    )


class AISearchRouter(SearchRouter):
    name = "ai_search"
    description = (
        "Get an AI-generated answer with sources. Choose a provider: "
        "perplexity (deep synthesis), kagi_fastgpt (fast answers) or "
        "exa_answer (direct answers with source ranking)."
    )


class FirecrawlProcessRouter(ProcessingRouter):
    name = "firecrawl_process"
    description = (
        "Process web pages with Firecrawl. Modes: scrape (clean markdown from "
        "one or more pages), crawl (follow subpages), map (discover site URLs), "
        "extract (structured data) and actions (interact before extracting)."
    )


class ExaProcessRouter(ProcessingRouter):
    name = "exa_process"
    description = (
        "Process content with Exa. Modes: contents (full text for URLs or result "
        "ids) and similar (pages semantically similar to a URL)."
    )


class GitHubSearchRouter(DispatchProvider[SearchOperation]):
    """Routes ``search_type`` to the matching GitHub capability."""

    name = "github_search"
    description = (
        "Search GitHub. search_type selects code (default), repositories or users. "
        "Supports GitHub qualifiers like filename:, path:, repo:, user: and language:. "
        "Repositories accept sort: stars, forks or updated."
    )
    selector = "search_type"
    default_selector = "code"

    def __init__(self, provider: GitHubSearchProvider):
        operations = provider.operations()
        super().__init__(
            {
                search_type: operations[search_type]
                for search_type, capability in GITHUB_SEARCH_TYPES.items()
                if provider.supports(capability)
            }
        )

    async def forward(self, target: SearchOperation, payload: dict[str, Any]) -> list[SearchResult]:
        return await target(payload)

    async def search(self, params: Mapping[str, Any]) -> list[SearchResult]:
        return await self.dispatch(params)
