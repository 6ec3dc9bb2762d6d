"""Search tools: web_search, ai_search and github_search."""

import logging
from typing import Any, Collection, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from omnisearch_mcp.core.naming import canonical_tool
from omnisearch_mcp.providers.registry import ProviderRegistry
from omnisearch_mcp.providers.search import GitHubSearchProvider
from omnisearch_mcp.providers.unified import AISearchRouter, GitHubSearchRouter, WebSearchRouter
from omnisearch_mcp.tools.common import run_tool, serialize_search_results

logger = logging.getLogger(__name__)

WEB_SEARCH_PROVIDERS = ("tavily", "brave", "kagi", "exa")
AI_SEARCH_PROVIDERS = ("perplexity", "kagi_fastgpt", "exa_answer")


def _drop_none(**arguments: Any) -> Dict[str, Any]:
    return {k: v for k, v in arguments.items() if v is not None}


def register_search_tools(
    mcp: FastMCP,
    registry: ProviderRegistry,
    *,
    disabled: Collection[str] = (),
    registered: Optional[List[str]] = None,
) -> None:
    """Register search tools for the configured search backends.

    Args:
        mcp: FastMCP server instance
        registry: Frozen provider registry
        disabled: Tool names to skip
        registered: Receives the names of registered tools
    """
    web_backends = {n: registry.search[n] for n in WEB_SEARCH_PROVIDERS if n in registry.search}
    if web_backends:
        web_router = WebSearchRouter(web_backends)

        @canonical_tool(
            mcp,
            canonical_name=web_router.name,
            description=f"{web_router.description} Available: {', '.join(web_router.valid_options)}.",
            disabled=disabled,
            registered=registered,
        )
        async def web_search(
            query: str,
            provider: str,
            limit: Optional[int] = None,
            include_domains: Optional[List[str]] = None,
            exclude_domains: Optional[List[str]] = None,
        ) -> dict:
            """Search the web with the selected provider."""
            arguments = _drop_none(
                query=query,
                provider=provider,
                limit=limit,
                include_domains=include_domains,
                exclude_domains=exclude_domains,
            )
            return await run_tool(
                web_router.name,
                lambda: web_router.dispatch(arguments),
                serialize_search_results,
                selected=provider,
            )

    ai_backends = {
        n: registry.ai_response[n] for n in AI_SEARCH_PROVIDERS if n in registry.ai_response
    }
    if ai_backends:
        ai_router = AISearchRouter(ai_backends)

        @canonical_tool(
            mcp,
            canonical_name=ai_router.name,
            description=f"{ai_router.description} Available: {', '.join(ai_router.valid_options)}.",
            disabled=disabled,
            registered=registered,
        )
        async def ai_search(query: str, provider: str, limit: Optional[int] = None) -> dict:
            """Get an AI-generated answer with sources."""
            arguments = _drop_none(query=query, provider=provider, limit=limit)
            return await run_tool(
                ai_router.name,
                lambda: ai_router.dispatch(arguments),
                serialize_search_results,
                selected=provider,
            )

    github = registry.search.get("github")
    if isinstance(github, GitHubSearchProvider):
        github_router = GitHubSearchRouter(github)

        @canonical_tool(
            mcp,
            canonical_name=github_router.name,
            description=github_router.description,
            disabled=disabled,
            registered=registered,
        )
        async def github_search(
            query: str,
            search_type: str = "code",
            limit: Optional[int] = None,
            sort: Optional[str] = None,
        ) -> dict:
            """Search GitHub code, repositories or users."""
            arguments = _drop_none(query=query, search_type=search_type, limit=limit, sort=sort)
            return await run_tool(
                github_router.name,
                lambda: github_router.dispatch(arguments),
                serialize_search_results,
                selected=search_type,
            )
