"""Web, code and repository search providers."""

from omnisearch_mcp.providers.search.brave import BraveSearchProvider
from omnisearch_mcp.providers.search.exa import ExaSearchProvider
from omnisearch_mcp.providers.search.github import GitHubSearchProvider
from omnisearch_mcp.providers.search.kagi import KagiSearchProvider
from omnisearch_mcp.providers.search.tavily import TavilySearchProvider

__all__ = [
    "BraveSearchProvider",
    "ExaSearchProvider",
    "GitHubSearchProvider",
    "KagiSearchProvider",
    "TavilySearchProvider",
]
