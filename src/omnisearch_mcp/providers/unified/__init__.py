"""Unified dispatch routers: one tool entry point over many backends."""

from omnisearch_mcp.providers.unified.dispatch import DispatchProvider
from omnisearch_mcp.providers.unified.routers import (
    AISearchRouter,
    ExaProcessRouter,
    FirecrawlProcessRouter,
    GitHubSearchRouter,
    ProcessingRouter,
    SearchRouter,
    WebSearchRouter,
)

__all__ = [
    "AISearchRouter",
    "DispatchProvider",
    "ExaProcessRouter",
    "FirecrawlProcessRouter",
    "GitHubSearchRouter",
    "ProcessingRouter",
    "SearchRouter",
    "WebSearchRouter",
]
