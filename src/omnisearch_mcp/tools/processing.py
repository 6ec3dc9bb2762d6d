"""Processing tools: firecrawl_process, exa_process and standalone ``{name}_process`` tools."""

import logging
from typing import Collection, List, Optional, Union

from mcp.server.fastmcp import FastMCP

from omnisearch_mcp.core.naming import canonical_tool
from omnisearch_mcp.providers.base import ProcessingProvider
from omnisearch_mcp.providers.registry import ProviderRegistry
from omnisearch_mcp.providers.unified import (
    ExaProcessRouter,
    FirecrawlProcessRouter,
    ProcessingRouter,
)
from omnisearch_mcp.tools.common import run_tool

logger = logging.getLogger(__name__)

# mode -> provider name
FIRECRAWL_MODES = {
    "scrape": "firecrawl_scrape",
    "crawl": "firecrawl_crawl",
    "map": "firecrawl_map",
    "extract": "firecrawl_extract",
    "actions": "firecrawl_actions",
}
EXA_MODES = {"contents": "exa_contents", "similar": "exa_similar"}
STANDALONE_PROCESSORS = ("tavily_extract", "jina_reader", "kagi_summarizer")

UrlArgument = Union[str, List[str]]


def _register_router(
    mcp: FastMCP,
    router: ProcessingRouter,
    disabled: Collection[str],
    registered: Optional[List[str]],
) -> None:
    @canonical_tool(
        mcp,
        canonical_name=router.name,
        description=f"{router.description} Available modes: {', '.join(router.valid_options)}.",
        disabled=disabled,
        registered=registered,
    )
    async def process(url: UrlArgument, mode: str, extract_depth: str = "basic") -> dict:
        arguments = {"url": url, "mode": mode, "extract_depth": extract_depth}
        return await run_tool(router.name, lambda: router.dispatch(arguments), selected=mode)


def _register_processor(
    mcp: FastMCP,
    provider: ProcessingProvider,
    disabled: Collection[str],
    registered: Optional[List[str]],
) -> None:
    tool_name = f"{provider.name}_process"

    @canonical_tool(
        mcp,
        canonical_name=tool_name,
        description=provider.description,
        disabled=disabled,
        registered=registered,
    )
    async def process(url: UrlArgument, extract_depth: str = "basic") -> dict:
        return await run_tool(
            tool_name, lambda: provider.process_content(url, extract_depth)
        )


def register_processing_tools(
    mcp: FastMCP,
    registry: ProviderRegistry,
    *,
    disabled: Collection[str] = (),
    registered: Optional[List[str]] = None,
) -> None:
    """Register processing tools for the configured processing backends."""
    processing = registry.processing

    for router_cls, modes in ((FirecrawlProcessRouter, FIRECRAWL_MODES), (ExaProcessRouter, EXA_MODES)):
        backends = {mode: processing[name] for mode, name in modes.items() if name in processing}
        if backends:
            _register_router(mcp, router_cls(backends), disabled, registered)

    for name in STANDALONE_PROCESSORS:
        if name in processing:
            _register_processor(mcp, processing[name], disabled, registered)
