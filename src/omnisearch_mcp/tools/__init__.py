"""MCP tool registration."""

import logging
from typing import List

from mcp.server.fastmcp import FastMCP

from omnisearch_mcp.config import ServerConfig
from omnisearch_mcp.providers.registry import ProviderRegistry
from omnisearch_mcp.tools.enhancement import register_enhancement_tools
from omnisearch_mcp.tools.processing import register_processing_tools
from omnisearch_mcp.tools.search import register_search_tools

logger = logging.getLogger(__name__)


def register_tools(mcp: FastMCP, registry: ProviderRegistry, config: ServerConfig) -> List[str]:
    """Register every tool whose backend is configured and not disabled.

    Returns:
        Names of the registered tools, in registration order.
    """
    registered: List[str] = []
    disabled = set(config.disabled_tools)
    for register in (register_search_tools, register_processing_tools, register_enhancement_tools):
        register(mcp, registry, disabled=disabled, registered=registered)

    logger.info("Registered %d tools: %s", len(registered), ", ".join(registered) or "none")
    return registered


__all__ = ["register_tools"]
