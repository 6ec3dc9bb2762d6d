"""Enhancement tools: one ``{name}_enhance`` tool per enhancement provider."""

from typing import Collection, List, Optional

from mcp.server.fastmcp import FastMCP

from omnisearch_mcp.core.naming import canonical_tool
from omnisearch_mcp.providers.base import EnhancementProvider
from omnisearch_mcp.providers.registry import ProviderRegistry
from omnisearch_mcp.tools.common import run_tool


def _register_enhancer(
    mcp: FastMCP,
    provider: EnhancementProvider,
    disabled: Collection[str],
    registered: Optional[List[str]],
) -> None:
    tool_name = f"{provider.name}_enhance"

    @canonical_tool(
        mcp,
        canonical_name=tool_name,
        description=provider.description,
        disabled=disabled,
        registered=registered,
    )
    async def enhance(content: str) -> dict:
        return await run_tool(tool_name, lambda: provider.enhance_content(content))


def register_enhancement_tools(
    mcp: FastMCP,
    registry: ProviderRegistry,
    *,
    disabled: Collection[str] = (),
    registered: Optional[List[str]] = None,
) -> None:
    for provider in registry.enhancement.values():
        _register_enhancer(mcp, provider, disabled, registered)
