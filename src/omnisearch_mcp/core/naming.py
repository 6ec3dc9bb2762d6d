"""Naming helpers for MCP tool registration."""

import logging
from typing import Any, Callable, Collection, Optional

from mcp.server.fastmcp import FastMCP

from omnisearch_mcp.core.observability import mcp_tool

logger = logging.getLogger(__name__)


def canonical_tool(
    mcp: FastMCP,
    *,
    canonical_name: str,
    disabled: Collection[str] = (),
    registered: Optional[list[str]] = None,
    **tool_kwargs: Any,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator that registers a tool under its canonical name.

    Tools named in ``disabled`` are left unregistered and the undecorated
    function is returned. Registered names are appended to ``registered``.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if canonical_name in disabled:
            logger.info("Tool %s disabled by configuration", canonical_name)
            return func
        wrapped = mcp.tool(name=canonical_name, **tool_kwargs)(
            mcp_tool(tool_name=canonical_name)(func)
        )
        if registered is not None:
            registered.append(canonical_name)
        return wrapped

    return decorator
