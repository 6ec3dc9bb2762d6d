"""Shared tool plumbing: run an operation and wrap the outcome in an envelope."""

import logging
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from omnisearch_mcp.core.errors import ProviderError
from omnisearch_mcp.core.models import SearchResult
from omnisearch_mcp.core.responses import (
    internal_error_response,
    provider_error_response,
    success_response,
)

logger = logging.getLogger(__name__)

Serializer = Callable[[Any], Dict[str, Any]]


def serialize_search_results(results: Sequence[SearchResult]) -> Dict[str, Any]:
    return {"results": [r.to_dict() for r in results], "count": len(results)}


def serialize_result(result: Any) -> Dict[str, Any]:
    return result.to_dict()


async def run_tool(
    tool: str,
    operation: Callable[[], Awaitable[Any]],
    serialize: Serializer = serialize_result,
    *,
    selected: Optional[str] = None,
) -> dict:
    """Await ``operation`` and return the response envelope as a dict.

    Provider errors map onto the envelope by kind; any other exception is
    logged with its traceback and returned as an internal error so the
    server keeps running.
    """
    try:
        result = await operation()
    except ProviderError as e:
        logger.info("Tool %s failed: %s", tool, e)
        return asdict(provider_error_response(e))
    except Exception as e:
        logger.exception("Unexpected error in tool %s", tool)
        return asdict(internal_error_response(e, tool=tool))

    meta = {"provider": selected} if selected else None
    return asdict(success_response(serialize(result), meta=meta))
