"""Provider implementations grouped by capability.

- ``search``: web, code and repository search
- ``ai_response``: AI-generated answers with sources
- ``processing``: URL extraction, crawling and summarization
- ``enhancement``: fact checking and content enrichment
- ``unified``: routers that dispatch one tool to several backends
"""

from omnisearch_mcp.providers.base import (
    BaseProvider,
    Capability,
    EnhancementProvider,
    ProcessingProvider,
    SearchProvider,
)

__all__ = [
    "BaseProvider",
    "Capability",
    "EnhancementProvider",
    "ProcessingProvider",
    "SearchProvider",
]
