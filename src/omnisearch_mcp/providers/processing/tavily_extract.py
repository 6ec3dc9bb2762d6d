"""Tavily extract: raw page content for up to ten URLs in one request."""

from typing import Any, Sequence, Union

from omnisearch_mcp.core.models import DEFAULT_EXTRACT_DEPTH, ExtractDepth, ProcessingResult
from omnisearch_mcp.core.schemas import TavilyExtractResponse, parse_response
from omnisearch_mcp.providers.base import ContentItem, ProcessingOptions, ProcessingProvider


def _failed_url(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("url", entry))
    return str(entry)


class TavilyExtractProvider(ProcessingProvider):
    name = "tavily_extract"
    description = (
        "Extract raw content from one or more web pages with Tavily. Advanced "
        "depth retrieves tables and embedded content. Best for bulk extraction "
        "of articles and documentation pages."
    )
    options = ProcessingOptions(max_urls=10)

    async def process_content(
        self,
        url: Union[str, Sequence[str]],
        extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH,
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        body = {"urls": urls, "include_images": False, "extract_depth": depth}

        async def extract() -> TavilyExtractResponse:
            response = await self.http_client.post("/extract", json=body)
            return parse_response(TavilyExtractResponse, response.data, self.name)

        data = await self.execute_with_retry(extract)
        if not data.results:
            raise self.errors.provider_error(
                "No content extracted from URL",
                {"failed_urls": [_failed_url(f) for f in data.failed_results]},
            )

        items = [ContentItem(url=r.url, content=r.raw_content or "") for r in data.results]
        extra: dict[str, Any] = {}
        if data.failed_results:
            extra["failed_urls"] = [_failed_url(f) for f in data.failed_results]
        return self.build_result(items, urls, depth, **extra)
