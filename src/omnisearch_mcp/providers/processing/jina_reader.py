"""Jina AI Reader: clean, LLM-friendly text for a single URL."""

from typing import Sequence, Union

from omnisearch_mcp.core.models import DEFAULT_EXTRACT_DEPTH, ExtractDepth, ProcessingResult
from omnisearch_mcp.core.schemas import JinaReaderResponse, parse_response
from omnisearch_mcp.providers.base import ContentItem, ProcessingOptions, ProcessingProvider


class JinaReaderProvider(ProcessingProvider):
    name = "jina_reader"
    description = (
        "Convert a URL into clean, LLM-friendly text with Jina AI Reader. "
        "Handles JavaScript-rendered pages and PDFs."
    )
    options = ProcessingOptions(max_urls=1, allow_multiple_urls=False)

    async def process_content(
        self,
        url: Union[str, Sequence[str]],
        extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH,
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        target = urls[0]

        async def read() -> JinaReaderResponse:
            response = await self.http_client.post(
                "/", json={"url": target}, headers={"Accept": "application/json"}
            )
            return parse_response(JinaReaderResponse, response.data, self.name)

        data = (await self.execute_with_retry(read)).data
        item = ContentItem(url=target, content=data.content or "", title=data.title)
        extra = {"timestamp": data.timestamp} if data.timestamp else {}
        return self.build_result([item], urls, depth, **extra)
