"""Kagi Universal Summarizer for up to five URLs."""

from typing import Any, Sequence, Union

from omnisearch_mcp.core.models import DEFAULT_EXTRACT_DEPTH, ExtractDepth, ProcessingResult
from omnisearch_mcp.core.schemas import KagiSummarizerResponse, parse_response
from omnisearch_mcp.providers.base import (
    BotKeyAuth,
    ContentItem,
    ProcessingOptions,
    ProcessingProvider,
)


class KagiSummarizerProvider(BotKeyAuth, ProcessingProvider):
    name = "kagi_summarizer"
    description = (
        "Summarize pages, videos and podcasts with Kagi's Universal Summarizer. "
        "Advanced depth returns key takeaways instead of prose."
    )
    options = ProcessingOptions(max_urls=5)

    async def process_content(
        self,
        url: Union[str, Sequence[str]],
        extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH,
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        summary_type = "takeaway" if depth == "advanced" else "summary"
        usage: dict[str, dict[str, Any]] = {}

        async def summarize(target: str) -> ContentItem:
            response = await self.http_client.post(
                json={"url": target, "summary_type": summary_type}
            )
            data = parse_response(KagiSummarizerResponse, response.data, self.name)
            usage[target] = {
                "tokens": data.data.tokens or 0,
                "api_balance": data.meta.get("api_balance"),
                "ms": data.meta.get("ms") or 0,
            }
            return ContentItem(url=target, content=data.data.output, title=f"Summary of {target}")

        outcomes = await self.fetch_each(urls, summarize)
        succeeded = [usage[o.url] for o in outcomes if o.ok and o.url in usage]
        extra: dict[str, Any] = {
            "summary_type": summary_type,
            "tokens_used": sum(u["tokens"] for u in succeeded),
            "processing_time_ms": sum(u["ms"] for u in succeeded),
        }
        balances = [u["api_balance"] for u in succeeded if u["api_balance"] is not None]
        if balances:
            extra["api_balance"] = balances[-1]
        return self.aggregate_url_results(outcomes, urls, depth, **extra)
