"""Kagi web search."""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import KagiSearchResponse, parse_response
from omnisearch_mcp.providers.base import BotKeyAuth, Capability, SearchProvider

# Kagi marks organic results with t == 0; t == 1 are related searches
SEARCH_RESULT_TYPE = 0


class KagiSearchProvider(BotKeyAuth, SearchProvider):
    name = "kagi"
    description = (
        "High-quality, privacy-focused search with operators: site:, -site:, "
        "filetype:/ext:, intitle:, inurl:, inbody:, inpage:, lang:, loc:, "
        'before:, after:, +term, -term, "exact". Best for research and '
        "technical documentation."
    )
    capabilities = frozenset([Capability.WEB_SEARCH])

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        parsed, filters = self.parse_query_operators(validated.query)

        query = self.compose_query(validated, parsed, filters, file_type=False, dates=False)
        query_params: dict[str, Any] = {
            "q": query or validated.query,
            "limit": self.effective_limit(validated),
        }
        if filters.file_type:
            query_params["file_type"] = filters.file_type
        time_range = []
        if filters.date_after:
            time_range.append(f"after:{filters.date_after}")
        if filters.date_before:
            time_range.append(f"before:{filters.date_before}")
        if time_range:
            query_params["time_range"] = ",".join(time_range)

        async def request() -> list[SearchResult]:
            response = await self.http_client.get("/search", params=query_params)
            data = parse_response(KagiSearchResponse, response.data, self.name)
            return [
                SearchResult(
                    title=item.title or "No title",
                    url=item.url or "",
                    snippet=item.snippet or "No description available",
                    score=item.rank,
                    source_provider=self.name,
                    metadata={"published": item.published} if item.published else {},
                )
                for item in data.data
                if item.t == SEARCH_RESULT_TYPE and item.url
            ]

        return await self.execute_with_retry(request)
