"""Tavily web search."""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.operators import build_query_with_operators
from omnisearch_mcp.core.schemas import TavilySearchResponse, parse_response
from omnisearch_mcp.providers.base import Capability, SearchProvider


class TavilySearchProvider(SearchProvider):
    name = "tavily"
    description = (
        "Search engine optimized for factual information with strong citation "
        "support. Supports site: and -site: domain filtering. Best for research "
        "queries where source quality matters."
    )
    capabilities = frozenset([Capability.WEB_SEARCH])
    default_limit = 5

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        parsed, filters = self.parse_query_operators(validated.query)
        domains = self.build_domain_filters(validated, filters, format="array")
        # Tavily takes domains natively, the rest stays in the query text
        query = build_query_with_operators(
            parsed.base_query, filters, include_domains=False, exclude_domains=False
        )

        body: dict[str, Any] = {
            "query": query or validated.query,
            "max_results": self.effective_limit(validated),
            "search_depth": "basic",
            "topic": "general",
        }
        if domains["include_domains"]:
            body["include_domains"] = domains["include_domains"]
        if domains["exclude_domains"]:
            body["exclude_domains"] = domains["exclude_domains"]

        async def request() -> list[SearchResult]:
            response = await self.http_client.post("/search", json=body)
            data = parse_response(TavilySearchResponse, response.data, self.name)
            return [
                self.format_search_result(item.model_dump(), {"snippet": "content"})
                for item in data.results
            ]

        return await self.execute_with_retry(request)
