"""Brave web search.

Brave understands most operators natively, so they are re-serialized into
``q``. ``lang:`` and ``loc:`` become the ``search_lang`` and ``country``
request parameters instead.
"""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import BraveSearchResponse, parse_response
from omnisearch_mcp.providers.base import Capability, SearchProvider

# Brave has no relevance score; results are scored by position
POSITION_SCORE_STEP = 0.1


class BraveSearchProvider(SearchProvider):
    name = "brave"
    description = (
        "Privacy-focused search engine with good coverage of technical topics. "
        "Supports site:, -site:, filetype:, intitle:, inurl:, before:, after: "
        "and exact phrases. Best for technical documentation and developer resources."
    )
    capabilities = frozenset([Capability.WEB_SEARCH])

    def custom_auth_headers(self, api_key: str) -> Mapping[str, str]:
        return {"X-Subscription-Token": api_key, "Accept": "application/json"}

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        parsed, filters = self.parse_query_operators(validated.query)

        query_params: dict[str, Any] = {
            "q": self.compose_query(validated, parsed, filters) or validated.query,
            "count": self.effective_limit(validated),
        }
        if filters.language:
            query_params["search_lang"] = filters.language
        if filters.location:
            query_params["country"] = filters.location

        async def request() -> list[SearchResult]:
            response = await self.http_client.get("/web/search", params=query_params)
            data = parse_response(BraveSearchResponse, response.data, self.name)
            results = []
            for index, item in enumerate(data.web.results):
                metadata = {k: v for k, v in (("age", item.age), ("language", item.language)) if v}
                results.append(
                    SearchResult(
                        title=item.title or "No title",
                        url=item.url,
                        snippet=item.description or "No description available",
                        score=round(max(1.0 - index * POSITION_SCORE_STEP, 0.0), 2),
                        source_provider=self.name,
                        metadata=metadata,
                    )
                )
            return results

        return await self.execute_with_retry(request)
