"""Exa neural/keyword search, plus the ``x-api-key`` scheme shared by Exa providers."""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import ExaSearchResponse, parse_response
from omnisearch_mcp.providers.base import Capability, SearchProvider

SNIPPET_MAX_CHARACTERS = 3000


class ExaKeyAuth:
    """Mixin for Exa's ``x-api-key`` header."""

    def custom_auth_headers(self, api_key: str) -> Mapping[str, str]:
        return {"x-api-key": api_key}


class ExaSearchProvider(ExaKeyAuth, SearchProvider):
    name = "exa"
    description = (
        "AI-powered web search using neural and keyword search. Optimized for AI "
        "applications with semantic understanding and content extraction."
    )
    capabilities = frozenset([Capability.WEB_SEARCH])

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        parsed, filters = self.parse_query_operators(validated.query)
        domains = self.build_domain_filters(validated, filters, format="array")

        body: dict[str, Any] = {
            "query": parsed.base_query or validated.query,
            "type": "auto",
            "numResults": self.effective_limit(validated),
            "useAutoprompt": True,
            "contents": {
                "text": {"maxCharacters": SNIPPET_MAX_CHARACTERS},
                "livecrawl": "fallback",
            },
        }
        if domains["include_domains"]:
            body["includeDomains"] = domains["include_domains"]
        if domains["exclude_domains"]:
            body["excludeDomains"] = domains["exclude_domains"]

        async def request() -> list[SearchResult]:
            response = await self.http_client.post("/search", json=body)
            data = parse_response(ExaSearchResponse, response.data, self.name)
            results = []
            for item in data.results:
                metadata = self.extract_metadata(item.model_dump())
                if data.autopromptString:
                    metadata["autopromptString"] = data.autopromptString
                if data.resolvedSearchType:
                    metadata["resolvedSearchType"] = data.resolvedSearchType
                results.append(
                    SearchResult(
                        title=item.title or "No title",
                        url=item.url,
                        snippet=item.text or item.summary or "No content available",
                        score=item.score or 0.0,
                        source_provider=self.name,
                        metadata=metadata,
                    )
                )
            return results

        return await self.execute_with_retry(request)
