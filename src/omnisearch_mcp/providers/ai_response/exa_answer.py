"""Exa direct answers."""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import ExaAnswerResponse, parse_response
from omnisearch_mcp.providers.base import Capability, SearchProvider
from omnisearch_mcp.providers.search.exa import ExaKeyAuth

ANSWER_TITLE = "AI Answer"
FIRST_SOURCE_SCORE = 0.9
SOURCE_SCORE_STEP = 0.1


class ExaAnswerProvider(ExaKeyAuth, SearchProvider):
    name = "exa_answer"
    description = "Direct AI-generated answers to questions using the Exa Answer API."
    capabilities = frozenset([Capability.AI_RESPONSE])

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        domains = self.build_domain_filters(validated, format="array")
        body: dict[str, Any] = {
            "query": validated.query,
            "type": "auto",
            "livecrawl": "fallback",
            "useAutoprompt": True,
        }
        if domains["include_domains"]:
            body["includeDomains"] = domains["include_domains"]
        if domains["exclude_domains"]:
            body["excludeDomains"] = domains["exclude_domains"]

        async def request() -> list[SearchResult]:
            response = await self.http_client.post("/answer", json=body)
            data = parse_response(ExaAnswerResponse, response.data, self.name)
            results = [
                SearchResult(
                    title=ANSWER_TITLE,
                    url="",
                    snippet=data.answer,
                    score=1.0,
                    source_provider=self.name,
                    metadata={
                        "requestId": data.requestId,
                        "type": "ai_answer",
                        "sources_count": len(data.sources),
                    },
                )
            ]
            for index, source in enumerate(data.sources):
                metadata = self.extract_metadata(source.model_dump())
                metadata.update(type="source", requestId=data.requestId)
                results.append(
                    SearchResult(
                        title=source.title or "No title",
                        url=source.url,
                        snippet=source.text or "Source reference",
                        score=round(max(FIRST_SOURCE_SCORE - index * SOURCE_SCORE_STEP, 0.0), 2),
                        source_provider=self.name,
                        metadata=metadata,
                    )
                )
            if validated.limit is not None:
                return results[: validated.limit]
            return results

        return await self.execute_with_retry(request)
