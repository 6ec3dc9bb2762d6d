"""Perplexity AI answers with citations."""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import PerplexityResponse, parse_response
from omnisearch_mcp.core.shared import extract_domain
from omnisearch_mcp.providers.base import Capability, SearchProvider

MODEL = "sonar-pro"
SYSTEM_PROMPT = (
    "You are a research assistant. Answer accurately and concisely, "
    "and ground every claim in the sources you cite."
)
ANSWER_TITLE = "Perplexity AI Response"
ANSWER_URL = "https://perplexity.ai"


class PerplexityProvider(SearchProvider):
    name = "perplexity"
    description = (
        "AI-powered response generation combining real-time web search with "
        "large language models. Best for complex queries requiring reasoning "
        "and synthesis across multiple sources."
    )
    capabilities = frozenset([Capability.AI_RESPONSE])

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        body = {
            "model": MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": validated.query},
            ],
            "temperature": 0.2,
            "max_tokens": 1024,
            "return_related_questions": False,
        }

        async def request() -> list[SearchResult]:
            response = await self.http_client.post("/chat/completions", json=body)
            data = parse_response(PerplexityResponse, response.data, self.name)
            results = [
                SearchResult(
                    title=ANSWER_TITLE,
                    url=ANSWER_URL,
                    snippet=data.choices[0].message.content,
                    score=1.0,
                    source_provider=self.name,
                    metadata={"type": "ai_answer", "model": data.model or MODEL},
                )
            ]
            for index, citation in enumerate(data.citations, start=1):
                results.append(
                    SearchResult(
                        title=extract_domain(citation) or f"Source {index}",
                        url=citation,
                        snippet=f"Citation [{index}]",
                        source_provider=self.name,
                        metadata={"type": "source", "citation_index": index},
                    )
                )
            if validated.limit is not None:
                return results[: validated.limit]
            return results

        return await self.execute_with_retry(request)
