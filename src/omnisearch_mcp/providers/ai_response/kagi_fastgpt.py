"""Kagi FastGPT quick answers."""

from typing import Any, Mapping, Union

from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import KagiFastGPTResponse, parse_response
from omnisearch_mcp.providers.base import BotKeyAuth, Capability, SearchProvider

ANSWER_TITLE = "Kagi FastGPT Response"
ANSWER_URL = "https://kagi.com/fastgpt"


class KagiFastGPTProvider(BotKeyAuth, SearchProvider):
    name = "kagi_fastgpt"
    description = (
        "Quick AI-generated answers with citations, optimized for rapid "
        "response. Runs a full search underneath for enriched answers."
    )
    capabilities = frozenset([Capability.AI_RESPONSE])

    async def search(self, params: Union[SearchParams, Mapping[str, Any]]) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        body = {"query": validated.query, "cache": True, "web_search": True}

        async def request() -> list[SearchResult]:
            response = await self.http_client.post("/fastgpt", json=body)
            data = parse_response(KagiFastGPTResponse, response.data, self.name)
            candidates = [
                SearchResult(
                    title=ANSWER_TITLE,
                    url=ANSWER_URL,
                    snippet=data.data.output,
                    source_provider=self.name,
                    metadata={"type": "ai_answer", "tokens": data.data.tokens},
                )
            ]
            candidates.extend(
                SearchResult(
                    title=ref.title or "",
                    url=ref.url or "",
                    snippet=ref.snippet or "",
                    source_provider=self.name,
                    metadata={"type": "source"},
                )
                for ref in data.data.references
            )
            # References can arrive without a title, url or snippet
            results = [r for r in candidates if r.title and r.url and r.snippet]
            if validated.limit is not None:
                return results[: validated.limit]
            return results

        return await self.execute_with_retry(request)
