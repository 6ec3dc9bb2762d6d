"""Kagi enrichment: supplementary results from Kagi's small-web indexes.

The web (Teclis) and news (TinyGem) enrichment endpoints are queried
concurrently. One endpoint failing is tolerated; both failing raises the
first error.
"""

import asyncio
import logging

from omnisearch_mcp.core.models import Enhancement, EnhancementResult, Source
from omnisearch_mcp.core.schemas import KagiEnrichItem, KagiEnrichResponse, parse_response
from omnisearch_mcp.core.validation import sanitize_query
from omnisearch_mcp.providers.base import BotKeyAuth, EnhancementProvider

logger = logging.getLogger(__name__)

ENRICH_INDEXES = ("web", "news")
MAX_QUERY_LENGTH = 500
SEARCH_RESULT_TYPE = 0


class KagiEnrichmentProvider(BotKeyAuth, EnhancementProvider):
    name = "kagi_enrichment"
    description = (
        "Supplementary content from Kagi's specialized indexes (Teclis for web, "
        "TinyGem for news). Ideal for non-mainstream results."
    )

    async def enhance_content(self, content: str) -> EnhancementResult:
        text = self.validate_content(content)
        query = sanitize_query(text)[:MAX_QUERY_LENGTH]

        async def enrich(index: str) -> list[KagiEnrichItem]:
            async def request() -> list[KagiEnrichItem]:
                response = await self.http_client.get(f"/{index}", params={"q": query})
                data = parse_response(KagiEnrichResponse, response.data, self.name)
                return [i for i in data.data if i.t == SEARCH_RESULT_TYPE and i.url]

            return await self.execute_with_retry(request)

        gathered = await asyncio.gather(
            *(enrich(index) for index in ENRICH_INDEXES), return_exceptions=True
        )
        errors = [g for g in gathered if isinstance(g, BaseException)]
        if len(errors) == len(gathered):
            raise errors[0]
        for index, outcome in zip(ENRICH_INDEXES, gathered):
            if isinstance(outcome, BaseException):
                logger.warning("%s %s enrichment failed: %s", self.name, index, outcome)

        items = [item for g in gathered if isinstance(g, list) for item in g]
        if not items:
            return EnhancementResult(
                original_content=content,
                enhanced_content=content,
                enhancements=[],
                source_provider=self.name,
            )

        related = "\n".join(
            f"- [{item.title or item.url}]({item.url})"
            + (f": {item.snippet}" if item.snippet else "")
            for item in items
        )
        return EnhancementResult(
            original_content=content,
            enhanced_content=f"{content}\n\n## Related Resources\n\n{related}",
            enhancements=[
                Enhancement(
                    type="content_enrichment",
                    description="Added supplementary information from specialized knowledge indexes",
                )
            ],
            sources=[Source(title=item.title or item.url, url=item.url) for item in items],
            source_provider=self.name,
        )
