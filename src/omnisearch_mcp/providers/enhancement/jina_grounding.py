"""Jina AI grounding: fact-check a statement against live web sources."""

from omnisearch_mcp.core.models import Enhancement, EnhancementResult, Source
from omnisearch_mcp.core.schemas import JinaGroundingResponse, parse_response
from omnisearch_mcp.providers.base import EnhancementProvider


class JinaGroundingProvider(EnhancementProvider):
    name = "jina_grounding"
    description = (
        "Real-time fact verification against web knowledge. Reduces "
        "hallucinations by checking a statement and citing supporting or "
        "contradicting references."
    )
    max_content_length = 2_000

    async def enhance_content(self, content: str) -> EnhancementResult:
        statement = self.validate_content(content)

        async def ground() -> JinaGroundingResponse:
            response = await self.http_client.post(
                json={"statement": statement}, headers={"Accept": "application/json"}
            )
            return parse_response(JinaGroundingResponse, response.data, self.name)

        data = (await self.execute_with_retry(ground)).data

        references = "\n\n".join(
            f"{'✓' if ref.is_supportive else '✗'} {ref.key_quote or ''} ({ref.url})"
            for ref in data.references
        )
        enhanced = (
            f"Factuality Score: {data.factuality}\n"
            f"Verdict: {'True' if data.result else 'False'}\n\n"
            f"Reasoning: {data.reason}\n\n"
            f"References:\n{references}"
        )
        return EnhancementResult(
            original_content=content,
            enhanced_content=enhanced,
            enhancements=[
                Enhancement(
                    type="fact_verification",
                    description="Verified factual accuracy against real-time web knowledge",
                )
            ],
            sources=[Source(title=ref.key_quote or ref.url, url=ref.url) for ref in data.references],
            source_provider=self.name,
        )
