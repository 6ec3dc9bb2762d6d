"""Tests for fact-checking and enrichment providers."""

import httpx
import pytest

from conftest import json_handler, make_provider_config, request_json, routed_handler
from omnisearch_mcp.core.errors import ApiError, InvalidInputError
from omnisearch_mcp.core.models import Source
from omnisearch_mcp.providers.enhancement import JinaGroundingProvider, KagiEnrichmentProvider


def make(cls, handler, **config):
    return cls(make_provider_config(**config), transport=httpx.MockTransport(handler))


GROUNDING_RESPONSE = {
    "code": 200,
    "data": {
        "factuality": 0.95,
        "result": True,
        "reason": "Multiple sources agree.",
        "references": [
            {"url": "https://a.test", "keyQuote": "Water boils at 100C", "isSupportive": True},
            {"url": "https://b.test", "key_quote": None, "is_supportive": False},
        ],
        "usage": {"tokens": 1000},
    },
}


class TestJinaGrounding:
    """Tests for JinaGroundingProvider."""

    @pytest.mark.asyncio
    async def test_verdict_and_references(self):
        captured = []
        provider = make(JinaGroundingProvider, json_handler(GROUNDING_RESPONSE, requests=captured))

        result = await provider.enhance_content("Water boils at 100C at sea level")

        assert request_json(captured[0]) == {"statement": "Water boils at 100C at sea level"}
        assert captured[0].headers["Accept"] == "application/json"
        assert result.enhanced_content.startswith(
            "Factuality Score: 0.95\nVerdict: True\n\nReasoning: Multiple sources agree."
        )
        assert "✓ Water boils at 100C (https://a.test)" in result.enhanced_content
        assert "✗  (https://b.test)" in result.enhanced_content
        assert result.enhancements[0].type == "fact_verification"
        assert result.sources == [
            Source(title="Water boils at 100C", url="https://a.test"),
            Source(title="https://b.test", url="https://b.test"),
        ]
        assert result.source_provider == "jina_grounding"

    @pytest.mark.asyncio
    async def test_statement_too_long(self):
        captured = []
        provider = make(JinaGroundingProvider, json_handler(GROUNDING_RESPONSE, requests=captured))

        with pytest.raises(InvalidInputError, match="cannot exceed 2000 characters"):
            await provider.enhance_content("x" * 2001)
        assert captured == []

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        provider = make(JinaGroundingProvider, json_handler({"message": "bad"}, status_code=401))
        with pytest.raises(ApiError, match="Invalid API key"):
            await provider.enhance_content("claim")


def enrich_body(*items):
    return {"meta": {"id": "m"}, "data": list(items)}


class TestKagiEnrichment:
    """Tests for KagiEnrichmentProvider."""

    @pytest.mark.asyncio
    async def test_queries_both_indexes(self):
        captured = []
        handler = routed_handler(
            {
                "/web": enrich_body(
                    {"t": 0, "url": "https://web.test", "title": "Web", "snippet": "small web"},
                    {"t": 1, "list": ["related"]},
                ),
                "/news": enrich_body({"t": 0, "url": "https://news.test", "title": "News"}),
            },
            requests=captured,
        )
        provider = make(KagiEnrichmentProvider, handler, auth_type="custom")

        result = await provider.enhance_content("rust async runtimes")

        assert sorted(r.url.path for r in captured) == ["/news", "/web"]
        assert all(r.url.params["q"] == "rust async runtimes" for r in captured)
        assert captured[0].headers["Authorization"] == "Bot test-api-key-123"
        assert result.enhanced_content.startswith("rust async runtimes\n\n## Related Resources\n\n")
        assert "- [Web](https://web.test): small web" in result.enhanced_content
        assert "- [News](https://news.test)" in result.enhanced_content
        assert [s.url for s in result.sources] == ["https://web.test", "https://news.test"]
        assert result.enhancements[0].type == "content_enrichment"

    @pytest.mark.asyncio
    async def test_one_index_failing_is_tolerated(self):
        handler = routed_handler(
            {
                "/web": lambda request: httpx.Response(500, json={"error": "down"}),
                "/news": enrich_body({"t": 0, "url": "https://news.test", "title": "News"}),
            }
        )
        provider = make(KagiEnrichmentProvider, handler, auth_type="custom")

        result = await provider.enhance_content("topic")

        assert [s.url for s in result.sources] == ["https://news.test"]

    @pytest.mark.asyncio
    async def test_both_failing_raises(self):
        provider = make(
            KagiEnrichmentProvider, json_handler({"error": "nope"}, status_code=403), auth_type="custom"
        )
        with pytest.raises(ApiError):
            await provider.enhance_content("topic")

    @pytest.mark.asyncio
    async def test_no_results_returns_content_unchanged(self):
        provider = make(KagiEnrichmentProvider, json_handler(enrich_body()), auth_type="custom")

        result = await provider.enhance_content("obscure topic")

        assert result.enhanced_content == "obscure topic"
        assert result.enhancements == []
        assert result.sources is None
