"""Content enhancement providers."""

from omnisearch_mcp.providers.enhancement.jina_grounding import JinaGroundingProvider
from omnisearch_mcp.providers.enhancement.kagi_enrichment import KagiEnrichmentProvider

__all__ = ["JinaGroundingProvider", "KagiEnrichmentProvider"]
