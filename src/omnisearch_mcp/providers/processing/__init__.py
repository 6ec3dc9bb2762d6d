"""URL processing providers: extraction, crawling, mapping and summarization."""

from omnisearch_mcp.providers.processing.exa import ExaContentsProvider, ExaSimilarProvider
from omnisearch_mcp.providers.processing.firecrawl import (
    FirecrawlActionsProvider,
    FirecrawlCrawlProvider,
    FirecrawlExtractProvider,
    FirecrawlMapProvider,
    FirecrawlScrapeProvider,
)
from omnisearch_mcp.providers.processing.jina_reader import JinaReaderProvider
from omnisearch_mcp.providers.processing.kagi_summarizer import KagiSummarizerProvider
from omnisearch_mcp.providers.processing.tavily_extract import TavilyExtractProvider

__all__ = [
    "ExaContentsProvider",
    "ExaSimilarProvider",
    "FirecrawlActionsProvider",
    "FirecrawlCrawlProvider",
    "FirecrawlExtractProvider",
    "FirecrawlMapProvider",
    "FirecrawlScrapeProvider",
    "JinaReaderProvider",
    "KagiSummarizerProvider",
    "TavilyExtractProvider",
]
