"""omnisearch-mcp: web search, AI answers, content processing and enhancement over MCP."""

__version__ = "0.1.0"
