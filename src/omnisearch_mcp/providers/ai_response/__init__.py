"""AI answer providers: the synthesized answer comes first, then its sources."""

from omnisearch_mcp.providers.ai_response.exa_answer import ExaAnswerProvider
from omnisearch_mcp.providers.ai_response.kagi_fastgpt import KagiFastGPTProvider
from omnisearch_mcp.providers.ai_response.perplexity import PerplexityProvider

__all__ = ["ExaAnswerProvider", "KagiFastGPTProvider", "PerplexityProvider"]
