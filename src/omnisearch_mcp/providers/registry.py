"""Explicit provider registry, built once at startup.

``initialize_providers`` instantiates every provider whose API key is
configured, groups them into four categories, and freezes the registry.
Nothing registers providers after startup, so request handling never
mutates it.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import httpx

from omnisearch_mcp.config import ServerConfig
from omnisearch_mcp.core.errors import ProviderError
from omnisearch_mcp.core.retry import SleepFunc
from omnisearch_mcp.providers.ai_response import (
    ExaAnswerProvider,
    KagiFastGPTProvider,
    PerplexityProvider,
)
from omnisearch_mcp.providers.base import (
    BaseProvider,
    EnhancementProvider,
    ProcessingProvider,
    SearchProvider,
)
from omnisearch_mcp.providers.enhancement import JinaGroundingProvider, KagiEnrichmentProvider
from omnisearch_mcp.providers.processing import (
    ExaContentsProvider,
    ExaSimilarProvider,
    FirecrawlActionsProvider,
    FirecrawlCrawlProvider,
    FirecrawlExtractProvider,
    FirecrawlMapProvider,
    FirecrawlScrapeProvider,
    JinaReaderProvider,
    KagiSummarizerProvider,
    TavilyExtractProvider,
)
from omnisearch_mcp.providers.search import (
    BraveSearchProvider,
    ExaSearchProvider,
    GitHubSearchProvider,
    KagiSearchProvider,
    TavilySearchProvider,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseProvider)

CATEGORIES = ("search", "ai_response", "processing", "enhancement")

SEARCH_PROVIDERS: tuple[Type[SearchProvider], ...] = (
    TavilySearchProvider,
    BraveSearchProvider,
    KagiSearchProvider,
    ExaSearchProvider,
    GitHubSearchProvider,
)
AI_RESPONSE_PROVIDERS: tuple[Type[SearchProvider], ...] = (
    PerplexityProvider,
    KagiFastGPTProvider,
    ExaAnswerProvider,
)
PROCESSING_PROVIDERS: tuple[Type[ProcessingProvider], ...] = (
    TavilyExtractProvider,
    JinaReaderProvider,
    KagiSummarizerProvider,
    FirecrawlScrapeProvider,
    FirecrawlCrawlProvider,
    FirecrawlMapProvider,
    FirecrawlExtractProvider,
    FirecrawlActionsProvider,
    ExaContentsProvider,
    ExaSimilarProvider,
)
ENHANCEMENT_PROVIDERS: tuple[Type[EnhancementProvider], ...] = (
    JinaGroundingProvider,
    KagiEnrichmentProvider,
)


class ProviderRegistry:
    """Providers grouped by category and addressable by name."""

    def __init__(self) -> None:
        self._providers: Dict[str, Dict[str, BaseProvider]] = {c: {} for c in CATEGORIES}
        self._frozen = False

    def register(self, category: str, provider: BaseProvider) -> None:
        if self._frozen:
            raise RuntimeError("Provider registry is frozen; register providers at startup")
        if category not in self._providers:
            raise ValueError(f"Unknown provider category: {category}")
        if provider.name in self._providers[category]:
            raise ValueError(f"Provider already registered: {category}/{provider.name}")
        self._providers[category][provider.name] = provider

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def category(self, category: str) -> Mapping[str, BaseProvider]:
        return MappingProxyType(self._providers[category])

    @property
    def search(self) -> Mapping[str, SearchProvider]:
        return self.category("search")  # type: ignore[return-value]

    @property
    def ai_response(self) -> Mapping[str, SearchProvider]:
        return self.category("ai_response")  # type: ignore[return-value]

    @property
    def processing(self) -> Mapping[str, ProcessingProvider]:
        return self.category("processing")  # type: ignore[return-value]

    @property
    def enhancement(self) -> Mapping[str, EnhancementProvider]:
        return self.category("enhancement")  # type: ignore[return-value]

    def get(self, name: str) -> Optional[BaseProvider]:
        for providers in self._providers.values():
            if name in providers:
                return providers[name]
        return None

    def available(self) -> Dict[str, list[str]]:
        return {c: list(p) for c, p in self._providers.items()}

    def __len__(self) -> int:
        return sum(len(p) for p in self._providers.values())


def _build(
    cls: Type[P], config: ServerConfig, provider_kwargs: Mapping[str, Any]
) -> Optional[P]:
    provider_config = config.provider_config(cls.name)
    if provider_config is None:
        logger.debug("Skipping %s: API key not configured", cls.name)
        return None
    try:
        return cls(provider_config, **provider_kwargs)
    except ProviderError as e:
        logger.warning("Skipping %s: %s", cls.name, e)
        return None


def initialize_providers(
    config: ServerConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep_func: Optional[SleepFunc] = None,
) -> ProviderRegistry:
    """Build and freeze the registry from ``config``.

    Providers whose API key is unset are skipped. ``transport`` and
    ``sleep_func`` are passed to every provider (tests use them to fake the
    network and time).
    """
    registry = ProviderRegistry()
    provider_kwargs = {"transport": transport, "sleep_func": sleep_func}

    groups: tuple[tuple[str, tuple[Type[BaseProvider], ...]], ...] = (
        ("search", SEARCH_PROVIDERS),
        ("ai_response", AI_RESPONSE_PROVIDERS),
        ("processing", PROCESSING_PROVIDERS),
        ("enhancement", ENHANCEMENT_PROVIDERS),
    )
    for category, classes in groups:
        for cls in classes:
            provider = _build(cls, config, provider_kwargs)
            if provider is not None:
                registry.register(category, provider)

    registry.freeze()
    for category, names in registry.available().items():
        logger.info(
            "Available %s providers: %s", category, ", ".join(names) if names else "none"
        )
    return registry


__all__ = ["CATEGORIES", "ProviderRegistry", "initialize_providers"]
