"""Upstream response schemas (Pydantic).

One model per upstream response shape, validated at the HTTP boundary by
``parse_response``. Models ignore unknown fields; shapes that upstreams
change often (Firecrawl payloads, Exa metadata) keep them via
``extra="allow"`` so nothing is silently lost from result metadata.
"""

from typing import Any, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from omnisearch_mcp.core.errors import ApiError

M = TypeVar("M", bound=BaseModel)


class UpstreamModel(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}


class OpenUpstreamModel(BaseModel):
    model_config = {"extra": "allow", "populate_by_name": True}


def parse_response(model: Type[M], data: Any, provider: str) -> M:
    """Validate ``data`` against ``model``.

    Raises:
        ApiError: The body does not match the expected shape.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError(
            f"Malformed response from upstream: {e.error_count()} validation error(s)",
            provider,
            {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TavilyResult(UpstreamModel):
    title: Optional[str] = None
    url: str
    content: Optional[str] = None
    score: Optional[float] = None
    published_date: Optional[str] = None


class TavilySearchResponse(UpstreamModel):
    query: Optional[str] = None
    answer: Optional[str] = None
    results: list[TavilyResult] = Field(default_factory=list)


class BraveWebResult(UpstreamModel):
    title: Optional[str] = None
    url: str
    description: Optional[str] = None
    age: Optional[str] = None
    language: Optional[str] = None
    extra_snippets: Optional[list[str]] = None


class BraveWebSection(UpstreamModel):
    results: list[BraveWebResult] = Field(default_factory=list)


class BraveSearchResponse(UpstreamModel):
    web: BraveWebSection = Field(default_factory=BraveWebSection)


class KagiSearchItem(UpstreamModel):
    t: int = 0
    rank: Optional[float] = None
    url: Optional[str] = None
    title: Optional[str] = None
    snippet: Optional[str] = None
    published: Optional[str] = None


class KagiSearchResponse(UpstreamModel):
    meta: dict[str, Any] = Field(default_factory=dict)
    data: list[KagiSearchItem] = Field(default_factory=list)


class ExaResult(OpenUpstreamModel):
    id: Optional[str] = None
    title: Optional[str] = None
    url: str
    publishedDate: Optional[str] = None
    author: Optional[str] = None
    text: Optional[str] = None
    score: Optional[float] = None
    highlights: Optional[list[str]] = None
    summary: Optional[str] = None


class ExaSearchResponse(UpstreamModel):
    requestId: Optional[str] = None
    autopromptString: Optional[str] = None
    resolvedSearchType: Optional[str] = None
    results: list[ExaResult] = Field(default_factory=list)


class GitHubTextMatch(UpstreamModel):
    fragment: Optional[str] = None


class GitHubRepositoryRef(UpstreamModel):
    full_name: str
    html_url: Optional[str] = None


class GitHubCodeItem(UpstreamModel):
    name: str
    path: str
    html_url: str
    repository: GitHubRepositoryRef
    score: Optional[float] = None
    text_matches: Optional[list[GitHubTextMatch]] = None


class GitHubRepositoryItem(UpstreamModel):
    full_name: str
    html_url: str
    description: Optional[str] = None
    language: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    score: Optional[float] = None
    updated_at: Optional[str] = None


class GitHubUserItem(UpstreamModel):
    login: str
    html_url: str
    type: Optional[str] = None
    score: Optional[float] = None
    bio: Optional[str] = None


class GitHubCodeSearchResponse(UpstreamModel):
    total_count: int = 0
    items: list[GitHubCodeItem] = Field(default_factory=list)


class GitHubRepositorySearchResponse(UpstreamModel):
    total_count: int = 0
    items: list[GitHubRepositoryItem] = Field(default_factory=list)


class GitHubUserSearchResponse(UpstreamModel):
    total_count: int = 0
    items: list[GitHubUserItem] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# AI response
# ---------------------------------------------------------------------------


class PerplexityMessage(UpstreamModel):
    content: str


class PerplexityChoice(UpstreamModel):
    message: PerplexityMessage


class PerplexityResponse(UpstreamModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[PerplexityChoice] = Field(min_length=1)
    citations: list[str] = Field(default_factory=list)


class KagiReference(UpstreamModel):
    title: Optional[str] = None
    snippet: Optional[str] = None
    url: Optional[str] = None


class KagiFastGPTData(UpstreamModel):
    output: str
    tokens: Optional[int] = None
    references: list[KagiReference] = Field(default_factory=list)


class KagiFastGPTResponse(UpstreamModel):
    meta: dict[str, Any] = Field(default_factory=dict)
    data: KagiFastGPTData


class ExaAnswerSource(OpenUpstreamModel):
    id: Optional[str] = None
    title: Optional[str] = None
    url: str
    text: Optional[str] = None
    author: Optional[str] = None
    publishedDate: Optional[str] = None


class ExaAnswerResponse(UpstreamModel):
    answer: str
    requestId: Optional[str] = None
    sources: list[ExaAnswerSource] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


class TavilyExtractResult(UpstreamModel):
    url: str
    raw_content: Optional[str] = None


class TavilyExtractResponse(UpstreamModel):
    results: list[TavilyExtractResult] = Field(default_factory=list)
    failed_results: list[Any] = Field(default_factory=list)


class JinaReaderData(OpenUpstreamModel):
    title: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[str] = None


class JinaReaderResponse(UpstreamModel):
    code: Optional[int] = None
    data: JinaReaderData


class KagiSummarizerData(UpstreamModel):
    output: str
    tokens: Optional[int] = None


class KagiSummarizerResponse(UpstreamModel):
    meta: dict[str, Any] = Field(default_factory=dict)
    data: KagiSummarizerData


class FirecrawlPage(OpenUpstreamModel):
    url: Optional[str] = None
    error: Optional[str] = None
    markdown: Optional[str] = None
    html: Optional[str] = None
    rawHtml: Optional[str] = None
    screenshot: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def best_content(self) -> str:
        return self.markdown or self.html or self.rawHtml or ""

    def source_url(self, default: str) -> str:
        return self.url or self.metadata.get("sourceURL") or default


class FirecrawlScrapeResponse(UpstreamModel):
    success: bool = True
    data: Optional[FirecrawlPage] = None
    error: Optional[str] = None


class FirecrawlJobResponse(UpstreamModel):
    success: bool = True
    id: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


class FirecrawlCrawlStatus(UpstreamModel):
    status: str
    total: Optional[int] = None
    completed: Optional[int] = None
    data: list[FirecrawlPage] = Field(default_factory=list)


class FirecrawlMapResponse(UpstreamModel):
    success: bool = True
    links: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class FirecrawlExtractStatus(UpstreamModel):
    status: str
    data: dict[str, Any] = Field(default_factory=dict)
    sources: Optional[Any] = None


class ExaContentsResponse(UpstreamModel):
    requestId: Optional[str] = None
    results: list[ExaResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Enhancement
# ---------------------------------------------------------------------------


class JinaGroundingReference(UpstreamModel):
    url: str
    key_quote: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("key_quote", "keyQuote")
    )
    is_supportive: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("is_supportive", "isSupportive")
    )


class JinaGroundingData(UpstreamModel):
    factuality: float
    result: bool
    reason: str
    references: list[JinaGroundingReference] = Field(default_factory=list)
    usage: dict[str, Any] = Field(default_factory=dict)


class JinaGroundingResponse(UpstreamModel):
    code: Optional[int] = None
    data: JinaGroundingData


class KagiEnrichItem(UpstreamModel):
    t: int
    url: Optional[str] = None
    title: Optional[str] = None
    snippet: Optional[str] = None


class KagiEnrichResponse(UpstreamModel):
    meta: dict[str, Any] = Field(default_factory=dict)
    data: list[KagiEnrichItem] = Field(default_factory=list)
