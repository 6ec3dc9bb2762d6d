"""Exa contents retrieval and similar-page discovery."""

from typing import Any, Sequence, Union

from omnisearch_mcp.core.models import (
    DEFAULT_EXTRACT_DEPTH,
    ExtractDepth,
    ProcessingResult,
    RawContent,
)
from omnisearch_mcp.core.schemas import ExaContentsResponse, ExaResult, parse_response
from omnisearch_mcp.core.shared import count_words
from omnisearch_mcp.core.validation import validate_string_array
from omnisearch_mcp.providers.base import (
    NO_CONTENT,
    ProcessingOptions,
    ProcessingProvider,
)
from omnisearch_mcp.providers.search.exa import ExaKeyAuth

PREVIEW_LENGTH = 500
MAX_ITEMS = 10


def _preview(text: str) -> str:
    return text[:PREVIEW_LENGTH] + ("..." if len(text) > PREVIEW_LENGTH else "")


def _contents_options(depth: ExtractDepth, max_characters: int) -> dict[str, Any]:
    advanced = depth == "advanced"
    return {
        "text": {"maxCharacters": max_characters},
        "highlights": advanced,
        "summary": advanced,
        "livecrawl": "preferred" if advanced else "fallback",
    }


class ExaContentsProvider(ExaKeyAuth, ProcessingProvider):
    """Full page contents for URLs or Exa result ids.

    When every item is an http(s) URL the request uses ``urls``; otherwise
    the items are treated as Exa result ids.
    """

    name = "exa_contents"
    description = (
        "Retrieve full page contents for URLs or Exa result ids, with "
        "highlights and summaries at advanced depth."
    )
    options = ProcessingOptions(max_urls=MAX_ITEMS)

    async def process_content(
        self,
        url: Union[str, Sequence[str]],
        extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH,
    ) -> ProcessingResult:
        items = [url] if isinstance(url, str) else url
        if all(isinstance(i, str) and i.startswith(("http://", "https://")) for i in items or []):
            urls, depth = self.validate_input(url, extract_depth)
            body: dict[str, Any] = {"urls": urls}
        else:
            ids = validate_string_array(
                items, "ids", self.name, max_items=MAX_ITEMS, allow_empty=False
            )
            if not ids:
                raise self.errors.invalid_input("At least one URL or id is required")
            depth = self.validate_depth(extract_depth)
            urls = ids
            body = {"ids": ids}
        body.update(_contents_options(depth, 3000), text=True)

        async def fetch() -> ExaContentsResponse:
            response = await self.http_client.post("/contents", json=body)
            return parse_response(ExaContentsResponse, response.data, self.name)

        data = await self.execute_with_retry(fetch)
        if not data.results:
            raise self.errors.provider_error("No content returned for the requested items")

        sections = [self._render(result) for result in data.results]
        content = "\n---\n\n".join(sections)
        raw_contents = [
            RawContent(url=r.url, content=r.text or r.summary or NO_CONTENT)
            for r in data.results[: len(urls)]
        ]
        return ProcessingResult(
            content=content,
            raw_contents=raw_contents,
            metadata=self.calculate_metadata(
                urls,
                depth,
                title=f"Content from {len(data.results)} Exa results",
                word_count=sum(count_words(r.content) for r in raw_contents),
                successful_extractions=len(raw_contents),
                requestId=data.requestId,
            ),
            source_provider=self.name,
        )

    def _render(self, result: ExaResult) -> str:
        out = f"## {result.title or result.url}\n\n"
        if result.author:
            out += f"**Author:** {result.author}\n"
        if result.publishedDate:
            out += f"**Published:** {result.publishedDate}\n"
        out += f"**URL:** {result.url}\n\n"
        if result.highlights:
            out += "**Key Highlights:**\n" + "".join(f"- {h}\n" for h in result.highlights) + "\n"
        if result.summary:
            out += f"**Summary:** {result.summary}\n\n"
        out += f"{result.text or NO_CONTENT}\n\n"
        return out


class ExaSimilarProvider(ExaKeyAuth, ProcessingProvider):
    name = "exa_similar"
    description = "Find web pages semantically similar to a given URL using Exa."
    options = ProcessingOptions(max_urls=1, allow_multiple_urls=False)

    async def process_content(
        self,
        url: Union[str, Sequence[str]],
        extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH,
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        target = urls[0]
        advanced = depth == "advanced"
        body = {
            "url": target,
            "numResults": 15 if advanced else 10,
            "contents": _contents_options(depth, 3000 if advanced else 1500),
        }

        async def fetch() -> ExaContentsResponse:
            response = await self.http_client.post("/findSimilar", json=body)
            return parse_response(ExaContentsResponse, response.data, self.name)

        data = await self.execute_with_retry(fetch)

        content = f"# Similar Pages to {target}\n\nFound {len(data.results)} similar pages:\n\n"
        for result in data.results:
            text = result.text or result.summary or NO_CONTENT
            content += f"## {result.title or result.url}\n\n"
            if result.author:
                content += f"**Author:** {result.author}\n"
            if result.publishedDate:
                content += f"**Published:** {result.publishedDate}\n"
            if result.score:
                content += f"**Similarity Score:** {result.score:.3f}\n"
            content += f"**URL:** {result.url}\n\n"
            if result.highlights:
                content += (
                    "**Key Highlights:**\n" + "".join(f"- {h}\n" for h in result.highlights) + "\n"
                )
            if result.summary and result.text:
                content += f"**Summary:** {result.summary}\n\n"
                content += f"**Content Preview:**\n{_preview(result.text)}\n\n"
            else:
                content += f"{_preview(text)}\n\n"
            content += "---\n\n"

        # Similar pages are listed in metadata; raw_contents stays keyed by the input URL
        return ProcessingResult(
            content=content,
            raw_contents=[RawContent(url=target, content=content)],
            metadata=self.calculate_metadata(
                urls,
                depth,
                title=f"Similar Pages to {target}",
                word_count=count_words(content),
                successful_extractions=1,
                similar_pages=[
                    {"url": r.url, "title": r.title, "score": r.score} for r in data.results
                ],
                requestId=data.requestId,
            ),
            source_provider=self.name,
        )
