"""Firecrawl scrape, crawl, map, extract and actions providers.

Each provider's ``base_url`` is its Firecrawl endpoint (``/v1/scrape``,
``/v1/crawl`` ...), so requests post to the base URL itself. Crawl and
extract are asynchronous jobs: the start request returns a job id and the
result is polled from ``{base_url}/{id}``. Only the start request is retried;
polling has its own attempt budget.
"""

from typing import Any, Mapping, Optional, Sequence, Union

from omnisearch_mcp.core.http import join_url
from omnisearch_mcp.core.models import (
    DEFAULT_EXTRACT_DEPTH,
    ExtractDepth,
    ProcessingResult,
    RawContent,
)
from omnisearch_mcp.core.schemas import (
    FirecrawlCrawlStatus,
    FirecrawlExtractStatus,
    FirecrawlJobResponse,
    FirecrawlMapResponse,
    FirecrawlScrapeResponse,
    parse_response,
)
from omnisearch_mcp.core.shared import count_words
from omnisearch_mcp.providers.base import ContentItem, ProcessingOptions, ProcessingProvider

UrlInput = Union[str, Sequence[str]]

SINGLE_URL = ProcessingOptions(max_urls=1, allow_multiple_urls=False)

CRAWL_MAX_ATTEMPTS = 20
CRAWL_POLL_INTERVAL = 5.0
EXTRACT_MAX_ATTEMPTS = 15
EXTRACT_POLL_INTERVAL = 3.0
STATUS_TIMEOUT = 30.0

EXTRACT_PROMPTS = {
    "advanced": (
        "Extract all relevant information from this page including: title, author, "
        "date published, main content, categories or tags, related links, and any "
        "structured data like product information, pricing, or specifications. "
        "Format the data in a well-structured way."
    ),
    "basic": (
        "Extract the main content, title, and author from this page. "
        "Summarize the key information."
    ),
}

LOAD_MORE_SELECTOR = (
    'button:contains("Read more"), button:contains("Show more"), '
    'a:contains("Read more"), a:contains("Show more")'
)

ACTION_SCRIPTS: dict[str, list[dict[str, Any]]] = {
    "basic": [
        {"type": "wait", "milliseconds": 2000},
        {"type": "scroll", "milliseconds": 1000},
        {"type": "wait", "milliseconds": 1000},
    ],
    "advanced": [
        {"type": "wait", "milliseconds": 2000},
        {"type": "scroll", "milliseconds": 1000},
        {"type": "wait", "milliseconds": 1000},
        {"type": "scroll", "milliseconds": 1000},
        {"type": "wait", "milliseconds": 1000},
        {"type": "click", "selector": LOAD_MORE_SELECTOR},
        {"type": "wait", "milliseconds": 2000},
    ],
}


def _wait_for(depth: ExtractDepth) -> int:
    return 5000 if depth == "advanced" else 2000


class FirecrawlProvider(ProcessingProvider):
    """Request helpers shared by the Firecrawl endpoints."""

    async def submit(self, body: Mapping[str, Any]) -> Any:
        response = await self.http_client.post(json=dict(body))
        return response.data

    def ensure_success(self, payload: Any, message: str) -> None:
        """Raise when Firecrawl reports ``success: false`` or an error string."""
        if not payload.success or payload.error:
            raise self.errors.provider_error(f"{message}: {payload.error or 'Unknown error'}")

    async def start_job(self, body: Mapping[str, Any], message: str) -> str:
        """Start an asynchronous job and return its id."""

        async def start() -> str:
            job = parse_response(FirecrawlJobResponse, await self.submit(body), self.name)
            self.ensure_success(job, message)
            if not job.id:
                raise self.errors.provider_error(f"{message}: no job id returned")
            return job.id

        return await self.execute_with_retry(start)

    def job_status_url(self, job_id: str) -> str:
        return join_url(self.config.base_url, job_id)


class FirecrawlScrapeProvider(FirecrawlProvider):
    name = "firecrawl_scrape"
    description = (
        "Extract clean, LLM-ready markdown from one or more web pages using "
        "Firecrawl. Handles JavaScript-rendered pages. URLs that fail are "
        "reported in failed_urls while the rest still return content."
    )
    options = ProcessingOptions(max_urls=10)

    async def process_content(
        self, url: UrlInput, extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)

        async def scrape(target: str) -> ContentItem:
            body = {
                "url": target,
                "formats": ["markdown"],
                "onlyMainContent": True,
                "waitFor": _wait_for(depth),
            }
            data = parse_response(FirecrawlScrapeResponse, await self.submit(body), self.name)
            self.ensure_success(data, "Error scraping URL")
            content = data.data.best_content() if data.data else ""
            if not content:
                raise self.errors.provider_error(f"No content extracted from {target}")
            return ContentItem(url=target, content=content, title=data.data.metadata.get("title"))

        outcomes = await self.fetch_each(urls, scrape)
        return self.aggregate_url_results(outcomes, urls, depth)


class FirecrawlCrawlProvider(FirecrawlProvider):
    name = "firecrawl_crawl"
    description = (
        "Crawl accessible subpages of a website with a depth limit using "
        "Firecrawl. Best for site analysis and collecting content from a "
        "whole documentation site."
    )
    options = SINGLE_URL

    async def process_content(
        self, url: UrlInput, extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        root = urls[0]
        advanced = depth == "advanced"
        body = {
            "url": root,
            "scrapeOptions": {"formats": ["markdown"], "onlyMainContent": True},
            "maxDepth": 3 if advanced else 1,
            "limit": 50 if advanced else 20,
        }

        job_id = await self.start_job(body, "Error starting crawl")
        status = await self.poll_job_status(
            self.job_status_url(job_id),
            max_attempts=CRAWL_MAX_ATTEMPTS,
            poll_interval=CRAWL_POLL_INTERVAL,
            timeout=STATUS_TIMEOUT,
        )
        crawl = parse_response(FirecrawlCrawlStatus, status, self.name)

        pages = [p for p in crawl.data if not p.error and p.best_content()]
        if not pages:
            raise self.errors.provider_error(
                "Crawl returned no content; try again later or with a smaller scope"
            )

        items = [
            ContentItem(url=p.source_url(root), content=p.best_content(), title=p.metadata.get("title"))
            for p in pages
        ]
        # Every crawled page counts as a processed URL
        crawled_urls = [p.source_url(root) for p in crawl.data]
        extra: dict[str, Any] = {"crawl_root": root, "title": items[0].title}
        failed = [p.source_url(root) for p in crawl.data if p.error]
        if failed:
            extra["failed_urls"] = failed
        return self.build_result(items, crawled_urls, depth, **extra)


class FirecrawlMapProvider(FirecrawlProvider):
    name = "firecrawl_map"
    description = (
        "Discover the URLs of a website quickly using Firecrawl's map endpoint. "
        "Best for understanding site structure before a targeted scrape or crawl."
    )
    options = SINGLE_URL

    async def process_content(
        self, url: UrlInput, extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        root = urls[0]
        body = {
            "url": root,
            "limit": 200 if depth == "advanced" else 50,
            "ignoreSitemap": False,
            "includeSubdomains": False,
        }

        async def map_site() -> list[str]:
            data = parse_response(FirecrawlMapResponse, await self.submit(body), self.name)
            self.ensure_success(data, "Error mapping website")
            return data.links

        links = await self.execute_with_retry(map_site)
        if not links:
            raise self.errors.provider_error("No URLs discovered during mapping")

        content = f"# Site Map for {root}\n\nFound {len(links)} URLs:\n\n" + "\n".join(
            f"- {link}" for link in links
        )
        return ProcessingResult(
            content=content,
            raw_contents=[RawContent(url=root, content=content)],
            metadata=self.calculate_metadata(
                urls,
                depth,
                title=f"Site Map for {root}",
                word_count=len(links),
                successful_extractions=1,
            ),
            source_provider=self.name,
        )


def _heading(key: str) -> str:
    return f"## {key[:1].upper()}{key[1:]}\n\n"


def render_extracted_data(url: str, data: Mapping[str, Any]) -> str:
    """Render extracted fields as markdown sections."""
    out = f"# Extracted Data from {url}\n\n"
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, list):
            out += _heading(key)
            for index, item in enumerate(value, start=1):
                if isinstance(item, Mapping):
                    out += f"### Item {index}\n\n"
                    out += "".join(f"- **{k}**: {v}\n" for k, v in item.items())
                    out += "\n"
                else:
                    out += f"- {item}\n"
            out += "\n"
        elif isinstance(value, Mapping):
            out += _heading(key)
            out += "".join(f"- **{k}**: {v}\n" for k, v in value.items())
            out += "\n"
        else:
            out += f"{_heading(key)}{value}\n\n"
    return out


class FirecrawlExtractProvider(FirecrawlProvider):
    name = "firecrawl_extract"
    description = (
        "Extract structured data from a web page using Firecrawl's AI extraction. "
        "Best for pulling titles, authors, dates, pricing or specifications."
    )
    options = SINGLE_URL

    async def process_content(
        self, url: UrlInput, extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        target = urls[0]
        body = {
            "urls": [target],
            "prompt": EXTRACT_PROMPTS[depth],
            "showSources": True,
            "scrapeOptions": {
                "formats": ["markdown"],
                "onlyMainContent": True,
                "waitFor": _wait_for(depth),
            },
        }

        job_id = await self.start_job(body, "Error starting extraction")
        status = await self.poll_job_status(
            self.job_status_url(job_id),
            max_attempts=EXTRACT_MAX_ATTEMPTS,
            poll_interval=EXTRACT_POLL_INTERVAL,
            timeout=STATUS_TIMEOUT,
        )
        extracted = parse_response(FirecrawlExtractStatus, status, self.name)

        content = render_extracted_data(target, extracted.data)
        title = extracted.data.get("title")
        return ProcessingResult(
            content=content,
            raw_contents=[RawContent(url=target, content=content)],
            metadata=self.calculate_metadata(
                urls,
                depth,
                title=title if isinstance(title, str) and title else f"Extracted Data from {target}",
                word_count=count_words(content),
                successful_extractions=1,
            ),
            source_provider=self.name,
        )


def describe_action(index: int, action: Mapping[str, Any]) -> str:
    kind = action.get("type")
    duration: Optional[int] = action.get("milliseconds")
    if kind == "click":
        return f"{index}. Click on {action.get('selector')}"
    if kind in ("scroll", "wait"):
        verb = "Scroll" if kind == "scroll" else "Wait"
        return f"{index}. {verb} for {duration}ms" if duration else f"{index}. {verb}"
    return f"{index}. Perform {kind} action"


class FirecrawlActionsProvider(FirecrawlProvider):
    name = "firecrawl_actions"
    description = (
        "Interact with a page (wait, scroll, click 'load more') before extracting "
        "its content using Firecrawl. Best for JavaScript-heavy sites and content "
        "that only appears after user interaction."
    )
    options = SINGLE_URL

    async def process_content(
        self, url: UrlInput, extract_depth: ExtractDepth = DEFAULT_EXTRACT_DEPTH
    ) -> ProcessingResult:
        urls, depth = self.validate_input(url, extract_depth)
        target = urls[0]
        actions = ACTION_SCRIPTS[depth]
        body = {"url": target, "formats": ["markdown", "screenshot"], "actions": actions}

        async def perform() -> FirecrawlScrapeResponse:
            data = parse_response(FirecrawlScrapeResponse, await self.submit(body), self.name)
            self.ensure_success(data, "Error performing actions")
            if data.data is None or not data.data.best_content():
                raise self.errors.provider_error("No content extracted after performing actions")
            return data

        data = await self.execute_with_retry(perform)
        page = data.data
        title = f"Content from {target} after interactions"
        content = (
            f"# {title}\n\n"
            "The following actions were performed before extraction:\n\n"
            + "\n".join(describe_action(i, a) for i, a in enumerate(actions, start=1))
            + "\n\n---\n\n"
            + page.best_content()
        )
        return ProcessingResult(
            content=content,
            raw_contents=[RawContent(url=target, content=content)],
            metadata=self.calculate_metadata(
                urls,
                depth,
                title=title,
                word_count=count_words(content),
                successful_extractions=1,
                screenshot=page.screenshot,
            ),
            source_provider=self.name,
        )
