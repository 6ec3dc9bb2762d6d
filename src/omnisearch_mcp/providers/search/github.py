"""GitHub code, repository and user search.

One provider, three capabilities. ``search`` is code search; the
``github_search`` router reaches the other two through
``search_repositories`` and ``search_users``.

GitHub qualifiers (``filename:``, ``path:``, ``repo:``, ``language:``) are
passed through untouched; they are not parsed as search operators.
"""

from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from omnisearch_mcp.core.errors import ApiError
from omnisearch_mcp.core.models import SearchParams, SearchResult
from omnisearch_mcp.core.schemas import (
    GitHubCodeSearchResponse,
    GitHubRepositorySearchResponse,
    GitHubUserSearchResponse,
    parse_response,
)
from omnisearch_mcp.core.validation import validate_enum
from omnisearch_mcp.providers.base import Capability, SearchProvider

TEXT_MATCH_MEDIA_TYPE = "application/vnd.github.v3.text-match+json"
REPOSITORY_SORTS = ("stars", "forks", "updated")
MAX_FRAGMENTS = 2
UNPROCESSABLE = 422

SearchParamsInput = Union[SearchParams, Mapping[str, Any]]


class GitHubSearchProvider(SearchProvider):
    name = "github"
    description = (
        "Search GitHub for code, repositories or users. Supports GitHub query "
        "qualifiers such as filename:, path:, repo:, user:, language: and in:file, "
        "e.g. `filename:settings.json path:.claude`."
    )
    capabilities = frozenset(
        [Capability.CODE_SEARCH, Capability.REPOSITORY_SEARCH, Capability.USER_SEARCH]
    )

    def custom_auth_headers(self, api_key: str) -> Mapping[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def search(self, params: SearchParamsInput) -> list[SearchResult]:
        return await self.search_code(params)

    async def search_code(self, params: SearchParamsInput) -> list[SearchResult]:
        validated = self.validate_search_params(params)

        async def request() -> list[SearchResult]:
            response = await self._get(
                "/search/code",
                validated,
                headers={"Accept": TEXT_MATCH_MEDIA_TYPE},
            )
            data = parse_response(GitHubCodeSearchResponse, response, self.name)
            results = []
            for item in data.items:
                fragments = [m.fragment for m in item.text_matches or [] if m.fragment]
                snippet = (
                    " ... ".join(fragments[:MAX_FRAGMENTS])
                    if fragments
                    else f"No snippet available for {item.path}"
                )
                results.append(
                    SearchResult(
                        title=f"{item.repository.full_name}/{item.path}",
                        url=item.html_url,
                        snippet=snippet,
                        score=item.score,
                        source_provider=self.name,
                        metadata={
                            "repository": item.repository.full_name,
                            "file_path": item.path,
                            "file_name": item.name,
                            "search_type": "code",
                        },
                    )
                )
            return results

        return await self.execute_with_retry(request)

    async def search_repositories(self, params: SearchParamsInput) -> list[SearchResult]:
        validated = self.validate_search_params(params)
        sort = validate_enum(
            params.get("sort") if isinstance(params, Mapping) else None,
            REPOSITORY_SORTS,
            "sort",
            self.name,
        )

        async def request() -> list[SearchResult]:
            response = await self._get("/search/repositories", validated, sort=sort)
            data = parse_response(GitHubRepositorySearchResponse, response, self.name)
            results = []
            for repo in data.items:
                snippet = repo.description or "No description available."
                if repo.language:
                    snippet += f" • Language: {repo.language}"
                snippet += f" • ⭐ {repo.stargazers_count} • 🍴 {repo.forks_count}"
                results.append(
                    SearchResult(
                        title=repo.full_name,
                        url=repo.html_url,
                        snippet=snippet,
                        score=repo.score,
                        source_provider=self.name,
                        metadata={
                            "repository": repo.full_name,
                            "language": repo.language,
                            "stars": repo.stargazers_count,
                            "forks": repo.forks_count,
                            "search_type": "repository",
                        },
                    )
                )
            return results

        return await self.execute_with_retry(request)

    async def search_users(self, params: SearchParamsInput) -> list[SearchResult]:
        validated = self.validate_search_params(params)

        async def request() -> list[SearchResult]:
            response = await self._get("/search/users", validated)
            data = parse_response(GitHubUserSearchResponse, response, self.name)
            return [
                SearchResult(
                    title=user.login,
                    url=user.html_url,
                    snippet=user.bio or f"GitHub user: {user.login} • {user.type}",
                    score=user.score,
                    source_provider=self.name,
                    metadata={
                        "username": user.login,
                        "user_type": user.type,
                        "search_type": "user",
                    },
                )
                for user in data.items
            ]

        return await self.execute_with_retry(request)

    def operations(self) -> dict[str, Callable[[SearchParamsInput], Awaitable[list[SearchResult]]]]:
        """Search operations keyed by ``search_type``."""
        return {
            "code": self.search_code,
            "repositories": self.search_repositories,
            "users": self.search_users,
        }

    async def _get(
        self,
        path: str,
        params: SearchParams,
        *,
        sort: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        query_params: dict[str, Any] = {"q": params.query, "per_page": self.effective_limit(params)}
        if sort:
            query_params["sort"] = sort
        try:
            response = await self.http_client.get(path, params=query_params, headers=headers)
        except ApiError as e:
            if e.details.get("status_code") == UNPROCESSABLE:
                raise self.errors.invalid_input(
                    f"Invalid GitHub search query: {e.message}"
                ) from e
            raise
        return response.data
