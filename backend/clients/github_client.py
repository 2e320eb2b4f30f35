from collections.abc import Mapping
from typing import Any

import httpx

from backend.settings import Settings


class GitHubClient:
    """Minimal GitHub REST and GraphQL client bound to one access token."""

    def __init__(
        self,
        token: str,
        *,
        api_base_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        user_agent: str = "github-dashboard-stats",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub access token is required")

        self.graphql_url = graphql_url
        self._http = httpx.Client(
            base_url=api_base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": user_agent,
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        token: str,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> "GitHubClient":
        return cls(
            token,
            api_base_url=settings.github_api_base_url,
            graphql_url=settings.github_graphql_url,
            user_agent=settings.github_user_agent,
            timeout=settings.github_timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _get(self, path: str, params: Mapping[str, str | int] | None = None) -> Any:
        response = self._http.get(path, params=params)
        response.raise_for_status()
        return response.json()

    def get_authenticated_user(self) -> dict[str, str | int]:
        """Fetch basic profile data for the token owner."""

        payload = self._get("/user")
        if not isinstance(payload, Mapping):
            raise ValueError("GitHub user response is invalid")

        raw_id = payload.get("id")
        raw_login = payload.get("login")
        if not isinstance(raw_id, int) or not isinstance(raw_login, str) or not raw_login:
            raise ValueError("GitHub user response is missing required fields")

        return {"id": raw_id, "login": raw_login}

    def list_repos_for_authenticated_user(
        self,
        page: int,
        per_page: int = 100,
        sort: str = "created",
        direction: str = "desc",
    ) -> list[dict[str, Any]]:
        """List one page of repositories the token owner can access.

        Covers owned, collaborator and organization member repositories.
        """

        payload = self._get(
            "/user/repos",
            params={
                "page": page,
                "per_page": per_page,
                "sort": sort,
                "direction": direction,
                "affiliation": "owner,collaborator,organization_member",
            },
        )
        if not isinstance(payload, list):
            raise ValueError("GitHub repository list response is invalid")
        return [item for item in payload if isinstance(item, Mapping)]

    def search_issues_and_pull_requests(
        self, query: str, per_page: int = 30
    ) -> dict[str, Any]:
        """Run an issue search and return its reported total and items."""

        payload = self._get("/search/issues", params={"q": query, "per_page": per_page})
        if not isinstance(payload, Mapping):
            raise ValueError("GitHub search response is invalid")

        total_count = payload.get("total_count")
        items = payload.get("items")
        if not isinstance(total_count, int) or not isinstance(items, list):
            raise ValueError("GitHub search response is missing required fields")

        return {
            "total_count": total_count,
            "items": [item for item in items if isinstance(item, Mapping)],
        }

    def graphql(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        """Execute a GraphQL query and return its `data` object."""

        response = self._http.post(
            self.graphql_url,
            json={"query": query, "variables": dict(variables)},
        )
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, Mapping):
            raise ValueError("GitHub GraphQL response is invalid")

        if payload.get("errors"):
            raise ValueError("GitHub GraphQL returned errors")

        data = payload.get("data")
        if not isinstance(data, Mapping):
            raise ValueError("GitHub GraphQL data is missing")

        return data
