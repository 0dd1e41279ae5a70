"""GitHub REST API client with pagination.

Provides high-level methods for the endpoints gho needs, following Link
header pagination and mapping responses onto domain models.
"""

import logging
import re
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from gho.config import Settings
from gho.errors import UnexpectedApiError
from gho.github.http import GitHubClient, GitHubResponse
from gho.models import PullRequest, Repository

logger = logging.getLogger(__name__)

T = TypeVar("T")

LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


def parse_link_header(link_header: str | None) -> dict[str, str]:
    """Parse a Link header into a mapping of rel to URL.

    Args:
        link_header: Link header value from response.

    Returns:
        Dict mapping rel type to URL (e.g., {"next": "url", "last": "url"}).
    """
    if not link_header:
        return {}

    links = {}
    # Link header format: <url>; rel="next", <url>; rel="last"
    for part in link_header.split(","):
        match = LINK_PATTERN.match(part.strip())
        if match:
            url, rel = match.groups()
            links[rel] = url

    return links


class RestClient:
    """GitHub REST API client.

    Wraps GitHubClient to provide:
    - Pagination following Link headers, capped at max_pages
    - Mapping of repositories and pull requests onto domain models
    """

    DEFAULT_PER_PAGE = 100
    DEFAULT_MAX_PAGES = 50

    def __init__(
        self,
        http_client: GitHubClient,
        per_page: int = DEFAULT_PER_PAGE,
        max_pages: int = DEFAULT_MAX_PAGES,
        fetch_merge_state: bool = True,
    ) -> None:
        """Initialize REST API client.

        Args:
            http_client: GitHubClient instance for HTTP requests.
            per_page: Page size requested from the API.
            max_pages: Maximum pages fetched for one listing.
            fetch_merge_state: Fetch each open PR to learn its mergeable_state.
        """
        self._http = http_client
        self._per_page = per_page
        self._max_pages = max_pages
        self._fetch_merge_state = fetch_merge_state

    @classmethod
    def from_token(cls, token: str, settings: Settings | None = None) -> "RestClient":
        """Create a client for a token using the given settings."""
        settings = settings or Settings()
        http_client = GitHubClient(
            token,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            base_url=settings.api_base_url,
        )
        return cls(
            http_client,
            per_page=settings.per_page,
            max_pages=settings.max_pages,
            fetch_merge_state=settings.fetch_merge_state,
        )

    def close(self) -> None:
        """Close the underlying HTTP client and log the request budget used."""
        state = self._http.rate_limit_state
        if state.last_rate_limit is not None:
            logger.debug(
                "Made %d requests, %d of %d left in the %s budget",
                state.requests_made,
                state.last_rate_limit.remaining,
                state.last_rate_limit.limit,
                state.last_rate_limit.resource,
            )
        self._http.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def iter_pages(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Iterator[list[Any]]:
        """Iterate over result pages, following Link headers.

        Stops at an empty page or when there is no ``next`` link.

        Args:
            path: API endpoint path.
            params: Query parameters for the first request. Later requests use
                the full ``next`` URL, which already carries the query string.

        Yields:
            Items of each page, in server order.

        Raises:
            UnexpectedApiError: If a page is not a JSON array, or more than
                max_pages pages would be needed.
        """
        next_url: str | None = path
        page_num = 1

        while next_url is not None:
            response: GitHubResponse = self._http.get(
                next_url,
                params=params if page_num == 1 else None,
            )

            data = response.data
            if not isinstance(data, list):
                logger.error("Expected a list from %s, got %s", path, type(data).__name__)
                msg = f"expected a JSON array from {path}"
                raise UnexpectedApiError(response.status_code, msg)

            if not data:
                return

            yield data

            links = parse_link_header(response.headers.get("link"))
            next_url = links.get("next")
            if next_url is None:
                return

            if page_num >= self._max_pages:
                msg = f"pagination for {path} exceeded {self._max_pages} pages"
                raise UnexpectedApiError(response.status_code, msg)

            page_num += 1
            logger.debug("Following pagination to page %d of %s", page_num, path)

    def _collect(
        self,
        path: str,
        params: dict[str, Any],
        factory: Callable[[dict[str, Any]], T],
        limit: int | None = None,
    ) -> list[T]:
        """Drain all pages of a listing into domain objects."""
        if limit is not None:
            params = {**params, "per_page": min(self._per_page, limit)}

        results: list[T] = []
        for page in self.iter_pages(path, params):
            for item in page:
                results.append(factory(item))
                if limit is not None and len(results) >= limit:
                    return results
        return results

    def list_repos(self, owner: str, limit: int | None = None) -> list[Repository]:
        """List all repositories owned by a user.

        Args:
            owner: GitHub username.
            limit: Stop after this many repositories.

        Returns:
            Repositories in server order (most recently pushed first).
        """
        logger.info("Fetching repositories for user: %s", owner)
        params = {
            "type": "owner",
            "sort": "pushed",
            "direction": "desc",
            "per_page": self._per_page,
        }
        return self._collect(f"/users/{owner}/repos", params, Repository.from_api, limit)

    def list_org_repos(self, org: str, limit: int | None = None) -> list[Repository]:
        """List all repositories of an organization visible to the token.

        Args:
            org: Organization login.
            limit: Stop after this many repositories.

        Returns:
            Repositories in server order (most recently pushed first).
        """
        logger.info("Fetching repositories for org: %s", org)
        params = {
            "type": "all",
            "sort": "pushed",
            "direction": "desc",
            "per_page": self._per_page,
        }
        return self._collect(f"/orgs/{org}/repos", params, Repository.from_api, limit)

    def list_orgs(self) -> list[str]:
        """List organization logins the authenticated user belongs to."""
        logger.info("Fetching organizations for the authenticated user")
        params = {"per_page": self._per_page}
        return self._collect("/user/orgs", params, lambda item: str(item["login"]))

    def get_repo(self, owner: str, repo: str) -> Repository:
        """Get single repository details.

        Raises:
            NotFound: If the repository does not exist or is not visible.
        """
        response = self._http.get(f"/repos/{owner}/{repo}")
        if not isinstance(response.data, dict):
            msg = f"expected a JSON object for {owner}/{repo}"
            raise UnexpectedApiError(response.status_code, msg)
        return Repository.from_api(response.data)

    def get_pull(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Get a single pull request as raw API data."""
        response = self._http.get(f"/repos/{owner}/{repo}/pulls/{number}")
        if not isinstance(response.data, dict):
            msg = f"expected a JSON object for PR #{number}"
            raise UnexpectedApiError(response.status_code, msg)
        return response.data

    def list_open_prs(self, owner: str, repo: str, limit: int | None = None) -> list[PullRequest]:
        """List open pull requests for a repository.

        The list endpoint omits ``mergeable_state``, so when merge state
        fetching is enabled each PR is fetched individually to classify it.

        Args:
            owner: Repository owner.
            repo: Repository name.
            limit: Stop after this many pull requests.

        Returns:
            Pull requests in server order.
        """
        logger.info("Fetching open pull requests for %s/%s", owner, repo)
        params = {
            "state": "open",
            "sort": "updated",
            "direction": "desc",
            "per_page": self._per_page,
        }
        return self._collect(
            f"/repos/{owner}/{repo}/pulls",
            params,
            lambda item: self._to_pull_request(owner, repo, item),
            limit,
        )

    def _to_pull_request(self, owner: str, repo: str, item: dict[str, Any]) -> PullRequest:
        if self._fetch_merge_state and not item.get("mergeable_state"):
            item = self.get_pull(owner, repo, int(item["number"]))
        return PullRequest.from_api(item)
