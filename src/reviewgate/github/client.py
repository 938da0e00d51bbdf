"""
GitHub REST client for reviewgate.

This is the I/O side of reviewgate: it fetches the reviewer policy, the
pull request's files, reviews and commits, and posts the resulting review.
The policy engine never talks to GitHub itself.

Data-source limits:
    GitHub stops listing pull request files at 3000 and commits at 250.
    Every listing reports whether it reached its cap so the caller can
    decide whether partial input is acceptable. There is no retry logic;
    a failed request raises immediately.

Usage:
    with GitHubClient(token="...") as client:
        policy = client.get_policy("octo/repo")
        files = client.list_modified_files("octo/repo", 42)
        if files.truncated:
            ...
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx

from reviewgate.errors import GitHubApiError, GitHubConnectionError, PolicyNotFoundError
from reviewgate.schema import (
    DEFAULT_POLICY_PATH,
    Review,
    ReviewEvent,
    ReviewPolicy,
    ReviewState,
    load_policy_from_string,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
PAGE_SIZE = 100

# Hard limits imposed by the GitHub pull request endpoints
MAX_PR_FILES = 3000
MAX_PR_COMMITS = 250

T = TypeVar("T")


@dataclass
class Listing(Generic[T]):
    """
    Items returned by a paginated endpoint.

    Attributes:
        items: The collected items, in API order
        truncated: True when the endpoint's hard cap was reached
    """

    items: list[T] = field(default_factory=list)
    truncated: bool = False


class GitHubClient:
    """
    Minimal synchronous GitHub REST client.

    Attributes:
        base_url: API root, e.g. https://api.github.com
        timeout_seconds: Per-request timeout
    """

    def __init__(
        self,
        token: str = "",
        base_url: str = DEFAULT_API_URL,
        timeout_seconds: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            token: Token sent as a bearer credential (may be empty for public data)
            base_url: API root
            timeout_seconds: Per-request timeout
            http_client: Pre-built httpx client, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._token = token
        self._client = http_client

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.Client(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, translating transport failures and error statuses."""
        client = self._get_client()
        try:
            response = client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubConnectionError(url=url, underlying_error=str(e)) from e

        if response.status_code >= 400:
            raise GitHubApiError(
                url=str(response.request.url),
                status_code=response.status_code,
                response_text=response.text,
            )
        return response

    def _paginate(self, url: str, cap: int | None = None) -> Listing[dict[str, Any]]:
        """Follow rel="next" links, stopping at the endpoint's cap."""
        listing: Listing[dict[str, Any]] = Listing()
        next_url: str | None = url
        params: dict[str, Any] | None = {"per_page": PAGE_SIZE}

        while next_url:
            response = self._request("GET", next_url, params=params)
            listing.items.extend(response.json())
            # The next link already carries the query string
            params = None
            next_url = response.links.get("next", {}).get("url")

        if cap is not None and len(listing.items) >= cap:
            listing.items = listing.items[:cap]
            listing.truncated = True
            logger.warning("%s returned %d items, the API maximum", url, cap)

        return listing

    # =========================================================================
    # Endpoints
    # =========================================================================

    def get_policy(
        self,
        repo: str,
        path: str = DEFAULT_POLICY_PATH,
        ref: str | None = None,
    ) -> ReviewPolicy:
        """
        Fetch and validate the reviewer policy stored in the repository.

        Args:
            repo: Repository in owner/name form
            path: Path of the policy file within the repository
            ref: Branch, tag or SHA; None means the default branch

        Raises:
            PolicyNotFoundError: If the file is absent or not a regular file
            PolicyValidationError: If the document is malformed
        """
        params = {"ref": ref} if ref else None
        url = f"/repos/{repo}/contents/{path}"
        try:
            response = self._request("GET", url, params=params)
        except GitHubApiError as e:
            if e.status_code == 404:
                raise PolicyNotFoundError(path=path, ref=ref) from e
            raise

        data = response.json()
        # Directories come back as a list; submodules and symlinks lack content
        if not isinstance(data, dict) or "content" not in data:
            raise PolicyNotFoundError(path=path, ref=ref)

        try:
            decoded = base64.b64decode(data["content"].replace("\n", "")).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise PolicyNotFoundError(
                path=path,
                ref=ref,
                message=f"Unable to decode {path}: {e}",
            ) from e

        return load_policy_from_string(decoded, source=path)

    def list_modified_files(self, repo: str, pr_number: int) -> Listing[str]:
        """List the paths of files touched by a pull request."""
        raw = self._paginate(f"/repos/{repo}/pulls/{pr_number}/files", cap=MAX_PR_FILES)
        return Listing(
            items=[f["filename"] for f in raw.items],
            truncated=raw.truncated,
        )

    def list_reviews(self, repo: str, pr_number: int) -> Listing[Review]:
        """List the reviews on a pull request in chronological order."""
        raw = self._paginate(f"/repos/{repo}/pulls/{pr_number}/reviews")
        reviews = []
        for item in raw.items:
            user = item.get("user") or {}
            reviews.append(
                Review(user=user.get("login"), state=ReviewState(item["state"]))
            )
        return Listing(items=reviews, truncated=raw.truncated)

    def list_committers(self, repo: str, pr_number: int) -> Listing[str | None]:
        """
        List the committer login of every commit in a pull request.

        Commits whose committer is not linked to a GitHub account yield None.
        """
        raw = self._paginate(f"/repos/{repo}/pulls/{pr_number}/commits", cap=MAX_PR_COMMITS)
        committers = []
        for commit in raw.items:
            committer = commit.get("committer") or {}
            committers.append(committer.get("login"))
        return Listing(items=committers, truncated=raw.truncated)

    def create_review(
        self,
        repo: str,
        pr_number: int,
        event: ReviewEvent,
        body: str,
    ) -> dict[str, Any]:
        """Submit a review on a pull request."""
        response = self._request(
            "POST",
            f"/repos/{repo}/pulls/{pr_number}/reviews",
            json={"event": event.value, "body": body},
        )
        return response.json()
