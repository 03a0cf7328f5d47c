"""Async HTTP client for the posts API."""

import logging
from typing import Any, Sequence

import httpx

from ..errors import NetworkError
from ..models import Post

logger = logging.getLogger(__name__)


class PostsClient:
    """Issues CRUD and reorder requests against a posts backend.

    Every non-2xx answer and every transport failure is raised as
    NetworkError. No retries are made and no deadline is set beyond the
    configured transport timeout.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080/posts",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: URL of the posts collection (e.g., "http://host:8080/posts").
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, e.g. to talk to an app in-process.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str = "",
        json_data: Any = None,
    ) -> Any:
        """Make one HTTP request and return the decoded JSON body.

        Raises:
            NetworkError: On non-2xx status or transport failure.
        """
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, json=json_data)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {url} timed out")
            raise NetworkError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"Connection failed: {e}") from e

        if not response.is_success:
            logger.warning(f"{method} {url} returned {response.status_code}")
            raise NetworkError(
                f"HTTP {response.status_code}: {response.text}",
                status=response.status_code,
                text=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}: {e}") from e

    async def list_posts(self) -> list[Post]:
        """Fetch the full ordered sequence."""
        data = await self._request("GET")
        return [Post.from_dict(p) for p in data.get("posts") or []]

    async def get_post(self, post_id: str) -> Post | None:
        """Fetch one post. Returns None when the backend has no such post."""
        data = await self._request("GET", f"/{post_id}")
        post = data.get("post")
        return Post.from_dict(post) if post else None

    async def create_post(
        self, author: str, body: str, title: str | None = None
    ) -> Post:
        """Create a post and return it with its assigned id."""
        payload: dict[str, Any] = {"author": author, "body": body}
        if title is not None:
            payload["title"] = title
        data = await self._request("POST", json_data=payload)
        return Post.from_dict(data["post"])

    async def update_post(self, post_id: str, **fields: Any) -> Post:
        """Merge ``fields`` onto the post with ``post_id``.

        Raises:
            NetworkError: With status 404 if the post does not exist.
        """
        data = await self._request("PUT", f"/{post_id}", json_data=fields)
        return Post.from_dict(data["post"])

    async def delete_post(self, post_id: str) -> Post:
        """Delete a post and return what was removed."""
        data = await self._request("DELETE", f"/{post_id}")
        return Post.from_dict(data["post"])

    async def reorder_posts(self, posts: Sequence[Post]) -> list[Post]:
        """Replace the backend's sequence with ``posts``, in order."""
        data = await self._request(
            "PUT", json_data=[p.to_dict() for p in posts]
        )
        return [Post.from_dict(p) for p in data.get("posts") or []]
