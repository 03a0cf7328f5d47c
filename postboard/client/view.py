"""Per-device view of the post collection.

PostsView keeps a local copy of the ordered list and drives it through
``LOADING -> READY <-> ERROR``. Create, update and delete wait for the
backend and then re-fetch. Drag reordering is applied to the local copy
first and pushed in the background; if the push fails the list is
re-fetched and the backend's order is adopted as is.

In-flight requests are never cancelled. Their completions keep mutating
the cache while the view is mounted, so a slow fetch can land after a
newer drag and overwrite it.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from ..errors import NetworkError
from ..models import Post
from .posts_client import PostsClient

logger = logging.getLogger(__name__)


class ViewState(Enum):
    """Lifecycle state of the view."""

    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass
class Editor:
    """The open edit surface. ``post`` is None when creating."""

    post: Post | None = None
    author: str = ""
    body: str = ""

    @property
    def can_save(self) -> bool:
        return bool(self.author.strip() and self.body.strip())


class PostsView:
    """Cached, optimistically reorderable view of the posts backend."""

    def __init__(self, client: PostsClient):
        self.client = client
        self.state = ViewState.LOADING
        self.posts: list[Post] = []
        self.error: str | None = None
        self.refreshing = False
        self.pending_write = False
        self.editor: Editor | None = None
        self.mounted = False
        self.last_write: Post | None = None
        self.push_error: str | None = None
        self._tasks: set[asyncio.Task] = set()

    # ==================== Derived state ====================

    @property
    def can_create(self) -> bool:
        return self.state == ViewState.READY

    @property
    def can_drag(self) -> bool:
        return self.state == ViewState.READY and self.editor is None

    @property
    def hint(self) -> str:
        return f"Make sure the backend is running on {self.client.base_url}"

    # ==================== Loading ====================

    async def mount(self) -> None:
        """Show the view and load the list."""
        self.mounted = True
        self.state = ViewState.LOADING
        self.posts = []
        await self._fetch()

    def unmount(self) -> None:
        """Hide the view. In-flight requests keep running."""
        self.mounted = False
        self.editor = None

    async def refresh(self) -> None:
        """Re-fetch the list, keeping the current cache visible meanwhile."""
        self.refreshing = True
        await self._fetch()

    async def _fetch(self) -> None:
        self.error = None
        try:
            posts = await self.client.list_posts()
        except NetworkError as e:
            logger.error(f"Error fetching posts: {e}")
            self.refreshing = False
            if self._still_mounted("fetch"):
                self.error = str(e)
                self.state = ViewState.ERROR
            return

        self.refreshing = False
        if self._still_mounted("fetch"):
            self.posts = posts
            self.state = ViewState.READY

    def _still_mounted(self, what: str) -> bool:
        if not self.mounted:
            logger.debug(f"Dropping {what} result, view is unmounted")
        return self.mounted

    # ==================== Edit surface ====================

    def open_create(self) -> Editor:
        """Open an empty edit surface for a new post."""
        if not self.can_create:
            raise RuntimeError("Posts cannot be created until the list is loaded")
        self.editor = Editor()
        return self.editor

    def open_edit(self, post: Post) -> Editor:
        """Open the edit surface pre-filled with ``post``."""
        self.editor = Editor(post=post, author=post.author, body=post.body)
        return self.editor

    def close_editor(self) -> None:
        self.editor = None

    async def save(self, author: str | None = None, body: str | None = None) -> bool:
        """Save the edit surface: create or update, then re-fetch.

        Blank author or body (after trimming) is refused without a request.

        Returns:
            True if the backend accepted the write. The post it answered
            with is kept in ``last_write``.
        """
        editor = self.editor
        if editor is None:
            return False
        if author is not None:
            editor.author = author
        if body is not None:
            editor.body = body
        if not editor.can_save:
            return False

        fields = {"author": editor.author.strip(), "body": editor.body.strip()}
        self.close_editor()

        if editor.post is None:
            return await self._write(
                "saving post", self.client.create_post(**fields)
            )
        return await self._write(
            "saving post", self.client.update_post(editor.post.id, **fields)
        )

    async def delete(self) -> bool:
        """Delete the post open in the edit surface, then re-fetch."""
        editor = self.editor
        if editor is None or editor.post is None:
            return False

        self.close_editor()
        return await self._write(
            "deleting post", self.client.delete_post(editor.post.id)
        )

    async def _write(self, what: str, request) -> bool:
        """Await a write; re-fetch on success, surface the error otherwise.

        Nothing was applied locally before the request, so a failure
        leaves the cache as it was. A successful write is kept in
        ``last_write`` even when the re-fetch after it fails.
        """
        self.pending_write = True
        self.last_write = None
        try:
            try:
                self.last_write = await request
            except NetworkError as e:
                logger.error(f"Error {what}: {e}")
                if self._still_mounted(what):
                    self.error = str(e)
                    self.state = ViewState.ERROR
                return False

            await self._fetch()
            return True
        finally:
            self.pending_write = False

    # ==================== Drag reordering ====================

    def drag(self, from_index: int, to_index: int) -> asyncio.Task | None:
        """Move one post and push the new order in the background.

        The cache changes before this returns. Must be called from a
        running event loop.

        Returns:
            The push task, or None if dragging is not allowed right now.

        Raises:
            IndexError: If either index is outside the list.
        """
        if not self.can_drag:
            logger.debug("Drag ignored: list not ready or edit surface open")
            return None

        size = len(self.posts)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise IndexError(f"Cannot move {from_index} -> {to_index} in {size} posts")

        order = list(self.posts)
        order.insert(to_index, order.pop(from_index))
        return self.drop(order)

    def drop(self, order: list[Post]) -> asyncio.Task | None:
        """Adopt ``order`` as the list and push it in the background."""
        if not self.can_drag:
            return None

        self.posts = list(order)
        task = asyncio.create_task(self._push_order(self.posts))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _push_order(self, order: list[Post]) -> bool:
        """Push ``order``. Returns False if the backend did not take it."""
        self.push_error = None
        try:
            await self.client.reorder_posts(order)
        except NetworkError as e:
            logger.error(f"Error saving posts order: {e}")
            self.push_error = str(e)
            # Adopt whatever the backend has now
            await self._fetch()
            return False
        return True

    async def wait_idle(self) -> None:
        """Wait for background reorder pushes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ==================== Rendering ====================

    def render(self) -> list[str]:
        """Render the view as plain text lines."""
        if self.state == ViewState.LOADING:
            return ["Loading posts..."]
        if self.state == ViewState.ERROR:
            return [f"Error: {self.error}", self.hint]

        lines = ["Posts", "[+ Create New Post]"]
        if not self.posts:
            lines.append("No posts available")
        for index, post in enumerate(self.posts):
            lines.append(f"{index:>3} ☰ {post.author}  ID: {post.id}")
            lines.append(f"      {post.body}")
        return lines
