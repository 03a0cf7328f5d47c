"""Collection service: CRUD and reorder over the post store.

Every mutation is a full read-modify-write of the stored sequence and runs
under one exclusive lock, so two mutating requests never interleave inside
a span. ``reorder`` still replaces the sequence with whatever snapshot the
caller holds, so a stale snapshot discards concurrent creates and deletes.
"""

import logging
import threading
import uuid
from typing import Any, Iterable, Mapping

from ..errors import MalformedRequest, NotFound
from ..models import Post, clean_new_fields, clean_update_fields
from ..store import PostStore
from .ordering import NEWEST_FIRST, OrderingPolicy

logger = logging.getLogger(__name__)


def new_post_id() -> str:
    """Generate a fresh collision-resistant post id."""
    return uuid.uuid4().hex


class CollectionService:
    """Translates post operations into store reads and writes."""

    def __init__(
        self,
        store: PostStore,
        policy: OrderingPolicy = NEWEST_FIRST,
    ):
        """Initialize the service.

        Args:
            store: Persistent store holding the canonical sequence.
            policy: Ordering rules for create and reorder.
        """
        self.store = store
        self.policy = policy
        self._lock = threading.Lock()

    @staticmethod
    def _index_of(posts: list[Post], post_id: str) -> int:
        for i, post in enumerate(posts):
            if post.id == post_id:
                return i
        raise NotFound(post_id)

    def get(self, post_id: str) -> Post:
        """Return the post with ``post_id``.

        Raises:
            NotFound: If no such post exists.
        """
        posts = self.store.read_all()
        return posts[self._index_of(posts, post_id)]

    def create(self, fields: Mapping[str, Any]) -> Post:
        """Create a post, assign its id and place it per the ordering policy.

        Any id in ``fields`` is ignored.

        Raises:
            MalformedRequest: If author or body is missing or blank.
        """
        cleaned = clean_new_fields(dict(fields))

        with self._lock:
            posts = self.store.read_all()
            existing = {p.id for p in posts}
            post_id = new_post_id()
            while post_id in existing:
                post_id = new_post_id()

            post = Post(id=post_id, **cleaned)
            self.store.write_all(self.policy.place_new(posts, post))

        logger.info(f"Created post {post.id} by {post.author!r}")
        return post

    def update(self, post_id: str, fields: Mapping[str, Any]) -> Post:
        """Merge ``fields`` onto an existing post, keeping its id and position.

        Raises:
            NotFound: If no such post exists.
            MalformedRequest: If a supplied author or body is blank.
        """
        cleaned = clean_update_fields(dict(fields))

        with self._lock:
            posts = self.store.read_all()
            index = self._index_of(posts, post_id)
            updated = posts[index].merged(cleaned)
            posts[index] = updated
            self.store.write_all(posts)

        logger.info(f"Updated post {post_id}")
        return updated

    def delete(self, post_id: str) -> Post:
        """Remove a post.

        Raises:
            NotFound: If no such post exists.
        """
        with self._lock:
            posts = self.store.read_all()
            removed = posts.pop(self._index_of(posts, post_id))
            self.store.write_all(posts)

        logger.info(f"Deleted post {post_id}")
        return removed

    def reorder(self, snapshot: Iterable[Post | Mapping[str, Any]]) -> list[Post]:
        """Replace the stored sequence with ``snapshot``.

        No merge against current state is done: content comes from the
        snapshot as given, and posts missing from it are gone.

        Raises:
            MalformedRequest: If the snapshot has duplicate ids or blank
                required fields.
        """
        posts = [self._snapshot_post(item) for item in snapshot]

        seen: set[str] = set()
        for post in posts:
            if post.id in seen:
                raise MalformedRequest(f"Duplicate post id {post.id} in reorder")
            seen.add(post.id)

        with self._lock:
            current = self.store.read_all()
            dropped = {p.id for p in current} - seen
            if dropped:
                logger.debug(
                    f"Reorder snapshot drops {len(dropped)} stored posts: {sorted(dropped)}"
                )
            result = self.policy.apply_reorder(current, posts)
            self.store.write_all(result)

        logger.info(f"Reordered {len(result)} posts")
        return result

    @staticmethod
    def _snapshot_post(item: Post | Mapping[str, Any]) -> Post:
        if isinstance(item, Post):
            data = item.to_dict()
        else:
            data = dict(item)

        post_id = data.get("id")
        if not isinstance(post_id, str) or not post_id:
            raise MalformedRequest("Every post in a reorder needs an id")

        clean_new_fields(data)
        return Post(
            id=post_id,
            author=data["author"],
            body=data["body"],
            title=data.get("title"),
        )

    def list(self) -> list[Post]:
        """Return the current ordered sequence."""
        return self.store.read_all()
