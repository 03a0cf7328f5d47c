"""Ordering rules for the post collection.

Position in the sequence is the only notion of order, so the rules for
where new posts land and how a reorder is applied are kept here as one
named object.
"""

from dataclasses import dataclass
from typing import Sequence

from ..models import Post


@dataclass(frozen=True)
class OrderingPolicy:
    """Where new posts go and how reorder snapshots are applied."""

    name: str = "newest-first"
    prepend_new: bool = True

    def place_new(self, posts: Sequence[Post], post: Post) -> list[Post]:
        """Return the sequence with ``post`` inserted."""
        if self.prepend_new:
            return [post, *posts]
        return [*posts, post]

    def apply_reorder(
        self, current: Sequence[Post], snapshot: Sequence[Post]
    ) -> list[Post]:
        """Return the sequence that results from a reorder.

        The snapshot replaces ``current`` wholesale, content included. Posts
        in ``current`` but missing from the snapshot are dropped, and posts
        only in the snapshot are kept. Last writer wins.
        """
        return list(snapshot)


NEWEST_FIRST = OrderingPolicy()
