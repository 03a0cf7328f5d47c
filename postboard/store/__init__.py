"""Persistent storage for the ordered post collection."""

from .post_store import PostStore

__all__ = ["PostStore"]
