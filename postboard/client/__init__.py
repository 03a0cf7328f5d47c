"""Sync client for the posts backend.

PostsClient speaks HTTP; PostsView keeps the per-device cache and applies
optimistic drag reordering with re-fetch on failure.
"""

from .posts_client import PostsClient
from .view import Editor, PostsView, ViewState

__all__ = ["Editor", "PostsClient", "PostsView", "ViewState"]
