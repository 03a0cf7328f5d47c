"""HTTP API for the post collection.

Serves CRUD and reorder over /posts using FastAPI.
"""

from .app import create_app

__all__ = ["create_app"]
