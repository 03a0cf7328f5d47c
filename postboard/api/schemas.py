"""Request body schemas for the posts API.

Unknown fields are rejected. ``id`` is accepted on create and update so
clients can send back a post they hold, but the service never uses it.
"""

from pydantic import BaseModel, ConfigDict


class PostCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    author: str
    body: str
    title: str | None = None
    id: str | None = None


class PostUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    author: str | None = None
    body: str | None = None
    title: str | None = None
    id: str | None = None


class PostSnapshot(BaseModel):
    """One element of a full reorder snapshot."""

    model_config = ConfigDict(extra="forbid")

    id: str
    author: str
    body: str
    title: str | None = None
