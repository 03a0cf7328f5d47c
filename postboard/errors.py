"""Exceptions shared by the store, service, API and client layers."""


class PostboardError(Exception):
    """Base class for postboard errors."""


class NotFound(PostboardError):
    """No post with the requested id exists."""

    def __init__(self, post_id: str):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class StorageError(PostboardError):
    """Reading or writing the persisted post sequence failed."""


class MalformedRequest(PostboardError):
    """A required field is missing or empty, or a snapshot is inconsistent."""


class NetworkError(PostboardError):
    """The backend answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status: int | None = None, text: str = ""):
        super().__init__(message)
        self.status = status
        self.text = text
