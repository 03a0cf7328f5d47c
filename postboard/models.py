"""Post record and field validation."""

from dataclasses import dataclass, replace
from typing import Any

from .errors import MalformedRequest

# Fields a caller may supply; id is always assigned by the service.
CONTENT_FIELDS = ("author", "body", "title")
REQUIRED_FIELDS = ("author", "body")


@dataclass(frozen=True)
class Post:
    """A single post. Its position in the collection is its order."""

    id: str
    author: str
    body: str
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire/persisted shape. title is omitted when unset."""
        data: dict[str, Any] = {
            "id": self.id,
            "author": self.author,
            "body": self.body,
        }
        if self.title is not None:
            data["title"] = self.title
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Post":
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            author=data["author"],
            body=data["body"],
            title=data.get("title"),
        )

    def merged(self, fields: dict[str, Any]) -> "Post":
        """Return a copy with content fields replaced. The id never changes."""
        changes = {k: v for k, v in fields.items() if k in CONTENT_FIELDS}
        return replace(self, **changes)


def _clean(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise MalformedRequest(f"Field '{name}' must be a string")
    value = value.strip()
    if not value:
        raise MalformedRequest(f"Field '{name}' must not be empty")
    return value


def _title(value: Any) -> str:
    if not isinstance(value, str):
        raise MalformedRequest("Field 'title' must be a string")
    return value


def clean_new_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate fields for a new post.

    author and body are required and stored trimmed. Anything else apart
    from title is dropped.

    Raises:
        MalformedRequest: If a required field is missing or blank.
    """
    cleaned: dict[str, Any] = {}
    for name in REQUIRED_FIELDS:
        if fields.get(name) is None:
            raise MalformedRequest(f"Field '{name}' is required")
        cleaned[name] = _clean(name, fields[name])
    if fields.get("title") is not None:
        cleaned["title"] = _title(fields["title"])
    return cleaned


def clean_update_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial update.

    Supplied author/body must be non-blank strings; null is not a value for
    them. title may be null to clear it.
    """
    cleaned: dict[str, Any] = {}
    for name in REQUIRED_FIELDS:
        if name in fields:
            cleaned[name] = _clean(name, fields[name])
    if "title" in fields:
        cleaned["title"] = None if fields["title"] is None else _title(fields["title"])
    return cleaned
