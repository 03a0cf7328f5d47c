"""SQLite-backed storage for the ordered post sequence.

The whole sequence lives in a single row as one JSON array, so every write
replaces it atomically. There is no partial-update API and no locking here;
callers serialize their read-modify-write spans.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from ..errors import StorageError
from ..models import Post

logger = logging.getLogger(__name__)

# One-row table: slot is pinned to 0
SCHEMA = """
CREATE TABLE IF NOT EXISTS post_store (
    slot INTEGER PRIMARY KEY CHECK (slot = 0),
    posts TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class PostStore:
    """Durable holder of the full ordered post sequence."""

    def __init__(self, db_path: str | Path):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        self.db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Initialize database connection and schema."""
        if self._conn is not None:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open post store at {self.db_path}: {e}") from e

        logger.info(f"PostStore connected to {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _ensure_connected(self) -> sqlite3.Connection:
        if self._conn is None:
            self.connect()
        return self._conn

    def read_all(self) -> list[Post]:
        """Read the full ordered sequence.

        Returns:
            The stored posts in order, or an empty list if nothing is stored.

        Raises:
            StorageError: On I/O failure or an unreadable record.
        """
        conn = self._ensure_connected()

        try:
            row = conn.execute(
                "SELECT posts FROM post_store WHERE slot = 0"
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read posts: {e}") from e

        if row is None:
            return []

        try:
            return [Post.from_dict(item) for item in json.loads(row[0])]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Stored post record is corrupt: {e}") from e

    def write_all(self, posts: Sequence[Post]) -> None:
        """Replace the persisted sequence with ``posts`` in one transaction.

        Raises:
            StorageError: On I/O failure. The previous sequence is kept.
        """
        conn = self._ensure_connected()
        payload = json.dumps([p.to_dict() for p in posts])

        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO post_store (slot, posts, updated_at)
                    VALUES (0, ?, ?)
                    ON CONFLICT(slot) DO UPDATE SET
                        posts = excluded.posts,
                        updated_at = excluded.updated_at
                    """,
                    (payload, datetime.now().isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write posts: {e}") from e

        logger.debug(f"Wrote {len(posts)} posts to {self.db_path}")

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        return {
            "db_path": str(self.db_path),
            "post_count": len(self.read_all()),
        }
