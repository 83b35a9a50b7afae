"""Data access layer for the subscriber registry (SQLite)."""
import logging
import sqlite3
from contextlib import contextmanager
from typing import Generator

from relaybot.config import settings
from relaybot.errors import RegistryError

logger = logging.getLogger(__name__)


class SubscriberRepository:
    """Repository for subscribed chat ids."""

    def __init__(self, db_path: str | None = None):
        """Initialize repository with database path."""
        self.db_path = db_path or settings.DB_PATH
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS subscribers (
                    chat_id INTEGER PRIMARY KEY,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        logger.info(f"Subscriber database initialized: {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection context manager.

        Any sqlite error raised inside the block surfaces as RegistryError.
        """
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise RegistryError(f"cannot open subscriber database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            raise RegistryError(f"subscriber database error: {e}") from e
        finally:
            conn.close()

    def insert(self, chat_id: int) -> None:
        """Register a chat. Registering twice is a no-op."""
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO subscribers (chat_id) VALUES (?)",
                (chat_id,),
            )
            conn.commit()
        logger.info(f"Subscribed chat {chat_id}")

    def delete(self, chat_id: int) -> None:
        """Remove a chat's registration."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM subscribers WHERE chat_id = ?", (chat_id,))
            conn.commit()
        logger.info(f"Unsubscribed chat {chat_id}")

    def list(self) -> list[int]:
        """Return every registered chat id."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT chat_id FROM subscribers").fetchall()
            return [row["chat_id"] for row in rows]

    def exists(self, chat_id: int) -> bool:
        """Check whether a chat is registered."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM subscribers WHERE chat_id = ?", (chat_id,)
            ).fetchone()
            return row is not None


# Singleton instance for convenience
_repository: SubscriberRepository | None = None


def get_repository() -> SubscriberRepository:
    """Get or create repository instance."""
    global _repository
    if _repository is None:
        _repository = SubscriberRepository()
    return _repository
