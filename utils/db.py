"""
Database utilities for SQLite operations.

Provides connection management, schema initialization and the user
repository used by the API and the enrichment job. The repository is the
only component that reads or writes the users table; callers never issue
ad-hoc queries.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional, Protocol

from utils.errors import PersistenceFailure
from utils.schemas import UserRecord

logger = logging.getLogger(__name__)


def get_conn(path: str) -> sqlite3.Connection:
    """
    Get SQLite database connection with dict-friendly row factory.

    Args:
        path: Path to the SQLite database file

    Returns:
        SQLite connection with row_factory set to sqlite3.Row

    Raises:
        sqlite3.Error: If connection fails
    """
    # Ensure database directory exists
    db_path = Path(path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(path: str) -> None:
    """
    Initialize database schema by creating required tables if they don't exist.

    Creates:
    - users: user id plus the external link fetched for it

    Raises:
        sqlite3.Error: If schema creation fails
    """
    conn = get_conn(path)
    try:
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY,
                    external_link TEXT NOT NULL DEFAULT ''
                )
            """)
    finally:
        conn.close()

    logger.info("DB schema ready", extra={"db_path": path})


class UserRepository(Protocol):
    """Persistence collaborator for user records."""

    def load_batch(self) -> list[UserRecord]:
        ...

    def save_updated(self, records: Iterable[UserRecord]) -> int:
        ...

    def find(self, user_id: int) -> Optional[UserRecord]:
        ...


class SqliteUserRepository:
    """UserRepository backed by a SQLite file.

    Every sqlite3.Error is re-raised as PersistenceFailure so callers only
    deal with one failure type from the store.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    def load_batch(self) -> list[UserRecord]:
        """Load every user, ordered by id."""
        try:
            conn = get_conn(self.db_path)
            try:
                rows = conn.execute("SELECT id, external_link FROM users ORDER BY id").fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("Failed to load users", extra={"db_path": self.db_path, "error": str(e)})
            raise PersistenceFailure(f"Failed to load users: {e}") from e

        return [UserRecord(id=row["id"], external_link=row["external_link"]) for row in rows]

    def find(self, user_id: int) -> Optional[UserRecord]:
        """Fetch a single user by id, or None when it doesn't exist."""
        try:
            conn = get_conn(self.db_path)
            try:
                row = conn.execute(
                    "SELECT id, external_link FROM users WHERE id = ?", (user_id,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("Failed to find user", extra={"user_id": user_id, "error": str(e)})
            raise PersistenceFailure(f"Failed to find user {user_id}: {e}") from e

        if row is None:
            return None
        return UserRecord(id=row["id"], external_link=row["external_link"])

    def save_updated(self, records: Iterable[UserRecord]) -> int:
        """
        Persist the external link of exactly the given records in one transaction.

        Args:
            records: Records whose external_link changed

        Returns:
            Number of rows written

        Raises:
            PersistenceFailure: If the transaction fails; nothing is written
        """
        params = [(record.external_link, record.id) for record in records]
        if not params:
            return 0

        try:
            conn = get_conn(self.db_path)
            try:
                with conn:
                    cursor = conn.executemany(
                        "UPDATE users SET external_link = ? WHERE id = ?", params
                    )
                    written = cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(
                "Failed to save updated users",
                extra={"db_path": self.db_path, "count": len(params), "error": str(e)},
            )
            raise PersistenceFailure(f"Failed to save {len(params)} users: {e}") from e

        logger.info("Saved updated users", extra={"requested": len(params), "written": written})
        return written

    def add(self, records: Iterable[UserRecord]) -> int:
        """Insert new user records. Used for seeding."""
        params = [(record.id, record.external_link) for record in records]
        if not params:
            return 0

        try:
            conn = get_conn(self.db_path)
            try:
                with conn:
                    conn.executemany("INSERT INTO users (id, external_link) VALUES (?, ?)", params)
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to insert {len(params)} users: {e}") from e

        return len(params)
