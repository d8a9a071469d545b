"""SQLite session store."""

import json
import sqlite3
from pathlib import Path
from typing import Any

from .base import SessionStore


class SQLiteStore(SessionStore):
    """Persistent storage for sessions using SQLite.

    Each session is one row keyed by (name, session_id) holding the
    entries as a JSON object.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection, creating the table on first use."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    name        TEXT NOT NULL,
                    session_id  TEXT NOT NULL,
                    data        TEXT NOT NULL,
                    updated_at  TEXT NOT NULL DEFAULT (datetime('now')),
                    PRIMARY KEY (name, session_id)
                )
            """)
            self._conn.commit()
        return self._conn

    def read(self, name: str, session_id: str) -> dict[str, Any]:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT data FROM sessions WHERE name = ? AND session_id = ?",
            (name, session_id),
        ).fetchone()
        if row is None:
            return {}
        return json.loads(row["data"])

    def write(self, name: str, session_id: str, data: dict[str, Any]) -> None:
        conn = self._get_connection()
        conn.execute(
            """
            INSERT INTO sessions (name, session_id, data)
            VALUES (?, ?, ?)
            ON CONFLICT(name, session_id) DO UPDATE SET
                data = excluded.data,
                updated_at = datetime('now')
            """,
            (name, session_id, json.dumps(data)),
        )
        conn.commit()

    def destroy(self, name: str, session_id: str) -> None:
        conn = self._get_connection()
        conn.execute(
            "DELETE FROM sessions WHERE name = ? AND session_id = ?",
            (name, session_id),
        )
        conn.commit()

    def exists(self, name: str, session_id: str) -> bool:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT 1 FROM sessions WHERE name = ? AND session_id = ?",
            (name, session_id),
        ).fetchone()
        return row is not None

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
