# src/slashkeeper/storage/database.py
from typing import Optional, Dict, Any, Iterable, Iterator, Tuple
import sqlite3
import json
import os
import threading

from ..exceptions import DatabaseError

MEMORY = ":memory:"

class Database:
    """Key/value store on sqlite with JSON-encoded values.

    Every node must persist slashing state identically, so errors are never
    swallowed: any sqlite or encoding failure surfaces as DatabaseError.
    """

    def __init__(self, db_path: str = MEMORY):
        """Initialize database connection"""
        self.db_path = db_path
        if db_path != MEMORY:
            directory = os.path.dirname(db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        self._local = threading.local()
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get thread-local database connection"""
        if not hasattr(self._local, 'conn'):
            self._local.conn = sqlite3.connect(self.db_path)
            self._local.conn.row_factory = sqlite3.Row
        return self._local.conn

    def _init_db(self):
        """Initialize database tables"""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS key_value_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    def put(self, key: str, value: Any) -> None:
        """Store a key-value pair"""
        try:
            conn = self._get_conn()
            serialized_value = json.dumps(value)
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO key_value_store (key, value) VALUES (?, ?)",
                    (key, serialized_value)
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise DatabaseError(f"Error storing {key}: {e}") from e

    def get(self, key: str) -> Optional[Any]:
        """Retrieve a value by key"""
        try:
            conn = self._get_conn()
            cursor = conn.execute(
                "SELECT value FROM key_value_store WHERE key = ?",
                (key,)
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return json.loads(row['value'])
        except (sqlite3.Error, ValueError) as e:
            raise DatabaseError(f"Error retrieving {key}: {e}") from e

    def delete(self, key: str) -> None:
        """Delete a key-value pair"""
        try:
            conn = self._get_conn()
            with conn:
                conn.execute(
                    "DELETE FROM key_value_store WHERE key = ?",
                    (key,)
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Error deleting {key}: {e}") from e

    def batch_write(
        self,
        items: Dict[str, Any],
        deletes: Iterable[str] = ()
    ) -> None:
        """Write and delete multiple keys in one sqlite transaction"""
        try:
            conn = self._get_conn()
            with conn:
                for key in deletes:
                    conn.execute(
                        "DELETE FROM key_value_store WHERE key = ?",
                        (key,)
                    )
                for key, value in items.items():
                    conn.execute(
                        "INSERT OR REPLACE INTO key_value_store (key, value) VALUES (?, ?)",
                        (key, json.dumps(value))
                    )
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise DatabaseError(f"Error in batch write: {e}") from e

    def iter_prefix(self, prefix: str) -> Iterator[Tuple[str, Any]]:
        """Iterate key-value pairs whose key starts with prefix, ordered by key"""
        try:
            conn = self._get_conn()
            cursor = conn.execute(
                "SELECT key, value FROM key_value_store "
                "WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix)
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Error scanning {prefix}: {e}") from e
        for row in rows:
            yield row['key'], json.loads(row['value'])

    def __iter__(self):
        """Iterate over all key-value pairs"""
        return self.iter_prefix("")

    def close(self):
        """Close database connection"""
        if hasattr(self._local, 'conn'):
            self._local.conn.close()
            delattr(self._local, 'conn')
