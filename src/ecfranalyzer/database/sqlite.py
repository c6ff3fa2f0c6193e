"""
SQLite-backed MetricsStore.

This module provides a lightweight persistent store for sync results. Each
collection is a table holding JSON documents keyed by the collection's
natural key (title number, agency slug, snapshot date), so state survives
across runs of the scheduler without any external database server.

The PRIMARY KEY on every table is what makes insert() atomic: a second insert
of the same snapshot date fails with an IntegrityError inside SQLite, even if
two processes race, and is reported as False.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import PersistenceError
from .base import KEY_FIELDS, MetricsStore

logger = logging.getLogger(__name__)


class SQLiteMetricsStore(MetricsStore):
    """
    SQLite store holding one JSON-document table per collection.

    Attributes:
        db_path (Path): Path to the SQLite database file
        conn (sqlite3.Connection): Database connection

    Example:
        store = SQLiteMetricsStore("ecfr_metrics.db")
        store.upsert_title(title)
        latest = store.latest_snapshot()
        store.close()
    """

    def __init__(self, db_path: str = "ecfr_metrics.db"):
        """
        Open (and create if needed) the database.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
        """
        self.db_path = Path(db_path) if db_path != ":memory:" else db_path
        try:
            self.conn = sqlite3.connect(self.db_path, isolation_level=None)  # Autocommit mode
            self.conn.row_factory = sqlite3.Row
            self._initialize_database()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open metrics store at {db_path}: {e}") from e

    def _initialize_database(self) -> None:
        """
        Create the collection tables if they don't exist.

        Each table stores:
        - key: The document's natural key as text
        - document: The document itself as JSON
        - updated_at: Last write time
        """
        cursor = self.conn.cursor()
        for collection in KEY_FIELDS:
            cursor.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {collection} (
                    key TEXT PRIMARY KEY,
                    document TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """
            )

    @staticmethod
    def _table(collection: str) -> str:
        # Table names cannot be bound as parameters, so only known names pass
        if collection not in KEY_FIELDS:
            raise ValueError(f"Unknown collection: {collection}")
        return collection

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        table = self._table(collection)
        try:
            rows = self.conn.execute(
                f"SELECT document FROM {table} ORDER BY rowid"
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Read failed: {e}", collection=collection) from e
        return [json.loads(row["document"]) for row in rows]

    def find_one(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        table = self._table(collection)
        try:
            row = self.conn.execute(
                f"SELECT document FROM {table} WHERE key = ?", (str(key),)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Read failed: {e}", collection=collection) from e
        return json.loads(row["document"]) if row else None

    def find_one_and_upsert(
        self, collection: str, key: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        table = self._table(collection)
        cursor = self.conn.cursor()
        try:
            # Read-merge-write under a write lock
            cursor.execute("BEGIN IMMEDIATE")
            row = cursor.execute(
                f"SELECT document FROM {table} WHERE key = ?", (str(key),)
            ).fetchone()
            document = json.loads(row["document"]) if row else {}
            document.update(fields)
            cursor.execute(
                f"""
                INSERT INTO {table} (key, document, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    document = excluded.document,
                    updated_at = CURRENT_TIMESTAMP
            """,
                (str(key), json.dumps(document)),
            )
            cursor.execute("COMMIT")
        except sqlite3.Error as e:
            if self.conn.in_transaction:
                cursor.execute("ROLLBACK")
            raise PersistenceError(
                f"Upsert of {key} failed: {e}", collection=collection
            ) from e
        return document

    def insert(self, collection: str, document: Dict[str, Any]) -> bool:
        table = self._table(collection)
        key = self.key_of(collection, document)
        try:
            self.conn.execute(
                f"INSERT INTO {table} (key, document) VALUES (?, ?)",
                (key, json.dumps(document)),
            )
        except sqlite3.IntegrityError:
            logger.info(f"{collection} document {key} already exists, not inserted")
            return False
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Insert of {key} failed: {e}", collection=collection
            ) from e
        return True

    def find(
        self,
        collection: str,
        sort_field: str = "date",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        table = self._table(collection)
        query = (
            f"SELECT document FROM {table} "
            f"ORDER BY json_extract(document, ?) {'DESC' if descending else 'ASC'}"
        )
        params: List[Any] = [f"$.{sort_field}"]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        try:
            rows = self.conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Query failed: {e}", collection=collection) from e
        return [json.loads(row["document"]) for row in rows]

    def close(self) -> None:
        """
        Close the database connection.
        """
        if self.conn:
            self.conn.close()
