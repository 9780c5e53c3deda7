"""
SQLite document store for company records.

Each row holds the JSON record of one company, keyed by its company number.
An upsert replaces the whole document; created_at survives, updated_at is
refreshed.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from errors import StorageError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS companies (
    number TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

REQUIRED_FIELDS = ("name", "number")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class CompanyStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        with self._connect() as conn:
            conn.execute(SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        # One connection per call: requests run on different threads.
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def upsert(self, record: Dict[str, Any]) -> None:
        missing = [f for f in REQUIRED_FIELDS if not record.get(f)]
        if missing:
            raise StorageError(f"company record missing {', '.join(missing)}")

        now = _now()
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO companies (number, document, created_at, updated_at) VALUES (?, ?, ?, ?) "
                    "ON CONFLICT(number) DO UPDATE SET document = excluded.document, updated_at = excluded.updated_at",
                    (record["number"], json.dumps(record), now, now),
                )
        except sqlite3.Error as e:
            raise StorageError(f"upsert of {record['number']} failed: {e}") from e
        logger.info("Saved company %s", record["number"])

    def get(self, number: str) -> Optional[Dict[str, Any]]:
        """Stored record with its createdAt/updatedAt stamps, or None."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT document, created_at, updated_at FROM companies WHERE number = ?",
                    (number,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"read of {number} failed: {e}") from e
        if row is None:
            return None
        doc = json.loads(row[0])
        doc["createdAt"] = row[1]
        doc["updatedAt"] = row[2]
        return doc

    def count(self) -> int:
        try:
            with self._connect() as conn:
                return int(conn.execute("SELECT COUNT(*) FROM companies").fetchone()[0])
        except sqlite3.Error as e:
            raise StorageError(f"count failed: {e}") from e
