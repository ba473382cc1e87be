"""Key/value persistence for the sync orchestrator.

Each entry is a JSON blob tagged with the UTC time it was saved. The
orchestrator enforces freshness itself; stores never expire entries.
"""

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import config

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CacheStore:
    """SQLite-backed key/value store."""

    def __init__(self, db_path: str | None = None):
        """Initialize cache store.

        Args:
            db_path: Path to SQLite database. Defaults to DENTAL_CDS_DB_PATH
                or ~/.dental_cds/cache.db
        """
        self.db_path = os.path.expanduser(db_path) if db_path else config.DB_PATH

        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()

        with self._connect() as conn:
            conn.executescript(schema)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> dict[str, Any] | None:
        """Return ``{"value": ..., "saved_at": iso}`` or None if absent."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value, saved_at FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        try:
            value = json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning(f"Discarding corrupt cache entry {key!r}")
            self.remove(key)
            return None
        return {"value": value, "saved_at": row["saved_at"]}

    def save(self, key: str, value: Any) -> str:
        """Store a JSON-serializable value; returns the saved_at timestamp."""
        saved_at = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO cache_entries (key, value, saved_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, saved_at = excluded.saved_at
                """,
                (key, json.dumps(value), saved_at),
            )
        return saved_at

    def remove(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM cache_entries ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM cache_entries")


class MemoryStore:
    """In-process store with the CacheStore interface."""

    def __init__(self):
        self._entries: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        # Round-trip through JSON so callers never share mutable state
        return {"value": json.loads(entry["value"]), "saved_at": entry["saved_at"]}

    def save(self, key: str, value: Any) -> str:
        saved_at = _now_iso()
        self._entries[key] = {"value": json.dumps(value), "saved_at": saved_at}
        return saved_at

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def clear(self) -> None:
        self._entries.clear()
