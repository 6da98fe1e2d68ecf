"""
Pattern Store: local key-value persistence for pattern counters.

Behavioral Contract:
- The whole counter map is stored as one flat JSON object under a fixed key.
- load() never raises on bad data: a missing, corrupt or non-object value
  loads as an empty map.
- save() replaces the stored snapshot (write-through, no batching).
- Key order is preserved across save and load; it records when each
  pattern was first seen.
"""

import json
import logging
import sqlite3
from typing import Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

PATTERN_STORAGE_KEY = "agent_patterns"


@runtime_checkable
class PatternStore(Protocol):
    def load(self) -> Dict[str, int]: ...

    def save(self, snapshot: Dict[str, int]) -> None: ...


def _decode_snapshot(raw: Optional[str]) -> Dict[str, int]:
    """Parse a stored snapshot, falling back to an empty map."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Stored pattern snapshot is not valid JSON; starting empty")
        return {}
    if not isinstance(data, dict):
        logger.warning("Stored pattern snapshot is not an object; starting empty")
        return {}

    counters: Dict[str, int] = {}
    for key, value in data.items():
        try:
            counters[str(key)] = int(value)
        except (TypeError, ValueError):
            continue
    return counters


class InMemoryPatternStore:
    """Keeps the serialized snapshot in memory. Used by tests."""

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw
        self.save_count = 0

    def load(self) -> Dict[str, int]:
        return _decode_snapshot(self.raw)

    def save(self, snapshot: Dict[str, int]) -> None:
        self.raw = json.dumps(snapshot)
        self.save_count += 1


class SQLitePatternStore:
    """
    Pattern snapshot in a SQLite key-value table.
    Best-effort local storage; not a transactional audit store.
    """

    def __init__(self, db_path: str = ":memory:", key: str = PATTERN_STORAGE_KEY):
        self.db_path = db_path
        self.key = key
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the key-value table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        self._conn.commit()

    def load(self) -> Dict[str, int]:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (self.key,)
        ).fetchone()
        return _decode_snapshot(row["value"] if row else None)

    def save(self, snapshot: Dict[str, int]) -> None:
        self.write_raw(json.dumps(snapshot))

    def write_raw(self, value: str) -> None:
        """Store a raw value under the pattern key."""
        self._conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (self.key, value),
        )
        self._conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
