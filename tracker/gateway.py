"""
Key/value persistence gateway (SQLite).

Durable storage addressed by string keys. Values are JSON payloads; the
gateway encodes on save and decodes on load. Every call opens its own
connection and commits before returning, so a write is on disk once the
call completes.
"""
import sqlite3
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "project-tracker" / "tracker.db"


class GatewayError(Exception):
    """Raised when the storage backend fails."""
    pass


class SerializationError(GatewayError):
    """Raised when a value cannot be encoded to or decoded from JSON."""
    pass


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class KeyValueGateway:
    """SQLite-backed key/value store with JSON values."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize the gateway and create the table if needed."""
        if db_path is None:
            db_path = str(DEFAULT_DB_PATH)
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            raise GatewayError(f"Cannot open store at {self.db_path}: {e}") from e

    def load(self, key: str) -> Optional[Any]:
        """Return the decoded value for key, or None if it was never saved.

        Raises SerializationError if the stored payload is not valid JSON.
        """
        raw = self.load_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise SerializationError(f"Corrupt payload under {key!r}: {e}") from e

    def load_raw(self, key: str) -> Optional[str]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise GatewayError(f"Error reading {key!r}: {e}") from e
        return row["value"] if row else None

    def save(self, key: str, value: Any) -> None:
        """Encode value as JSON and write it under key in one transaction."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode value for {key!r}: {e}") from e
        self.save_raw(key, payload)

    def save_raw(self, key: str, payload: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (key, payload, now))
                conn.commit()
        except sqlite3.Error as e:
            raise GatewayError(f"Error writing {key!r}: {e}") from e
        logger.debug(f"Saved {key} ({len(payload)} bytes)")

    def save_many(self, items: Dict[str, Any]) -> None:
        """Encode every value, then write them all in one transaction.

        Either every key is written or none is.
        """
        payloads = []
        for key, value in items.items():
            try:
                payloads.append((key, json.dumps(value, ensure_ascii=False)))
            except (TypeError, ValueError) as e:
                raise SerializationError(f"Cannot encode value for {key!r}: {e}") from e

        now = datetime.now(timezone.utc).isoformat()
        try:
            with _connect(self.db_path) as conn:
                conn.executemany("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, [(key, payload, now) for key, payload in payloads])
                conn.commit()
        except sqlite3.Error as e:
            raise GatewayError(f"Error writing {sorted(items)}: {e}") from e
        logger.debug(f"Saved {len(payloads)} keys")

    def delete(self, key: str) -> bool:
        """Delete key. Returns True if a value was removed."""
        try:
            with _connect(self.db_path) as conn:
                cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise GatewayError(f"Error deleting {key!r}: {e}") from e
        return cursor.rowcount > 0

    def keys(self, suffix: str = "") -> List[str]:
        """List stored keys, optionally only those ending with suffix."""
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise GatewayError(f"Error listing keys: {e}") from e
        return [row["key"] for row in rows if row["key"].endswith(suffix)]
