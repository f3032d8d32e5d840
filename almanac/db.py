"""
db.py — SQLite key/value store backing the per-entry view counters.

Database location: configured (default ~/.local/share/almanac/almanac.store.db).
Single table ``store(key, value)``; keys look like ``fs/<FsId>/total-views``.
Schema validation on startup: drop-and-recreate if mismatch.
All operations are serialised through a module-level lock.
"""

from __future__ import annotations

import os
import sqlite3
import threading
from typing import Optional

from almanac.errors import StoreError
from almanac.logger import get_logger
from almanac.models import FsId

log = get_logger(__name__)

_lock = threading.RLock()

# ── Expected schema SQL ──────────────────────────────────────────────────────

_SCHEMA_SQL = """\
CREATE TABLE store (key TEXT PRIMARY KEY, value INTEGER NOT NULL);
"""

_EXPECTED_TABLES = {
    "store": "CREATE TABLE store (key TEXT PRIMARY KEY, value INTEGER NOT NULL)",
}


def _connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def _normalise_sql(sql: str) -> str:
    """Collapse whitespace for schema comparison."""
    return " ".join(sql.split())


# ── Schema validation ────────────────────────────────────────────────────────

def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Compare the current DB schema against the expected definition.
    If mismatch: drop the table and recreate.

    Returns True if schema was already valid, False if it was dropped/recreated.
    """
    cur = conn.execute(
        "SELECT name, sql FROM sqlite_master WHERE type='table' AND name = ?",
        ("store",),
    )
    existing = {row["name"]: _normalise_sql(row["sql"]) for row in cur.fetchall()}

    if existing == {k: _normalise_sql(v) for k, v in _EXPECTED_TABLES.items()}:
        log.info("[startup_flow] event=db_schema_validated")
        return True

    log.warning("[startup_flow] event=db_schema_mismatch_dropped existing_tables=%s", list(existing))
    conn.execute("DROP TABLE IF EXISTS store")
    conn.executescript(_SCHEMA_SQL)
    conn.commit()
    return False


# ── Initialisation ───────────────────────────────────────────────────────────

def init_db(db_path: str) -> sqlite3.Connection:
    """Create database directory, connect, and validate/create schema."""
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    with _lock:
        conn = _connect(db_path)
        validate_schema(conn)
    log.info("Database initialised at %s", db_path)
    return conn


# ── Key/value operations ─────────────────────────────────────────────────────

def get_value(conn: sqlite3.Connection, key: str) -> Optional[int]:
    with _lock:
        cur = conn.execute("SELECT value FROM store WHERE key = ?", (key,))
        row = cur.fetchone()
    return None if row is None else int(row["value"])


def set_value(conn: sqlite3.Connection, key: str, value: int) -> None:
    """Stage a write; it is only durable after save()."""
    with _lock:
        conn.execute(
            "INSERT INTO store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, int(value)),
        )


def save(conn: sqlite3.Connection) -> None:
    with _lock:
        try:
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Can't update the store: {exc}") from exc


# ── View counters ────────────────────────────────────────────────────────────

class ViewCounterStore:
    """Per-identity view counters, passed explicitly to the handlers that need them."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str) -> Optional[int]:
        return get_value(self._conn, key)

    def set(self, key: str, value: int) -> None:
        set_value(self._conn, key, value)

    def save(self) -> None:
        save(self._conn)

    flush = save

    def total_views(self, fs_id: FsId) -> int:
        """Views recorded for ``fs_id``; 0 if it was never opened."""
        return self.get(fs_id.total_views_store_key()) or 0

    def increment(self, fs_id: FsId) -> int:
        """Add one view and persist. Raises StoreError if it can't be saved."""
        key = fs_id.total_views_store_key()
        with _lock:
            try:
                value = (self.get(key) or 0) + 1
                self.set(key, value)
            except sqlite3.Error as exc:
                raise StoreError(f"Can't update the store: {exc}") from exc
            self.flush()
        log.info("[store] event=total_views_updated key=%s value=%d", key, value)
        return value

    def close(self) -> None:
        with _lock:
            self._conn.close()
