"""Tests for db.py — schema validation and the view-counter store."""

import sqlite3

import pytest

from almanac import db
from almanac.errors import StoreError
from almanac.models import FsId

FS_ID = FsId("ab" * 32)


# ── Schema validation ────────────────────────────────────────────────────────

def test_validate_schema_empty_db():
    """Schema validation on an empty DB should create schema and return False."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    assert db.validate_schema(conn) is False
    assert db.validate_schema(conn) is True


def test_validate_schema_mismatch():
    """A table with the wrong shape is dropped and recreated."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("CREATE TABLE store (id INTEGER PRIMARY KEY, wrong TEXT)")
    conn.commit()
    assert db.validate_schema(conn) is False
    cols = {row["name"] for row in conn.execute("PRAGMA table_info(store)")}
    assert cols == {"key", "value"}


def test_init_db_creates_directory(tmp_path):
    path = tmp_path / "nested" / "almanac.store.db"
    conn = db.init_db(str(path))
    try:
        assert path.exists()
        db.set_value(conn, "k", 3)
        db.save(conn)
    finally:
        conn.close()

    conn = db.init_db(str(path))
    try:
        assert db.get_value(conn, "k") == 3
    finally:
        conn.close()


# ── Key/value ────────────────────────────────────────────────────────────────

def test_get_missing_key(store):
    assert store.get("fs/nothing/total-views") is None


def test_set_and_get(store):
    store.set("fs/x/total-views", 7)
    store.save()
    assert store.get("fs/x/total-views") == 7
    store.set("fs/x/total-views", 8)
    assert store.get("fs/x/total-views") == 8


# ── View counters ────────────────────────────────────────────────────────────

def test_total_views_defaults_to_zero(store):
    assert store.total_views(FS_ID) == 0


def test_increment(store):
    assert store.increment(FS_ID) == 1
    assert store.increment(FS_ID) == 2
    assert store.total_views(FS_ID) == 2
    assert store.get(f"fs/{FS_ID}/total-views") == 2


def test_increment_save_failure_raises_store_error(store, monkeypatch):
    def broken_commit(conn):
        raise StoreError("Can't update the store: disk full")

    monkeypatch.setattr(db, "save", broken_commit)
    with pytest.raises(StoreError):
        store.increment(FS_ID)


def test_increment_on_closed_connection_raises_store_error(store):
    store.close()
    with pytest.raises(StoreError):
        store.increment(FS_ID)


def test_flush_persists_staged_writes(tmp_path):
    path = str(tmp_path / "almanac.store.db")
    store = db.ViewCounterStore(db.init_db(path))
    store.set("fs/x/total-views", 4)
    store.flush()
    store.close()

    reopened = db.ViewCounterStore(db.init_db(path))
    try:
        assert reopened.get("fs/x/total-views") == 4
    finally:
        reopened.close()
