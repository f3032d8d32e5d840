"""Shared fixtures for almanac tests."""

import os
import sqlite3

import pytest

from almanac import db


def _in_memory_db() -> sqlite3.Connection:
    """Create an in-memory SQLite DB with the expected schema."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(db._SCHEMA_SQL)
    return conn


def _write_file(path, data: bytes = b"x" * 1024, mtime_ns: int = None) -> str:
    with open(path, "wb") as f:
        f.write(data)
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return str(path)


@pytest.fixture
def make_file():
    """Write ``data`` to a path and optionally pin its mtime (in ns)."""
    return _write_file


@pytest.fixture
def store() -> db.ViewCounterStore:
    s = db.ViewCounterStore(_in_memory_db())
    yield s
    s.close()
