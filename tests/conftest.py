"""Shared test fixtures for the project tracker tests."""

import sqlite3

import pytest

from tracker.gateway import KeyValueGateway
from tracker.store import ProjectStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "tracker.db")


@pytest.fixture
def gateway(db_path):
    return KeyValueGateway(db_path)


@pytest.fixture
def store(gateway):
    return ProjectStore(gateway)


@pytest.fixture(autouse=True)
def _no_env_db(monkeypatch):
    monkeypatch.delenv("TRACKER_DB", raising=False)


@pytest.fixture
def fail_writes_to(db_path):
    """Make every write of a key with the given prefix abort inside SQLite."""
    def _install(key_prefix):
        with sqlite3.connect(db_path) as conn:
            for event in ("INSERT", "UPDATE"):
                conn.execute(f"""
                    CREATE TRIGGER fail_{event.lower()}_{key_prefix} BEFORE {event} ON kv_store
                    WHEN NEW.key LIKE '{key_prefix}%'
                    BEGIN SELECT RAISE(ABORT, 'disk full'); END
                """)
            conn.commit()
    return _install
