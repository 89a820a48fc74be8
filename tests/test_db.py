"""
Tests for the API connection pool helpers.
"""

import psycopg2
import pytest
from unittest.mock import MagicMock

from smartreviews.api import db


@pytest.fixture
def pool(monkeypatch):
    pool = MagicMock()
    monkeypatch.setattr(db, "_pool", pool)
    return pool


class TestCheckHealth:

    def test_connected(self, pool):
        conn = pool.getconn.return_value
        conn.server_version = 160002

        assert db.check_health() == {"status": "connected", "version": "PostgreSQL 16.2"}
        pool.putconn.assert_called_once_with(conn)

    def test_query_failure(self, pool):
        conn = pool.getconn.return_value
        conn.cursor.return_value.__enter__.return_value.execute.side_effect = (
            psycopg2.OperationalError("terminating connection")
        )

        health = db.check_health()

        assert health["status"] == "disconnected"
        assert "terminating" in health["error"]
        pool.putconn.assert_called_once_with(conn)

    def test_no_pool(self, monkeypatch):
        monkeypatch.setattr(db, "_pool", None)
        monkeypatch.setattr(db, "get_pool", lambda config=None: None)

        assert db.check_health()["status"] == "disconnected"


class TestClosePool:

    def test_close(self, pool):
        db.close_pool()
        pool.closeall.assert_called_once()
        assert db._pool is None
