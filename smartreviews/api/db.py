"""
Smart Reviews Database Pool
===========================

Process-wide psycopg2 ThreadedConnectionPool. The blocking routes run
in FastAPI's worker threads, so connections are checked out per call.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from ..config import DatabaseConfig, get_settings

logger = logging.getLogger(__name__)

_pool: Optional[ThreadedConnectionPool] = None


def get_pool(config: Optional[DatabaseConfig] = None) -> Optional[ThreadedConnectionPool]:
    """
    Shared pool, created on first call.

    Returns None (and logs) when the server cannot be reached, so the
    caller decides whether that is fatal.
    """
    global _pool
    if _pool is None:
        config = config or get_settings().database
        try:
            _pool = ThreadedConnectionPool(
                config.pool_min_size, config.pool_max_size, **config.connection_dict,
            )
        except psycopg2.Error as e:
            logger.warning(f"Could not open pool to {config.host}:{config.port}/{config.name}: {e}")
            return None
        logger.info(
            f"Pool open to {config.host}:{config.port}/{config.name} "
            f"({config.pool_min_size}-{config.pool_max_size} connections)"
        )
    return _pool


def close_pool():
    global _pool
    if _pool is None:
        return
    _pool.closeall()
    _pool = None
    logger.info("Pool closed")


@contextmanager
def get_connection():
    """Borrow a pooled connection; raises ConnectionError without a pool."""
    pool = get_pool()
    if pool is None:
        raise ConnectionError("Database pool not available")
    conn = pool.getconn()
    try:
        yield conn
    finally:
        pool.putconn(conn)


def _format_server_version(version: int) -> str:
    # libpq encodes 16.2 as 160002
    return f"PostgreSQL {version // 10000}.{version % 10000}"


def check_health() -> Dict[str, Any]:
    """Round-trip to the server: {"status": "connected", "version": ...} or disconnected + error."""
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
            return {"status": "connected", "version": _format_server_version(conn.server_version)}
    except (ConnectionError, psycopg2.Error) as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "disconnected", "error": str(e)}
