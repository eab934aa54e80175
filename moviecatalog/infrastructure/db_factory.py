"""
Database connection factory utilities for the PostgreSQL adapter.

Builds DSNs from settings, creates psycopg connection pools from explicit
parameters, and applies per-transaction statement timeouts. Nothing here
reads the environment on its own: callers pass settings or a DSN in.

One-off bootstrap connections (schema creation) retry transient connection
failures using tenacity. Request-path operations never retry; the adapter
reports ``AdapterUnavailableError`` and leaves the decision to the caller.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection, Cursor
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from moviecatalog.config import Settings


def build_dsn(settings: Settings) -> str:
    """
    Compose a libpq conninfo string from settings.

    Values are quoted by psycopg, so credentials may contain any character.
    """
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        user=settings.db_user,
        password=settings.db_password,
        dbname=settings.db_name,
    )


def create_pool(
    dsn: str,
    min_size: int = 1,
    max_size: int = 10,
    timeout: float = 5.0,
    name: Optional[str] = None,
) -> ConnectionPool:
    """
    Create and open a synchronous connection pool.

    Parameters
    ----------
    dsn : str
        libpq connection string.
    min_size : int
        Minimum number of idle connections to keep.
    max_size : int
        Maximum total connections in the pool.
    timeout : float
        Seconds a caller waits for a free connection before PoolTimeout.
    name : str, optional
        Pool name reported in psycopg_pool logs.

    Returns
    -------
    ConnectionPool
        An opened pool. Connections are established in the background, so a
        database that is down surfaces on first use rather than here.
    """
    return ConnectionPool(
        conninfo=dsn,
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        name=name,
        open=True,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: str) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection
    errors. Use this for bootstrap work such as schema creation; request-path
    code goes through the adapter's pool.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn)


def apply_statement_timeout(cur: Cursor, timeout_ms: int) -> None:
    """
    Limit statements in the current transaction to ``timeout_ms``.

    A non-positive timeout leaves the server default in place. The setting is
    transaction-local, so pooled connections are not affected afterwards.
    """
    if timeout_ms <= 0:
        return
    cur.execute("SELECT set_config('statement_timeout', %s, true)", (str(int(timeout_ms)),))


__all__ = [
    "build_dsn",
    "create_pool",
    "get_sync_connection",
    "apply_statement_timeout",
]
