"""
PostgreSQL adapter (relational backend).

Uses a psycopg ``ConnectionPool`` and one transaction per operation. The
compare-and-swap in ``update_if_version_matches`` locks the row with
``SELECT ... FOR UPDATE NOWAIT``: a competing writer makes the lock attempt
fail at once with ``LockNotAvailable``, which is reported as a version
conflict instead of queuing behind the other transaction.

Filtering and keyset pagination run in SQL against the
``(created_at DESC, id)`` index. Ids use the "C" collation so the database
and the cursor agree on tie-break order.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import psycopg
from psycopg import Cursor
from psycopg.errors import LockNotAvailable, UniqueViolation
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout
from pydantic import BaseModel, Field, field_validator

from moviecatalog.adapters.abstract import AbstractStorageAdapter, Clock, Mutator, stamp_update
from moviecatalog.domain.cursor import decode_cursor, encode_cursor
from moviecatalog.domain.models import CatalogRecord, ListFilter, Page, PageRequest
from moviecatalog.errors import (
    AdapterUnavailableError,
    DuplicateIdError,
    NotFoundError,
    VersionConflictError,
)
from moviecatalog.infrastructure.db_factory import (
    apply_statement_timeout,
    create_pool,
    get_sync_connection,
)
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)

_COLUMNS = "id, title, description, kind, year, created_at, updated_at, version"
_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")
_UNAVAILABLE = (psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout)


class PostgresAdapterConfig(BaseModel):
    """Explicit connection parameters for the PostgreSQL adapter."""

    dsn: str
    table: str = "catalog_records"
    pool_min_size: int = Field(1, ge=0)
    pool_max_size: int = Field(10, ge=1)
    pool_timeout_seconds: float = Field(5.0, gt=0)
    statement_timeout_ms: int = 5_000

    model_config = {"frozen": True}

    @field_validator("table")
    @classmethod
    def _check_table(cls, value: str) -> str:
        if not _IDENTIFIER.match(value):
            raise ValueError("table must be a lowercase SQL identifier")
        return value


def schema_statements(table: str) -> List[str]:
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id TEXT COLLATE "C" PRIMARY KEY,
            title TEXT NOT NULL CHECK (length(btrim(title)) > 0),
            description TEXT,
            kind TEXT NOT NULL DEFAULT 'movie' CHECK (kind IN ('movie', 'series')),
            year INTEGER,
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL,
            version INTEGER NOT NULL CHECK (version >= 1),
            CHECK (created_at <= updated_at)
        )
        """,
        f"CREATE INDEX IF NOT EXISTS {table}_created_id_idx ON {table} (created_at DESC, id)",
    ]


def create_schema(dsn: str, table: str) -> None:
    """
    Create the records table and its listing index over a dedicated connection.

    Used by deployment tooling before any pool exists. Transient connection
    failures are retried by ``get_sync_connection``; if they persist the
    error surfaces as ``AdapterUnavailableError``.
    """
    try:
        with get_sync_connection(dsn) as conn:
            for statement in schema_statements(table):
                conn.execute(statement)
    except _UNAVAILABLE as exc:
        log.warning(
            "Schema bootstrap failed",
            extra={"table": table, "error_type": type(exc).__name__},
        )
        raise AdapterUnavailableError("PostgreSQL backend unavailable.") from exc
    log.info("Schema ensured", extra={"table": table})


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_list_query(
    table: str, filter: ListFilter, page: PageRequest
) -> Tuple[str, List[Any]]:
    """
    Compose the SELECT for one page.

    One row beyond ``page.limit`` is requested so the caller can tell
    whether a next page exists.
    """
    clauses: List[str] = []
    params: List[Any] = []
    if filter.kind is not None:
        clauses.append("kind = %s")
        params.append(filter.kind.value)
    if filter.year_from is not None:
        clauses.append("year >= %s")
        params.append(filter.year_from)
    if filter.year_to is not None:
        clauses.append("year <= %s")
        params.append(filter.year_to)
    if filter.title_contains:
        clauses.append("title ILIKE %s")
        params.append(f"%{_escape_like(filter.title_contains)}%")
    if page.cursor:
        position = decode_cursor(page.cursor)
        clauses.append("(created_at < %s OR (created_at = %s AND id > %s))")
        params.extend([position.created_at, position.created_at, position.record_id])

    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    sql = f"SELECT {_COLUMNS} FROM {table}{where} ORDER BY created_at DESC, id ASC LIMIT %s"
    params.append(page.limit + 1)
    return sql, params


def _row_to_record(row: Dict[str, Any]) -> CatalogRecord:
    return CatalogRecord.model_validate(row)


class PostgresAdapter(AbstractStorageAdapter):
    """
    Relational adapter backed by a psycopg connection pool.

    Every operation runs in its own transaction, so an abandoned or failed
    write is rolled back as a unit.
    """

    name: str = "postgres"
    description: str = "PostgreSQL via psycopg pool; row lock NOWAIT for compare-and-swap."

    def __init__(
        self,
        config: PostgresAdapterConfig,
        pool: Optional[ConnectionPool] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(clock)
        self._config = config
        self._table = config.table
        self._pool = pool or create_pool(
            config.dsn,
            min_size=config.pool_min_size,
            max_size=config.pool_max_size,
            timeout=config.pool_timeout_seconds,
            name=f"moviecatalog-{config.table}",
        )

    @contextmanager
    def _transaction(self) -> Iterator[Cursor]:
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        apply_statement_timeout(cur, self._config.statement_timeout_ms)
                        yield cur
        except _UNAVAILABLE as exc:
            log.warning(
                "PostgreSQL operation failed",
                extra={"table": self._table, "error_type": type(exc).__name__},
            )
            raise AdapterUnavailableError("PostgreSQL backend unavailable.") from exc

    def ensure_schema(self) -> None:
        """Create the records table and its listing index when missing."""
        with self._transaction() as cur:
            for statement in schema_statements(self._table):
                cur.execute(statement)
        log.info("Schema ensured", extra={"table": self._table})

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        sql = (
            f"INSERT INTO {self._table} ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s)"
        )
        params = (
            record.id,
            record.title,
            record.description,
            record.kind.value,
            record.year,
            record.created_at,
            record.updated_at,
            record.version,
        )
        with self._transaction() as cur:
            try:
                cur.execute(sql, params)
            except UniqueViolation as exc:
                raise DuplicateIdError(record.id) from exc
        return record

    def get_by_id(self, record_id: str) -> CatalogRecord:
        with self._transaction() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM {self._table} WHERE id = %s", (record_id,))
            row = cur.fetchone()
        if row is None:
            raise NotFoundError(record_id)
        return _row_to_record(row)

    def list(self, filter: ListFilter, page: PageRequest) -> Page:
        sql, params = build_list_query(self._table, filter, page)
        with self._transaction() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()

        records = [_row_to_record(row) for row in rows[: page.limit]]
        next_cursor = None
        if len(rows) > page.limit and records:
            last = records[-1]
            next_cursor = encode_cursor(last.created_at, last.id)
        return Page(records=records, next_cursor=next_cursor)

    def update_if_version_matches(
        self, record_id: str, expected_version: int, mutator: Mutator
    ) -> CatalogRecord:
        with self._transaction() as cur:
            try:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM {self._table} WHERE id = %s FOR UPDATE NOWAIT",
                    (record_id,),
                )
            except LockNotAvailable as exc:
                raise VersionConflictError(record_id, expected_version) from exc
            row = cur.fetchone()
            if row is None:
                raise NotFoundError(record_id)
            current = _row_to_record(row)
            if current.version != expected_version:
                raise VersionConflictError(record_id, expected_version, current.version)

            updated = stamp_update(current, mutator(current), self._clock())
            cur.execute(
                f"UPDATE {self._table} SET title = %s, description = %s, kind = %s, "
                "year = %s, updated_at = %s, version = %s "
                "WHERE id = %s AND version = %s",
                (
                    updated.title,
                    updated.description,
                    updated.kind.value,
                    updated.year,
                    updated.updated_at,
                    updated.version,
                    record_id,
                    expected_version,
                ),
            )
            if cur.rowcount != 1:
                raise VersionConflictError(record_id, expected_version)
        return updated

    def delete(self, record_id: str) -> None:
        with self._transaction() as cur:
            cur.execute(f"DELETE FROM {self._table} WHERE id = %s", (record_id,))
            deleted = cur.rowcount
        if deleted == 0:
            raise NotFoundError(record_id)

    def close(self) -> None:
        self._pool.close()


__all__ = [
    "PostgresAdapter",
    "PostgresAdapterConfig",
    "build_list_query",
    "create_schema",
    "schema_statements",
]
