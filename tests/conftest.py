"""
Pytest configuration for the movie catalog core.

Provides fixtures for:
- A deterministic clock
- In-memory adapter and repository wiring
- A fake DynamoDB table that honours the adapter's condition expressions
- PostgreSQL connection management for integration tests
"""

from __future__ import annotations

import os
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Generator, Optional

import psycopg
import pytest
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from moviecatalog.adapters.dynamodb import DynamoAdapterConfig, DynamoDBAdapter
from moviecatalog.adapters.memory import InMemoryAdapter
from moviecatalog.adapters.postgres import PostgresAdapter, PostgresAdapterConfig
from moviecatalog.config import Settings
from moviecatalog.infrastructure.db_factory import build_dsn
from moviecatalog.repository import CatalogRepository

CLOCK_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
TEST_TABLE = "catalog_records_test"


class StepClock:
    """Thread-safe clock advancing one second per reading."""

    def __init__(self, start: datetime = CLOCK_START, step: timedelta = timedelta(seconds=1)):
        self._current = start
        self._step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            value = self._current
            self._current = value + self._step
            return value

    def rewind(self, delta: timedelta) -> None:
        with self._lock:
            self._current -= delta


_serializer = TypeSerializer()


def _stored(item: Dict[str, Any]) -> Dict[str, Any]:
    # boto3 hands numbers back as Decimal.
    return {
        key: Decimal(value) if isinstance(value, int) and not isinstance(value, bool) else value
        for key, value in item.items()
    }


def _condition_failed(operation: str, old: Optional[Dict[str, Any]]) -> ClientError:
    response: Dict[str, Any] = {
        "Error": {
            "Code": "ConditionalCheckFailedException",
            "Message": "The conditional request failed",
        },
        "ResponseMetadata": {"HTTPStatusCode": 400},
    }
    if old is not None:
        response["Item"] = {key: _serializer.serialize(value) for key, value in old.items()}
    return ClientError(response, operation)


class FakeDynamoTable:
    """
    In-process stand-in for a boto3 Table resource.

    Understands exactly the condition expressions the adapter sends and
    pages scans by ``page_size`` so LastEvaluatedKey handling is exercised.
    """

    def __init__(self, page_size: int = 2) -> None:
        self._items: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.page_size = page_size
        self.scans: list[dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def put_item(
        self,
        Item: Dict[str, Any],
        ConditionExpression: Optional[str] = None,
        ExpressionAttributeNames: Optional[Dict[str, str]] = None,
        ExpressionAttributeValues: Optional[Dict[str, Any]] = None,
        ReturnValuesOnConditionCheckFailure: Optional[str] = None,
    ) -> Dict[str, Any]:
        del ExpressionAttributeNames
        self._maybe_fail()
        with self._lock:
            existing = self._items.get(Item["id"])
            if ConditionExpression is None:
                allowed = True
            elif ConditionExpression == "attribute_not_exists(#id)":
                allowed = existing is None
            elif ConditionExpression == "#version = :expected":
                expected = ExpressionAttributeValues[":expected"]
                allowed = existing is not None and existing["version"] == expected
            else:
                raise AssertionError(f"unexpected condition {ConditionExpression!r}")
            if not allowed:
                old = existing if ReturnValuesOnConditionCheckFailure == "ALL_OLD" else None
                raise _condition_failed("PutItem", old)
            self._items[Item["id"]] = _stored(Item)
        return {}

    def get_item(self, Key: Dict[str, Any], ConsistentRead: bool = False) -> Dict[str, Any]:
        del ConsistentRead
        self._maybe_fail()
        with self._lock:
            item = self._items.get(Key["id"])
            return {} if item is None else {"Item": dict(item)}

    def delete_item(
        self,
        Key: Dict[str, Any],
        ConditionExpression: Optional[str] = None,
        ExpressionAttributeNames: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        del ExpressionAttributeNames
        self._maybe_fail()
        with self._lock:
            if ConditionExpression == "attribute_exists(#id)" and Key["id"] not in self._items:
                raise _condition_failed("DeleteItem", None)
            self._items.pop(Key["id"], None)
        return {}

    def scan(self, **kwargs: Any) -> Dict[str, Any]:
        self._maybe_fail()
        self.scans.append(kwargs)
        with self._lock:
            ids = sorted(self._items)
            start_key = kwargs.get("ExclusiveStartKey")
            if start_key:
                ids = [item_id for item_id in ids if item_id > start_key["id"]]
            size = min(self.page_size, kwargs.get("Limit", self.page_size))
            chunk = ids[:size]
            response: Dict[str, Any] = {"Items": [dict(self._items[i]) for i in chunk]}
            if len(ids) > size:
                response["LastEvaluatedKey"] = {"id": chunk[-1]}
            return response


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def memory_adapter(clock: StepClock) -> InMemoryAdapter:
    return InMemoryAdapter(clock=clock)


@pytest.fixture
def repository(memory_adapter: InMemoryAdapter, clock: StepClock) -> CatalogRepository:
    return CatalogRepository(memory_adapter, default_limit=20, max_limit=100, clock=clock)


@pytest.fixture
def fake_table() -> FakeDynamoTable:
    return FakeDynamoTable()


@pytest.fixture
def dynamo_adapter(fake_table: FakeDynamoTable, clock: StepClock) -> DynamoDBAdapter:
    return DynamoDBAdapter(DynamoAdapterConfig(table_name="test"), table=fake_table, clock=clock)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "movie_catalog"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def postgres_adapter(
    test_dsn: str, db_connection_available: bool, clock: StepClock
) -> Generator[PostgresAdapter, None, None]:
    """
    Provide a PostgreSQL adapter over an emptied test table.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    adapter = PostgresAdapter(
        PostgresAdapterConfig(dsn=test_dsn, table=TEST_TABLE, pool_max_size=4),
        clock=clock,
    )
    adapter.ensure_schema()
    with psycopg.connect(test_dsn) as conn:
        conn.execute(f"TRUNCATE TABLE {TEST_TABLE}")
    try:
        yield adapter
    finally:
        with psycopg.connect(test_dsn) as conn:
            conn.execute(f"TRUNCATE TABLE {TEST_TABLE}")
        adapter.close()
