"""
Integration tests for the PostgreSQL adapter.

These tests run against a real PostgreSQL instance and verify that:
1. The adapter honours the same contract as the in-memory reference
2. Row locking turns overlapping writers into version conflicts
3. The repository works end to end over the pool

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import pytest
from adapter_contract import AdapterContract

from moviecatalog.adapters.postgres import PostgresAdapter
from moviecatalog.errors import NotFoundError, VersionConflictError
from moviecatalog.repository import CatalogRepository

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


class TestPostgresAdapterContract(AdapterContract):
    """Shared adapter behaviour against a live database."""

    @pytest.fixture
    def adapter(self, postgres_adapter: PostgresAdapter) -> PostgresAdapter:
        return postgres_adapter


class TestRepositoryOverPostgres:
    """End-to-end repository flows."""

    def test_create_update_list_delete(self, postgres_adapter: PostgresAdapter, clock):
        repo = CatalogRepository(postgres_adapter, clock=clock)

        dune = repo.create({"title": "Dune", "year": 2021})
        arrival = repo.create({"title": "Arrival", "kind": "movie", "year": 2016})
        updated = repo.update(dune.id, 1, {"year": 2022})

        assert updated.version == 2
        with pytest.raises(VersionConflictError):
            repo.update(dune.id, 1, {"title": "Dune (stale)"})

        page = repo.list({"titleContains": "DUNE"})
        assert [r.id for r in page.records] == [dune.id]

        repo.delete(arrival.id)
        with pytest.raises(NotFoundError):
            repo.get(arrival.id)

    def test_iter_records_spans_pages(self, postgres_adapter: PostgresAdapter, clock):
        repo = CatalogRepository(postgres_adapter, clock=clock)
        created = [repo.create({"title": f"Film {i}"}) for i in range(5)]

        seen = [r.id for r in repo.iter_records(page_size=2)]

        assert seen == [r.id for r in reversed(created)]
