from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from moviecatalog import main
from moviecatalog.adapters.memory import InMemoryAdapter
from moviecatalog.config import Settings
from moviecatalog.errors import AdapterUnavailableError
from moviecatalog.repository import CatalogRepository

runner = CliRunner()


@pytest.fixture
def cli_repo(monkeypatch, memory_adapter, clock) -> CatalogRepository:
    repo = CatalogRepository(memory_adapter, clock=clock)
    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None))
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(main, "build_repository", lambda settings, backend=None: repo)
    return repo


def _invoke(*args: str):
    return runner.invoke(main.app, list(args))


def test_backends_lists_registry():
    result = _invoke("backends")

    assert result.exit_code == 0
    assert "dynamodb, memory, postgres" in result.output


def test_create_get_update_delete_round(cli_repo):
    created = _invoke("create", "--title", "Dune", "--year", "2021")
    assert created.exit_code == 0
    record = json.loads(created.output)
    assert record["version"] == 1
    assert record["kind"] == "movie"

    fetched = _invoke("get", record["id"])
    assert json.loads(fetched.output)["title"] == "Dune"

    updated = _invoke("update", record["id"], "--version", "1", "--year", "2022")
    assert updated.exit_code == 0
    assert json.loads(updated.output)["version"] == 2

    deleted = _invoke("delete", record["id"])
    assert deleted.exit_code == 0
    assert f"Deleted {record['id']}." in deleted.output


def test_stale_update_prints_conflict(cli_repo):
    record = cli_repo.create({"title": "Heat"})
    cli_repo.update(record.id, 1, {"year": 1995})

    result = _invoke("update", record.id, "-v", "1", "--clear-year")

    assert result.exit_code == 1
    assert '"error": "version_conflict"' in result.output
    assert cli_repo.get(record.id).year == 1995


def test_validation_error_is_reported(cli_repo):
    result = _invoke("create", "--title", "Old", "--year", "1700")

    assert result.exit_code == 1
    assert '"error": "invalid_year"' in result.output
    assert len(cli_repo.adapter) == 0


def test_list_paginates_with_cursor(cli_repo):
    for title in ("a", "b", "c"):
        cli_repo.create({"title": title, "kind": "series"})

    first = json.loads(_invoke("list", "--kind", "series", "--limit", "2").output)
    assert [r["title"] for r in first["records"]] == ["c", "b"]

    second = json.loads(_invoke("list", "--limit", "2", "--cursor", first["nextCursor"]).output)
    assert [r["title"] for r in second["records"]] == ["a"]
    assert second["nextCursor"] is None


class _DroppingInsertAdapter(InMemoryAdapter):
    """Loses the connection on every insert."""

    def __init__(self, clock) -> None:
        super().__init__(clock=clock)
        self.insert_calls = 0

    def insert(self, record):
        self.insert_calls += 1
        raise AdapterUnavailableError("connection reset during commit")


def test_create_is_not_replayed_after_connection_loss(monkeypatch, clock):
    adapter = _DroppingInsertAdapter(clock)
    repo = CatalogRepository(adapter, clock=clock)
    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None))
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(main, "build_repository", lambda settings, backend=None: repo)

    result = _invoke("create", "--title", "Dune")

    assert result.exit_code == 1
    assert '"error": "adapter_unavailable"' in result.output
    assert adapter.insert_calls == 1


def test_init_db_bootstraps_configured_table(monkeypatch):
    calls: list[tuple[str, str]] = []
    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None))
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(main, "create_schema", lambda dsn, table: calls.append((dsn, table)))

    result = _invoke("init-db")

    assert result.exit_code == 0
    assert "Schema ready." in result.output
    assert len(calls) == 1
    assert calls[0][1] == Settings(_env_file=None).db_table
    assert "dbname=" in calls[0][0]


def test_init_db_reports_unreachable_database(monkeypatch):
    def unreachable(dsn: str, table: str) -> None:
        raise AdapterUnavailableError("PostgreSQL backend unavailable.")

    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None))
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(main, "create_schema", unreachable)

    result = _invoke("init-db")

    assert result.exit_code == 1
    assert '"error": "adapter_unavailable"' in result.output
