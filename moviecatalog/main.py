from __future__ import annotations

import json
import sys
from typing import Any, Callable, Dict, Optional, TypeVar

import typer

from moviecatalog.adapters.postgres import create_schema
from moviecatalog.bootstrap import available_backends, build_repository, postgres_config
from moviecatalog.config import get_settings
from moviecatalog.errors import CatalogError, error_payload
from moviecatalog.repository import CatalogRepository
from moviecatalog.utils.logging import configure_logging
from moviecatalog.utils.retry import with_backoff

app = typer.Typer(help="Movie catalog CLI.")

T = TypeVar("T")


def _repository(backend: Optional[str]) -> CatalogRepository:
    settings = get_settings()
    configure_logging(
        level=settings.log_level, json_logs=settings.log_json, app_env=settings.app_env
    )
    return build_repository(settings, backend=backend)


def _fail(exc: CatalogError) -> typer.Exit:
    typer.echo(json.dumps(error_payload(exc)), err=True)
    return typer.Exit(code=1)


def _run(
    repo: CatalogRepository,
    operation: Callable[[CatalogRepository], T],
    retry: bool = True,
) -> T:
    """
    Run one repository call, rendering catalog errors as JSON on stderr.

    ``retry=False`` is for calls that are not idempotent: a create whose
    commit landed before the connection dropped would be replayed under a
    fresh id.
    """
    try:
        if not retry:
            return operation(repo)
        return with_backoff(lambda: operation(repo), attempts=get_settings().retry_attempts)
    except CatalogError as exc:
        raise _fail(exc)
    finally:
        repo.close()


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


BackendOption = typer.Option(
    None, "--backend", "-b", help="Override CATALOG_BACKEND (memory, postgres, dynamodb)."
)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"backend={settings.catalog_backend} | "
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} "
        f"table={settings.db_table} | dynamo={settings.dynamo_table}@{settings.aws_region} | "
        f"limit={settings.list_default_limit}/{settings.list_max_limit}"
    )


@app.command()
def backends() -> None:
    """
    List available storage backends.
    """
    typer.echo("Available backends: " + ", ".join(available_backends()))


@app.command("init-db")
def init_db() -> None:
    """
    Create the PostgreSQL table and index when missing.
    """
    settings = get_settings()
    configure_logging(
        level=settings.log_level, json_logs=settings.log_json, app_env=settings.app_env
    )
    config = postgres_config(settings)
    try:
        create_schema(config.dsn, config.table)
    except CatalogError as exc:
        raise _fail(exc)
    typer.echo("Schema ready.")


@app.command()
def create(
    title: str = typer.Option(..., "--title", "-t", help="Record title."),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="movie or series."),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Release year."),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Create a record and print it.
    """
    data: Dict[str, Any] = {"title": title}
    if kind is not None:
        data["kind"] = kind
    if year is not None:
        data["year"] = year
    if description is not None:
        data["description"] = description
    record = _run(
        _repository(backend), lambda repo: repo.create(data, caller="cli"), retry=False
    )
    _echo(record.to_public())


@app.command()
def get(
    record_id: str = typer.Argument(..., help="Record id."),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Print one record.
    """
    record = _run(_repository(backend), lambda repo: repo.get(record_id, caller="cli"))
    _echo(record.to_public())


@app.command("list")
def list_records(
    kind: Optional[str] = typer.Option(None, "--kind", "-k"),
    year_from: Optional[int] = typer.Option(None, "--year-from"),
    year_to: Optional[int] = typer.Option(None, "--year-to"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title substring."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n"),
    cursor: Optional[str] = typer.Option(None, "--cursor", "-c"),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Print one page of records, newest first.
    """
    criteria = {
        "kind": kind,
        "year_from": year_from,
        "year_to": year_to,
        "title_contains": title,
    }
    pagination = {"limit": limit, "cursor": cursor}
    page = _run(
        _repository(backend), lambda repo: repo.list(criteria, pagination, caller="cli")
    )
    _echo(page.to_public())


@app.command()
def update(
    record_id: str = typer.Argument(..., help="Record id."),
    version: int = typer.Option(..., "--version", "-v", help="Version you last observed."),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    kind: Optional[str] = typer.Option(None, "--kind", "-k"),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    clear_year: bool = typer.Option(False, "--clear-year", help="Remove the year."),
    clear_description: bool = typer.Option(
        False, "--clear-description", help="Remove the description."
    ),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Apply a patch if the record is still at --version.
    """
    patch: Dict[str, Any] = {}
    if title is not None:
        patch["title"] = title
    if kind is not None:
        patch["kind"] = kind
    if year is not None or clear_year:
        patch["year"] = None if clear_year else year
    if description is not None or clear_description:
        patch["description"] = None if clear_description else description
    record = _run(
        _repository(backend),
        lambda repo: repo.update(record_id, version, patch, caller="cli"),
    )
    _echo(record.to_public())


@app.command()
def delete(
    record_id: str = typer.Argument(..., help="Record id."),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Delete a record permanently.
    """
    _run(_repository(backend), lambda repo: repo.delete(record_id, caller="cli"))
    typer.echo(f"Deleted {record_id}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
