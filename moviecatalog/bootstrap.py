"""
Composition root: turns settings into a wired repository.

Usage:
    from moviecatalog.bootstrap import build_repository

    repo = build_repository()          # backend from CATALOG_BACKEND
    repo = build_repository(backend="postgres")

This is the only place that reads ``Settings``. Adapters receive explicit
config objects, and the repository receives explicit limits.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from moviecatalog.adapters.abstract import StorageAdapter
from moviecatalog.adapters.dynamodb import DynamoAdapterConfig, DynamoDBAdapter
from moviecatalog.adapters.memory import InMemoryAdapter
from moviecatalog.adapters.postgres import PostgresAdapter, PostgresAdapterConfig
from moviecatalog.config import Settings, get_settings
from moviecatalog.infrastructure.db_factory import build_dsn
from moviecatalog.repository import CatalogRepository
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)


def postgres_config(settings: Settings) -> PostgresAdapterConfig:
    return PostgresAdapterConfig(
        dsn=build_dsn(settings),
        table=settings.db_table,
        pool_min_size=settings.db_pool_min_size,
        pool_max_size=settings.db_pool_max_size,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )


def dynamo_config(settings: Settings) -> DynamoAdapterConfig:
    return DynamoAdapterConfig(
        table_name=settings.dynamo_table,
        region_name=settings.aws_region,
        endpoint_url=settings.dynamo_endpoint_url,
    )


def _adapter_factories() -> Dict[str, Callable[[Settings], StorageAdapter]]:
    """Registry of available storage backends."""
    return {
        "memory": lambda settings: InMemoryAdapter(),
        "postgres": lambda settings: PostgresAdapter(postgres_config(settings)),
        "dynamodb": lambda settings: DynamoDBAdapter(dynamo_config(settings)),
    }


def available_backends() -> List[str]:
    """List available backend names."""
    return sorted(_adapter_factories().keys())


def build_adapter(name: str, settings: Optional[Settings] = None) -> StorageAdapter:
    factories = _adapter_factories()
    if name not in factories:
        raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(sorted(factories))}")
    adapter = factories[name](settings or get_settings())
    log.info(f"[BACKEND] {name}", extra={"backend": name})
    return adapter


def build_repository(
    settings: Optional[Settings] = None, backend: Optional[str] = None
) -> CatalogRepository:
    settings = settings or get_settings()
    adapter = build_adapter(backend or settings.catalog_backend, settings)
    return CatalogRepository(
        adapter,
        default_limit=settings.list_default_limit,
        max_limit=settings.list_max_limit,
    )


__all__ = [
    "available_backends",
    "build_adapter",
    "build_repository",
    "dynamo_config",
    "postgres_config",
]
