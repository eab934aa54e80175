"""
Movie Catalog - persistence core for a movie/series catalog.

This package provides the storage-engine side of a catalog service:

- A validated, immutable record model
- A storage adapter interface with in-memory, PostgreSQL and DynamoDB backends
- Optimistic concurrency control via per-record version tokens
- A repository that validates input, assigns identity and normalizes errors

An HTTP layer (out of scope here) calls the repository's five operations
and maps errors to status codes with ``http_status_for``.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from moviecatalog.adapters import (
    AbstractStorageAdapter,
    DynamoDBAdapter,
    InMemoryAdapter,
    PostgresAdapter,
    StorageAdapter,
)
from moviecatalog.bootstrap import available_backends, build_repository
from moviecatalog.concurrency import ConcurrencyController
from moviecatalog.config import Settings, get_settings
from moviecatalog.domain import CatalogRecord, ListFilter, Page, RecordKind, validate
from moviecatalog.errors import (
    AdapterUnavailableError,
    CatalogError,
    DuplicateIdError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
    error_payload,
    http_status_for,
)
from moviecatalog.repository import CatalogRepository
from moviecatalog.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Wiring
    "available_backends",
    "build_repository",
    # Core
    "CatalogRepository",
    "ConcurrencyController",
    "CatalogRecord",
    "ListFilter",
    "Page",
    "RecordKind",
    "validate",
    # Adapters
    "StorageAdapter",
    "AbstractStorageAdapter",
    "InMemoryAdapter",
    "PostgresAdapter",
    "DynamoDBAdapter",
    # Errors
    "CatalogError",
    "ValidationError",
    "DuplicateIdError",
    "NotFoundError",
    "VersionConflictError",
    "AdapterUnavailableError",
    "http_status_for",
    "error_payload",
    # Logging
    "configure_logging",
    "get_logger",
]
