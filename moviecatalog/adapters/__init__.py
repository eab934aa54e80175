"""
Storage adapters for the movie catalog core.

This module re-exports the adapter interface and the concrete backends so
downstream code can import from `moviecatalog.adapters` directly.
"""

from moviecatalog.adapters.abstract import (
    AbstractStorageAdapter,
    Mutator,
    StorageAdapter,
    stamp_update,
)
from moviecatalog.adapters.dynamodb import DynamoAdapterConfig, DynamoDBAdapter
from moviecatalog.adapters.memory import InMemoryAdapter
from moviecatalog.adapters.postgres import PostgresAdapter, PostgresAdapterConfig

__all__ = [
    # Abstracts
    "AbstractStorageAdapter",
    "Mutator",
    "StorageAdapter",
    "stamp_update",
    # Concrete adapters
    "DynamoAdapterConfig",
    "DynamoDBAdapter",
    "InMemoryAdapter",
    "PostgresAdapter",
    "PostgresAdapterConfig",
]
