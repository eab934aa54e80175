"""
Infrastructure package for the movie catalog core.

Centralizes backend connectivity concerns (psycopg pools, boto3 resources).
Keep this layer focused on I/O and resource management, decoupled from
repository and validation logic.
"""

from moviecatalog.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    create_pool,
    get_sync_connection,
)
from moviecatalog.infrastructure.dynamo_factory import get_dynamodb_table

__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
    "get_dynamodb_table",
    "get_sync_connection",
]
