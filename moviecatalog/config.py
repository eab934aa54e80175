"""
Configuration settings for the movie catalog core.

Uses Pydantic Settings to load environment variables for backend selection,
database connections, logging, and list pagination defaults. Only the
composition root (bootstrap, CLI) reads these settings; adapters and the
repository receive explicit values at construction time.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Backend selection
    catalog_backend: str = Field("memory", alias="CATALOG_BACKEND")

    # PostgreSQL
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("movie_catalog", alias="DB_NAME")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS")
    db_table: str = Field("catalog_records", alias="DB_TABLE")

    # DynamoDB
    dynamo_table: str = Field("catalog_records", alias="DYNAMO_TABLE")
    aws_region: str = Field("us-east-1", alias="AWS_REGION")
    dynamo_endpoint_url: Optional[str] = Field(None, alias="DYNAMO_ENDPOINT_URL")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Listing / client behaviour
    list_default_limit: int = Field(20, alias="LIST_DEFAULT_LIMIT")
    list_max_limit: int = Field(100, alias="LIST_MAX_LIMIT")
    retry_attempts: int = Field(3, alias="RETRY_ATTEMPTS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
