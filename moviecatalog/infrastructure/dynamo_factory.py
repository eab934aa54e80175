"""
boto3 factory for the DynamoDB adapter.

The table resource is created lazily from explicit parameters so importing
the adapter never touches AWS credentials or the network.
"""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config


def get_dynamodb_table(
    table_name: str,
    region_name: str,
    endpoint_url: Optional[str] = None,
    connect_timeout: float = 2.0,
    read_timeout: float = 5.0,
) -> Any:
    """
    Build a ``boto3`` DynamoDB Table resource.

    botocore's own retry loop is limited to a single attempt: retries are the
    caller's decision once ``AdapterUnavailableError`` surfaces.
    """
    resource = boto3.resource(
        "dynamodb",
        region_name=region_name,
        endpoint_url=endpoint_url,
        config=Config(
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    )
    return resource.Table(table_name)


__all__ = ["get_dynamodb_table"]
