"""
DynamoDB adapter (document backend).

Records are stored one item per id. DynamoDB has no row locks, so the
compare-and-swap is a conditional replace: the new item is written only if
the stored ``version`` still equals the expected one. When the condition
fails, the old item is returned with the error, which tells a stale version
apart from a record that has vanished.

Listing scans the table with a server-side filter expression and orders the
matches in process. Substring search runs against a lower-cased copy of the
title (``title_lower``) because DynamoDB's ``contains`` is case-sensitive.
"""

from __future__ import annotations

import functools
import operator
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, ConditionBase
from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

from moviecatalog.adapters.abstract import AbstractStorageAdapter, Clock, Mutator, stamp_update
from moviecatalog.adapters.paging import paginate
from moviecatalog.domain.models import CatalogRecord, ListFilter, Page, PageRequest
from moviecatalog.errors import (
    AdapterUnavailableError,
    DuplicateIdError,
    NotFoundError,
    VersionConflictError,
)
from moviecatalog.infrastructure.dynamo_factory import get_dynamodb_table
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)

CONDITION_FAILED = "ConditionalCheckFailedException"
_UNAVAILABLE_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
        "InternalServerError",
        "ServiceUnavailable",
        "ResourceNotFoundException",
    }
)
_deserializer = TypeDeserializer()


class DynamoAdapterConfig(BaseModel):
    """Explicit connection parameters for the DynamoDB adapter."""

    table_name: str = "catalog_records"
    region_name: str = "us-east-1"
    endpoint_url: Optional[str] = None
    scan_page_size: int = Field(200, ge=1)

    model_config = {"frozen": True}


def to_item(record: CatalogRecord) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "id": record.id,
        "title": record.title,
        "title_lower": record.title.casefold(),
        "kind": record.kind.value,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
        "version": record.version,
    }
    if record.description is not None:
        item["description"] = record.description
    if record.year is not None:
        item["year"] = record.year
    return item


def from_item(item: Dict[str, Any]) -> CatalogRecord:
    data = {key: value for key, value in item.items() if key != "title_lower"}
    for key in ("version", "year"):
        if isinstance(data.get(key), Decimal):
            data[key] = int(data[key])
    return CatalogRecord.model_validate(data)


def build_filter_expression(filter: ListFilter) -> Optional[ConditionBase]:
    conditions: List[ConditionBase] = []
    if filter.kind is not None:
        conditions.append(Attr("kind").eq(filter.kind.value))
    if filter.year_from is not None:
        conditions.append(Attr("year").gte(filter.year_from))
    if filter.year_to is not None:
        conditions.append(Attr("year").lte(filter.year_to))
    if filter.title_contains:
        conditions.append(Attr("title_lower").contains(filter.title_contains.casefold()))
    if not conditions:
        return None
    return functools.reduce(operator.and_, conditions)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DynamoDBAdapter(AbstractStorageAdapter):
    """Document adapter using conditional writes on a DynamoDB table."""

    name: str = "dynamodb"
    description: str = "DynamoDB table; conditional put on version for compare-and-swap."

    def __init__(
        self,
        config: DynamoAdapterConfig,
        table: Any = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(clock)
        self._config = config
        self._table = table if table is not None else get_dynamodb_table(
            config.table_name, config.region_name, config.endpoint_url
        )

    def _call(self, operation: Callable[..., Dict[str, Any]], **kwargs: Any) -> Dict[str, Any]:
        """
        Invoke a table operation, mapping connectivity failures.

        Conditional-check failures and other client errors are re-raised for
        the calling method to classify.
        """
        try:
            return operation(**kwargs)
        except ClientError as exc:
            code = _error_code(exc)
            status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
            if code in _UNAVAILABLE_CODES or status >= 500:
                log.warning(
                    "DynamoDB operation failed",
                    extra={"table": self._config.table_name, "error_code": code},
                )
                raise AdapterUnavailableError("DynamoDB backend unavailable.") from exc
            raise
        except BotoCoreError as exc:
            log.warning(
                "DynamoDB unreachable",
                extra={"table": self._config.table_name, "error_type": type(exc).__name__},
            )
            raise AdapterUnavailableError("DynamoDB backend unavailable.") from exc

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        try:
            self._call(
                self._table.put_item,
                Item=to_item(record),
                ConditionExpression="attribute_not_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
            )
        except ClientError as exc:
            if _error_code(exc) == CONDITION_FAILED:
                raise DuplicateIdError(record.id) from exc
            raise
        return record

    def get_by_id(self, record_id: str) -> CatalogRecord:
        response = self._call(self._table.get_item, Key={"id": record_id}, ConsistentRead=True)
        item = response.get("Item")
        if item is None:
            raise NotFoundError(record_id)
        return from_item(item)

    def list(self, filter: ListFilter, page: PageRequest) -> Page:
        kwargs: Dict[str, Any] = {"ConsistentRead": True, "Limit": self._config.scan_page_size}
        expression = build_filter_expression(filter)
        if expression is not None:
            kwargs["FilterExpression"] = expression

        records: List[CatalogRecord] = []
        while True:
            response = self._call(self._table.scan, **kwargs)
            records.extend(from_item(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return paginate(records, filter, page)

    def update_if_version_matches(
        self, record_id: str, expected_version: int, mutator: Mutator
    ) -> CatalogRecord:
        current = self.get_by_id(record_id)
        if current.version != expected_version:
            raise VersionConflictError(record_id, expected_version, current.version)

        updated = stamp_update(current, mutator(current), self._clock())
        try:
            self._call(
                self._table.put_item,
                Item=to_item(updated),
                ConditionExpression="#version = :expected",
                ExpressionAttributeNames={"#version": "version"},
                ExpressionAttributeValues={":expected": expected_version},
                ReturnValuesOnConditionCheckFailure="ALL_OLD",
            )
        except ClientError as exc:
            if _error_code(exc) != CONDITION_FAILED:
                raise
            old_item = exc.response.get("Item")
            if not old_item:
                raise NotFoundError(record_id) from exc
            stored = {key: _deserializer.deserialize(value) for key, value in old_item.items()}
            raise VersionConflictError(
                record_id, expected_version, int(stored["version"])
            ) from exc
        return updated

    def delete(self, record_id: str) -> None:
        try:
            self._call(
                self._table.delete_item,
                Key={"id": record_id},
                ConditionExpression="attribute_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
            )
        except ClientError as exc:
            if _error_code(exc) == CONDITION_FAILED:
                raise NotFoundError(record_id) from exc
            raise


__all__ = [
    "DynamoDBAdapter",
    "DynamoAdapterConfig",
    "build_filter_expression",
    "from_item",
    "to_item",
]
