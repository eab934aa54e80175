"""
Error taxonomy for the movie catalog core.

Three families are exposed to callers:

- ``ValidationError`` and its subclasses: bad input, detected before any
  adapter call.
- ``AdapterError`` subclasses (``DuplicateIdError``, ``NotFoundError``,
  ``VersionConflictError``): storage outcomes that surface unchanged through
  the repository.
- ``AdapterUnavailableError``: backend connectivity failures. This is the
  only retryable class; the core never retries on its own.

``http_status_for`` and ``error_payload`` give an external HTTP layer the
status mapping without leaking adapter internals.
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Optional

from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)


class ValidationCode(str, enum.Enum):
    MISSING_TITLE = "missing_title"
    INVALID_YEAR = "invalid_year"
    INVALID_KIND = "invalid_kind"
    INVALID_DESCRIPTION = "invalid_description"
    UNKNOWN_FIELD = "unknown_field"
    INVALID_VERSION = "invalid_version"
    INVALID_PAGINATION = "invalid_pagination"
    INVALID_FILTER = "invalid_filter"
    INVALID_RECORD = "invalid_record"


class CatalogError(Exception):
    """Base class for every error raised by the catalog core."""

    code: str = "catalog_error"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(CatalogError):
    status_code = 400
    validation_code: ValidationCode

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def code(self) -> str:  # type: ignore[override]
        return self.validation_code.value

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.field is not None:
            payload["field"] = self.field
        return payload


class MissingTitleError(ValidationError):
    validation_code = ValidationCode.MISSING_TITLE


class InvalidYearError(ValidationError):
    validation_code = ValidationCode.INVALID_YEAR


class InvalidKindError(ValidationError):
    validation_code = ValidationCode.INVALID_KIND


class InvalidDescriptionError(ValidationError):
    validation_code = ValidationCode.INVALID_DESCRIPTION


class UnknownFieldError(ValidationError):
    validation_code = ValidationCode.UNKNOWN_FIELD


class InvalidVersionError(ValidationError):
    validation_code = ValidationCode.INVALID_VERSION


class InvalidPaginationError(ValidationError):
    validation_code = ValidationCode.INVALID_PAGINATION


class InvalidFilterError(ValidationError):
    validation_code = ValidationCode.INVALID_FILTER


class InvalidRecordError(ValidationError):
    """A full record is missing identity or timestamp fields, or they have the wrong type."""

    validation_code = ValidationCode.INVALID_RECORD


class AdapterError(CatalogError):
    """Storage outcome reported by an adapter."""


class DuplicateIdError(AdapterError):
    code = "duplicate_id"
    status_code = 409

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record '{record_id}' already exists.")
        self.record_id = record_id


class NotFoundError(AdapterError):
    code = "not_found"
    status_code = 404

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record '{record_id}' not found.")
        self.record_id = record_id


class VersionConflictError(AdapterError):
    """
    The caller's expected version is stale, or another writer currently owns
    the record. ``actual_version`` is None when the record was busy rather
    than observed at a different version.
    """

    code = "version_conflict"
    status_code = 409

    def __init__(
        self, record_id: str, expected_version: int, actual_version: Optional[int] = None
    ) -> None:
        if actual_version is None:
            message = (
                f"Record '{record_id}' is being modified concurrently "
                f"(expected version {expected_version})."
            )
        else:
            message = (
                f"Record '{record_id}' is at version {actual_version}, "
                f"expected {expected_version}."
            )
        super().__init__(message)
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["expected_version"] = self.expected_version
        if self.actual_version is not None:
            payload["actual_version"] = self.actual_version
        return payload


class AdapterUnavailableError(CatalogError):
    """Backend could not be reached or timed out. Safe to retry with backoff."""

    code = "adapter_unavailable"
    status_code = 503
    retryable = True

    def to_dict(self) -> Dict[str, Any]:
        # Connection strings and driver messages stay in the logs.
        return {"error": self.code, "message": "Storage backend unavailable."}


def http_status_for(exc: BaseException) -> int:
    """Map an exception to the HTTP status an external router should return."""
    if isinstance(exc, CatalogError):
        return exc.status_code
    return 500


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """
    JSON-ready body for an error response.

    Unclassified exceptions are logged with their traceback and rendered as a
    generic internal error.
    """
    if isinstance(exc, CatalogError):
        return exc.to_dict()
    log.error(
        "Unclassified error reached the catalog boundary",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"error_type": type(exc).__name__},
    )
    return {"error": "internal_error", "message": "Internal error."}


__all__ = [
    "ValidationCode",
    "CatalogError",
    "ValidationError",
    "MissingTitleError",
    "InvalidYearError",
    "InvalidKindError",
    "InvalidDescriptionError",
    "UnknownFieldError",
    "InvalidVersionError",
    "InvalidPaginationError",
    "InvalidFilterError",
    "InvalidRecordError",
    "AdapterError",
    "DuplicateIdError",
    "NotFoundError",
    "VersionConflictError",
    "AdapterUnavailableError",
    "http_status_for",
    "error_payload",
]
