"""
Optimistic concurrency control for catalog updates.

The controller turns "apply these changes to the version I last saw" into a
single compare-and-swap on the adapter and classifies the result:

- ``NotFoundError``: the record vanished (or never existed);
- ``VersionConflictError``: the caller's version is stale, or another writer
  holds the record right now;
- ``ValidationError``: the changes produce an invalid record.

It never retries. A retry with a refreshed version is the caller's decision,
because replaying the same changes could overwrite someone else's edit.
"""

from __future__ import annotations

import enum
from typing import Any, Mapping, Optional

from moviecatalog.adapters.abstract import Clock, StorageAdapter
from moviecatalog.domain.models import CatalogRecord, utc_now
from moviecatalog.domain.validation import validate
from moviecatalog.errors import NotFoundError, ValidationError, VersionConflictError
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)


class UpdateOutcome(str, enum.Enum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"
    VERSION_CONFLICT = "version_conflict"
    INVALID = "invalid"


class ConcurrencyController:
    """Compare-and-swap front end over a storage adapter."""

    def __init__(self, adapter: StorageAdapter, clock: Optional[Clock] = None) -> None:
        self._adapter = adapter
        self._clock: Clock = clock or utc_now

    def apply(
        self,
        record_id: str,
        expected_version: int,
        changes: Mapping[str, Any],
        caller: Optional[str] = None,
    ) -> CatalogRecord:
        """
        Apply already-validated field ``changes`` if the stored version still
        equals ``expected_version``.

        The merged record is validated again inside the atomic section, so a
        combination of fields that is only invalid together never gets
        persisted.
        """
        updates = dict(changes)

        def mutator(current: CatalogRecord) -> CatalogRecord:
            return validate(current.model_copy(update=updates), now=self._clock())

        context = {
            "record_id": record_id,
            "expected_version": expected_version,
            "fields": sorted(updates),
            "caller": caller,
        }
        try:
            updated = self._adapter.update_if_version_matches(
                record_id, expected_version, mutator
            )
        except NotFoundError:
            log.info(
                "[UPDATE] record not found",
                extra={**context, "outcome": UpdateOutcome.NOT_FOUND.value},
            )
            raise
        except VersionConflictError as exc:
            log.info(
                "[UPDATE] version conflict",
                extra={
                    **context,
                    "outcome": UpdateOutcome.VERSION_CONFLICT.value,
                    "actual_version": exc.actual_version,
                },
            )
            raise
        except ValidationError as exc:
            log.info(
                "[UPDATE] rejected after merge",
                extra={**context, "outcome": UpdateOutcome.INVALID.value, "code": exc.code},
            )
            raise

        log.info(
            "[UPDATE] applied",
            extra={**context, "outcome": UpdateOutcome.APPLIED.value, "version": updated.version},
        )
        return updated


__all__ = ["ConcurrencyController", "UpdateOutcome"]
