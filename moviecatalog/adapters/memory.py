"""
In-memory reference adapter.

Keyed-map storage for tests and local runs. It gives the same guarantees a
database backend gives:

- a short store lock guards the map, so readers always see a complete
  record (records are frozen and replaced wholesale);
- each id has its own row lock, held for the whole read-check-mutate-write
  sequence of ``update_if_version_matches``. A contended row lock is not
  waited on: the losing writer gets ``VersionConflictError`` immediately.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional

from moviecatalog.adapters.abstract import AbstractStorageAdapter, Clock, Mutator, stamp_update
from moviecatalog.adapters.paging import paginate
from moviecatalog.domain.models import CatalogRecord, ListFilter, Page, PageRequest
from moviecatalog.errors import DuplicateIdError, NotFoundError, VersionConflictError
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)


class InMemoryAdapter(AbstractStorageAdapter):
    """Dict-backed adapter with per-id compare-and-swap."""

    name: str = "memory"
    description: str = "Process-local dict store with per-record locks."

    def __init__(self, clock: Optional[Clock] = None) -> None:
        super().__init__(clock)
        self._records: Dict[str, CatalogRecord] = {}
        self._row_locks: Dict[str, threading.Lock] = {}
        self._store_lock = threading.Lock()

    def __len__(self) -> int:
        with self._store_lock:
            return len(self._records)

    def _row_lock(self, record_id: str) -> Optional[threading.Lock]:
        with self._store_lock:
            return self._row_locks.get(record_id)

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        with self._store_lock:
            if record.id in self._records:
                raise DuplicateIdError(record.id)
            self._records[record.id] = record
            self._row_locks[record.id] = threading.Lock()
        return record

    def get_by_id(self, record_id: str) -> CatalogRecord:
        with self._store_lock:
            record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    def list(self, filter: ListFilter, page: PageRequest) -> Page:
        with self._store_lock:
            snapshot = list(self._records.values())
        return paginate(snapshot, filter, page)

    def update_if_version_matches(
        self, record_id: str, expected_version: int, mutator: Mutator
    ) -> CatalogRecord:
        row_lock = self._row_lock(record_id)
        if row_lock is None:
            raise NotFoundError(record_id)
        if not row_lock.acquire(blocking=False):
            log.debug("Row busy, rejecting update", extra={"record_id": record_id})
            raise VersionConflictError(record_id, expected_version)
        try:
            with self._store_lock:
                current = self._records.get(record_id)
            if current is None:
                raise NotFoundError(record_id)
            if current.version != expected_version:
                raise VersionConflictError(record_id, expected_version, current.version)

            updated = stamp_update(current, mutator(current), self._clock())
            with self._store_lock:
                if record_id not in self._records:
                    raise NotFoundError(record_id)
                self._records[record_id] = updated
            return updated
        finally:
            row_lock.release()

    def delete(self, record_id: str) -> None:
        row_lock = self._row_lock(record_id)
        if row_lock is None:
            raise NotFoundError(record_id)
        # Mutators are pure and short, so waiting for an in-flight update is bounded.
        with row_lock:
            with self._store_lock:
                if self._records.pop(record_id, None) is None:
                    raise NotFoundError(record_id)
                self._row_locks.pop(record_id, None)


__all__ = ["InMemoryAdapter"]
