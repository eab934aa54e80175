"""
Catalog repository: the only entry point callers use.

Usage:
    from moviecatalog.adapters import InMemoryAdapter
    from moviecatalog.repository import CatalogRepository

    repo = CatalogRepository(InMemoryAdapter())
    dune = repo.create({"title": "Dune", "kind": "movie", "year": 2021})
    dune = repo.update(dune.id, dune.version, {"year": 2022})
    page = repo.list({"kind": "movie"}, {"limit": 10})

Each operation validates its input first (no adapter call on bad input),
then performs one logical transaction against the adapter. Adapter errors
surface unchanged so callers can tell "nothing there" from "someone else
changed it first".
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from moviecatalog.adapters.abstract import Clock, StorageAdapter
from moviecatalog.concurrency import ConcurrencyController
from moviecatalog.domain.models import (
    CatalogRecord,
    ListFilter,
    Page,
    PageRequest,
    RecordDraft,
    utc_now,
)
from moviecatalog.domain.validation import (
    validate_expected_version,
    validate_filter,
    validate_input,
    validate_pagination,
    validate_patch,
)
from moviecatalog.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def new_record_id() -> str:
    """Random 128-bit identifier rendered as a UUID string."""
    return str(uuid.uuid4())


class CatalogRepository:
    """
    Orchestrates validation, identity, concurrency control and storage.

    Parameters
    ----------
    adapter : StorageAdapter
        Backend the records live in.
    default_limit : int
        Page size applied when a list call gives none.
    max_limit : int
        Largest page size a caller may request.
    clock : Callable[[], datetime], optional
        Source of timestamps; defaults to current UTC time.
    id_factory : Callable[[], str], optional
        Source of new record ids.
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        if not 0 < default_limit <= max_limit:
            raise ValueError("default_limit must be between 1 and max_limit")
        self._adapter = adapter
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._clock: Clock = clock or utc_now
        self._new_id = id_factory or new_record_id
        self._controller = ConcurrencyController(adapter, clock=self._clock)

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    def create(
        self, data: Union[RecordDraft, Mapping[str, Any]], caller: Optional[str] = None
    ) -> CatalogRecord:
        now = self._clock()
        draft = validate_input(data, now=now)
        record = CatalogRecord(
            id=self._new_id(),
            title=draft.title,
            description=draft.description,
            kind=draft.kind,
            year=draft.year,
            created_at=now,
            updated_at=now,
            version=1,
        )
        stored = self._adapter.insert(record)
        log.info(
            "[CREATE] record stored",
            extra={"record_id": stored.id, "kind": stored.kind.value, "caller": caller},
        )
        return stored

    def get(self, record_id: str, caller: Optional[str] = None) -> CatalogRecord:
        log.debug("[GET] lookup", extra={"record_id": record_id, "caller": caller})
        return self._adapter.get_by_id(record_id)

    def list(
        self,
        filter: Union[ListFilter, Mapping[str, Any], None] = None,
        pagination: Union[PageRequest, Mapping[str, Any], None] = None,
        caller: Optional[str] = None,
    ) -> Page:
        """
        Return one page ordered newest first.

        ``pagination`` accepts ``{"cursor": ..., "limit": ...}``; pass the
        returned ``next_cursor`` back to continue.
        """
        criteria = validate_filter(filter)
        page = validate_pagination(
            pagination, default_limit=self._default_limit, max_limit=self._max_limit
        )
        result = self._adapter.list(criteria, page)
        log.debug(
            "[LIST] page served",
            extra={
                "returned": len(result.records),
                "limit": page.limit,
                "has_more": result.next_cursor is not None,
                "caller": caller,
            },
        )
        return result

    def iter_records(
        self,
        filter: Union[ListFilter, Mapping[str, Any], None] = None,
        page_size: Optional[int] = None,
        caller: Optional[str] = None,
    ) -> Iterator[CatalogRecord]:
        """Lazily walk every matching record, fetching one page at a time."""
        pagination: dict = {"limit": page_size}
        while True:
            page = self.list(filter, pagination, caller=caller)
            yield from page.records
            if page.next_cursor is None:
                return
            pagination = {"limit": page_size, "cursor": page.next_cursor}

    def update(
        self,
        record_id: str,
        expected_version: int,
        patch: Mapping[str, Any],
        caller: Optional[str] = None,
    ) -> CatalogRecord:
        version = validate_expected_version(expected_version)
        changes = validate_patch(patch, now=self._clock())
        return self._controller.apply(record_id, version, changes, caller=caller)

    def delete(self, record_id: str, caller: Optional[str] = None) -> None:
        self._adapter.delete(record_id)
        log.info("[DELETE] record removed", extra={"record_id": record_id, "caller": caller})

    def close(self) -> None:
        self._adapter.close()


__all__ = ["CatalogRepository", "new_record_id", "DEFAULT_LIMIT", "MAX_LIMIT"]
