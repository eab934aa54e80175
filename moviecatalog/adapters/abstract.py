"""
Storage adapter interface for the movie catalog core.

Concrete adapters (in-memory, PostgreSQL, DynamoDB) implement the
StorageAdapter protocol. The repository is written against this protocol
only, so business logic never depends on a database SDK.

Every adapter honours the same contract:

- ``insert`` refuses an id that already exists (``DuplicateIdError``).
- ``get_by_id`` and ``delete`` raise ``NotFoundError`` for absent ids.
- ``list`` returns one page ordered by ``created_at`` descending, ``id``
  ascending, resumable from the page's cursor.
- ``update_if_version_matches`` is a single atomic compare-and-swap. It never
  waits on a competing writer and never retries.
- connectivity failures surface as ``AdapterUnavailableError``; an aborted
  write leaves no partial state behind.
"""

from __future__ import annotations

import abc
from datetime import datetime
from typing import Callable, Protocol, runtime_checkable

from moviecatalog.domain.models import CatalogRecord, ListFilter, Page, PageRequest, utc_now

Mutator = Callable[[CatalogRecord], CatalogRecord]
Clock = Callable[[], datetime]


def stamp_update(
    current: CatalogRecord, mutated: CatalogRecord, now: datetime
) -> CatalogRecord:
    """
    Pin identity fields of ``mutated`` to ``current`` and advance the version.

    ``updated_at`` never moves backwards even if the clock does.
    """
    return mutated.model_copy(
        update={
            "id": current.id,
            "created_at": current.created_at,
            "version": current.version + 1,
            "updated_at": max(now, current.updated_at),
        }
    )


@runtime_checkable
class StorageAdapter(Protocol):
    """
    Capability contract all storage backends must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the backend.
    """

    name: str
    description: str

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        """Store a new record keyed by its id."""
        ...

    def get_by_id(self, record_id: str) -> CatalogRecord:
        """Return the stored record."""
        ...

    def list(self, filter: ListFilter, page: PageRequest) -> Page:
        """Return one page of records matching ``filter``."""
        ...

    def update_if_version_matches(
        self, record_id: str, expected_version: int, mutator: Mutator
    ) -> CatalogRecord:
        """
        Atomically apply ``mutator`` when the stored version equals
        ``expected_version``.

        Parameters
        ----------
        record_id : str
            Target record.
        expected_version : int
            Version the caller last observed.
        mutator : Mutator
            Pure function producing the new field values from the current
            record. Any exception it raises aborts the update with no write.

        Returns
        -------
        CatalogRecord
            The persisted record with ``version = expected_version + 1``.
        """
        ...

    def delete(self, record_id: str) -> None:
        """Remove the record permanently."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class AbstractStorageAdapter(abc.ABC):
    """
    ABC helper for class-based adapters.

    Subclasses set ``name`` and ``description`` and implement the five
    storage operations. ``close`` defaults to a no-op.
    """

    name: str
    description: str

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or utc_now

    @abc.abstractmethod
    def insert(self, record: CatalogRecord) -> CatalogRecord:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def get_by_id(self, record_id: str) -> CatalogRecord:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list(self, filter: ListFilter, page: PageRequest) -> Page:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def update_if_version_matches(
        self, record_id: str, expected_version: int, mutator: Mutator
    ) -> CatalogRecord:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, record_id: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __enter__(self) -> "AbstractStorageAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "Clock",
    "Mutator",
    "StorageAdapter",
    "AbstractStorageAdapter",
    "stamp_update",
]
