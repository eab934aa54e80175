"""
Domain models for the movie catalog core.

Defines the canonical catalog record plus the small value types passed
between the repository and the storage adapters (validated create input,
list filter, page request and page result). Models are frozen: a stored
record is replaced wholesale on update, never mutated in place.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class RecordKind(str, enum.Enum):
    MOVIE = "movie"
    SERIES = "series"


class CatalogRecord(BaseModel):
    """
    One movie or series entry.

    Field names are snake_case in Python; the JSON boundary uses the
    camelCase aliases (``model_dump(by_alias=True)``).
    """

    id: str = Field(..., description="Opaque identifier assigned at creation.")
    title: str = Field(..., description="Non-empty display title.")
    description: Optional[str] = Field(None, description="Free-form synopsis.")
    kind: RecordKind = Field(RecordKind.MOVIE, description="movie or series.")
    year: Optional[int] = Field(None, description="Release year.")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    version: int = Field(1, description="Optimistic concurrency token.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    def to_public(self) -> Dict[str, Any]:
        """JSON-ready representation for an external caller."""
        return self.model_dump(mode="json", by_alias=True)


class RecordDraft(BaseModel):
    """Validated fields for a record that does not exist yet."""

    title: str
    description: Optional[str] = None
    kind: RecordKind = RecordKind.MOVIE
    year: Optional[int] = None

    model_config = {"frozen": True}


class ListFilter(BaseModel):
    """Optional list predicates. All provided predicates must match."""

    kind: Optional[RecordKind] = None
    year_from: Optional[int] = Field(None, alias="yearFrom")
    year_to: Optional[int] = Field(None, alias="yearTo")
    title_contains: Optional[str] = Field(None, alias="titleContains")

    model_config = {"frozen": True, "populate_by_name": True}

    def is_empty(self) -> bool:
        return (
            self.kind is None
            and self.year_from is None
            and self.year_to is None
            and not self.title_contains
        )


@dataclass(frozen=True)
class PageRequest:
    """Resolved pagination handed to adapters: limit is already validated."""

    limit: int
    cursor: Optional[str] = None


@dataclass(frozen=True)
class Page:
    """One page of records plus the cursor for the next page (None when done)."""

    records: List[CatalogRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None

    def to_public(self) -> Dict[str, Any]:
        return {
            "records": [record.to_public() for record in self.records],
            "nextCursor": self.next_cursor,
        }


__all__ = [
    "utc_now",
    "RecordKind",
    "CatalogRecord",
    "RecordDraft",
    "ListFilter",
    "PageRequest",
    "Page",
]
