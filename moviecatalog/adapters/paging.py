"""
In-process filtering and keyset pagination shared by adapters that cannot
push ordering into the backend (in-memory, DynamoDB scans).
"""

from __future__ import annotations

from typing import Iterable, List

from moviecatalog.domain.cursor import CursorPosition, decode_cursor, encode_cursor
from moviecatalog.domain.models import CatalogRecord, ListFilter, Page, PageRequest


def matches(filter: ListFilter, record: CatalogRecord) -> bool:
    if filter.kind is not None and record.kind != filter.kind:
        return False
    if filter.year_from is not None and (record.year is None or record.year < filter.year_from):
        return False
    if filter.year_to is not None and (record.year is None or record.year > filter.year_to):
        return False
    if filter.title_contains and filter.title_contains.casefold() not in record.title.casefold():
        return False
    return True


def _after(position: CursorPosition, record: CatalogRecord) -> bool:
    """True when ``record`` sorts strictly after the cursor position."""
    if record.created_at != position.created_at:
        return record.created_at < position.created_at
    return record.id > position.record_id


def sort_records(records: Iterable[CatalogRecord]) -> List[CatalogRecord]:
    """Order by created_at descending, then id ascending."""
    by_id = sorted(records, key=lambda r: r.id)
    return sorted(by_id, key=lambda r: r.created_at, reverse=True)


def paginate(records: Iterable[CatalogRecord], filter: ListFilter, page: PageRequest) -> Page:
    """Filter, order and slice ``records`` into one page."""
    candidates = [record for record in records if matches(filter, record)]
    if page.cursor:
        position = decode_cursor(page.cursor)
        candidates = [record for record in candidates if _after(position, record)]
    ordered = sort_records(candidates)

    selected = ordered[: page.limit]
    next_cursor = None
    if len(ordered) > page.limit and selected:
        last = selected[-1]
        next_cursor = encode_cursor(last.created_at, last.id)
    return Page(records=selected, next_cursor=next_cursor)


__all__ = ["matches", "paginate", "sort_records"]
