"""
Validation rules for catalog records and repository inputs.

All functions are pure: they inspect their input, return a normalized value
and raise a ``ValidationError`` subclass on the first rule that fails. The
current year is taken from ``now`` so callers control the clock.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

import pydantic

from moviecatalog.domain.cursor import decode_cursor
from moviecatalog.domain.models import (
    CatalogRecord,
    ListFilter,
    PageRequest,
    RecordDraft,
    RecordKind,
    utc_now,
)
from moviecatalog.errors import (
    InvalidDescriptionError,
    InvalidFilterError,
    InvalidKindError,
    InvalidPaginationError,
    InvalidRecordError,
    InvalidVersionError,
    InvalidYearError,
    MissingTitleError,
    UnknownFieldError,
)

MIN_YEAR = 1888
MAX_YEAR_AHEAD = 5

EDITABLE_FIELDS = frozenset({"title", "description", "kind", "year"})
IMMUTABLE_FIELDS = frozenset(
    {"id", "version", "created_at", "createdAt", "updated_at", "updatedAt"}
)

_ABSENT = object()


def max_year(now: Optional[datetime] = None) -> int:
    return (now or utc_now()).year + MAX_YEAR_AHEAD


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MissingTitleError("Title is required.", field="title")
    return value.strip()


def check_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidDescriptionError("Description must be text.", field="description")
    return value.strip() or None


def check_kind(value: Any) -> RecordKind:
    if isinstance(value, RecordKind):
        return value
    if isinstance(value, str):
        try:
            return RecordKind(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(kind.value for kind in RecordKind)
    raise InvalidKindError(f"Kind must be one of: {allowed}.", field="kind")


def check_year(value: Any, now: Optional[datetime] = None) -> Optional[int]:
    if value is None:
        return None
    upper = max_year(now)
    if not _is_int(value) or not MIN_YEAR <= value <= upper:
        raise InvalidYearError(
            f"Year must be an integer between {MIN_YEAR} and {upper}.", field="year"
        )
    return value


def _reject_unknown(candidate: Mapping[str, Any]) -> None:
    for key in candidate:
        if key in EDITABLE_FIELDS:
            continue
        if key in IMMUTABLE_FIELDS:
            raise UnknownFieldError(f"Field '{key}' cannot be set by callers.", field=key)
        raise UnknownFieldError(f"Unknown field '{key}'.", field=key)


def validate(
    candidate: Union[CatalogRecord, Mapping[str, Any]], *, now: Optional[datetime] = None
) -> CatalogRecord:
    """
    Validate a complete record and return it with normalized fields.

    ``candidate`` is either a ``CatalogRecord`` or a mapping carrying every
    record field (identity and timestamps included).
    Missing or mistyped identity and timestamp fields raise
    ``InvalidRecordError``.
    """
    data = candidate.model_dump() if isinstance(candidate, CatalogRecord) else dict(candidate)
    title = check_title(data.get("title"))
    kind = data.get("kind")
    normalized = {
        **data,
        "title": title,
        "description": check_description(data.get("description")),
        "kind": RecordKind.MOVIE if kind is None else check_kind(kind),
        "year": check_year(data.get("year"), now),
    }
    try:
        return CatalogRecord.model_validate(normalized)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise InvalidRecordError(
            f"Invalid record field '{field}': {error['msg']}.", field=field
        ) from exc


def validate_input(
    candidate: Union[RecordDraft, Mapping[str, Any]], *, now: Optional[datetime] = None
) -> RecordDraft:
    """Validate a create payload: ``{title, description?, kind?, year?}``."""
    if isinstance(candidate, RecordDraft):
        candidate = candidate.model_dump()
    _reject_unknown(candidate)
    kind = candidate.get("kind")
    return RecordDraft(
        title=check_title(candidate.get("title")),
        description=check_description(candidate.get("description")),
        kind=RecordKind.MOVIE if kind is None else check_kind(kind),
        year=check_year(candidate.get("year"), now),
    )


def validate_patch(patch: Mapping[str, Any], *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Validate only the fields present in ``patch``.

    A ``None`` value clears ``description`` or ``year``; ``title`` and
    ``kind`` cannot be cleared.
    """
    _reject_unknown(patch)
    changes: Dict[str, Any] = {}
    if "title" in patch:
        changes["title"] = check_title(patch["title"])
    if "description" in patch:
        changes["description"] = check_description(patch["description"])
    if "kind" in patch:
        changes["kind"] = check_kind(patch["kind"])
    if "year" in patch:
        changes["year"] = check_year(patch["year"], now)
    return changes


def validate_expected_version(value: Any) -> int:
    if not _is_int(value) or value < 1:
        raise InvalidVersionError("Expected version must be a positive integer.", field="version")
    return value


def _filter_year(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    if not _is_int(value):
        raise InvalidFilterError(f"'{field}' must be an integer.", field=field)
    return value


def validate_filter(candidate: Union[ListFilter, Mapping[str, Any], None]) -> ListFilter:
    """Normalize list predicates. Unknown keys and inverted year ranges are rejected."""
    if candidate is None:
        return ListFilter()
    if isinstance(candidate, ListFilter):
        candidate = candidate.model_dump()
    aliases = {"yearFrom": "year_from", "yearTo": "year_to", "titleContains": "title_contains"}
    data = {aliases.get(key, key): value for key, value in candidate.items()}
    unknown = set(data) - {"kind", "year_from", "year_to", "title_contains"}
    if unknown:
        name = sorted(unknown)[0]
        raise InvalidFilterError(f"Unknown filter '{name}'.", field=name)

    kind = data.get("kind")
    year_from = _filter_year(data.get("year_from"), "yearFrom")
    year_to = _filter_year(data.get("year_to"), "yearTo")
    if year_from is not None and year_to is not None and year_from > year_to:
        raise InvalidFilterError("'yearFrom' must not exceed 'yearTo'.", field="yearFrom")
    title_contains = data.get("title_contains")
    if title_contains is not None and not isinstance(title_contains, str):
        raise InvalidFilterError("'titleContains' must be text.", field="titleContains")

    return ListFilter(
        kind=None if kind is None else check_kind(kind),
        year_from=year_from,
        year_to=year_to,
        title_contains=(title_contains or "").strip() or None,
    )


def validate_pagination(
    candidate: Union[PageRequest, Mapping[str, Any], None],
    *,
    default_limit: int,
    max_limit: int,
) -> PageRequest:
    """Apply the default limit, enforce ``0 < limit <= max_limit`` and check the cursor."""
    if candidate is None:
        candidate = {}
    elif isinstance(candidate, PageRequest):
        candidate = {"limit": candidate.limit, "cursor": candidate.cursor}

    unknown = set(candidate) - {"limit", "cursor"}
    if unknown:
        name = sorted(unknown)[0]
        raise InvalidPaginationError(f"Unknown pagination field '{name}'.", field=name)

    limit = candidate.get("limit", _ABSENT)
    if limit is _ABSENT or limit is None:
        limit = default_limit
    if not _is_int(limit) or not 0 < limit <= max_limit:
        raise InvalidPaginationError(
            f"Limit must be an integer between 1 and {max_limit}.", field="limit"
        )

    cursor = candidate.get("cursor") or None
    if cursor is not None:
        decode_cursor(cursor)
    return PageRequest(limit=limit, cursor=cursor)


__all__ = [
    "MIN_YEAR",
    "max_year",
    "validate",
    "validate_input",
    "validate_patch",
    "validate_expected_version",
    "validate_filter",
    "validate_pagination",
]
