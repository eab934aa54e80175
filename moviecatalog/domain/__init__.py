"""
Domain package for the movie catalog core.

Exports the record model, the value types exchanged with adapters, the
cursor codec and the validation rules. Keep this package focused on data
definitions and validation concerns.
"""

from moviecatalog.domain.cursor import CursorPosition, decode_cursor, encode_cursor
from moviecatalog.domain.models import (
    CatalogRecord,
    ListFilter,
    Page,
    PageRequest,
    RecordDraft,
    RecordKind,
    utc_now,
)
from moviecatalog.domain.validation import (
    validate,
    validate_expected_version,
    validate_filter,
    validate_input,
    validate_pagination,
    validate_patch,
)

__all__ = [
    "CatalogRecord",
    "CursorPosition",
    "ListFilter",
    "Page",
    "PageRequest",
    "RecordDraft",
    "RecordKind",
    "decode_cursor",
    "encode_cursor",
    "utc_now",
    "validate",
    "validate_expected_version",
    "validate_filter",
    "validate_input",
    "validate_pagination",
    "validate_patch",
]
