"""
Opaque keyset cursor for catalog listings.

A cursor names the last record of the previous page by its sort key
(``created_at``, ``id``). Listing resumes strictly after that key, so a
traversal can be restarted from any cursor and stays stable when records are
inserted or deleted between pages.
"""
from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime

from moviecatalog.errors import InvalidPaginationError


@dataclass(frozen=True)
class CursorPosition:
    created_at: datetime
    record_id: str


def encode_cursor(created_at: datetime, record_id: str) -> str:
    raw = json.dumps({"c": created_at.isoformat(), "i": record_id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> CursorPosition:
    """
    Decode a cursor produced by ``encode_cursor``.

    Raises
    ------
    InvalidPaginationError
        If the cursor is not one this module produced.
    """
    if not isinstance(cursor, str) or not cursor:
        raise InvalidPaginationError("Cursor must be a non-empty string.", field="cursor")
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        created_at = datetime.fromisoformat(data["c"])
        record_id = data["i"]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
        raise InvalidPaginationError("Malformed cursor.", field="cursor") from exc
    if not isinstance(record_id, str) or created_at.tzinfo is None:
        raise InvalidPaginationError("Malformed cursor.", field="cursor")
    return CursorPosition(created_at=created_at, record_id=record_id)


__all__ = ["CursorPosition", "encode_cursor", "decode_cursor"]
