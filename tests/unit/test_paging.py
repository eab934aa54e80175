from __future__ import annotations

import base64
from datetime import datetime, timezone

import pytest
from adapter_contract import make_record

from moviecatalog.adapters.paging import matches, paginate, sort_records
from moviecatalog.domain.cursor import decode_cursor, encode_cursor
from moviecatalog.domain.models import ListFilter, PageRequest, RecordKind
from moviecatalog.errors import InvalidPaginationError


def test_cursor_round_trip_is_url_safe():
    when = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    cursor = encode_cursor(when, "a/b+c")
    position = decode_cursor(cursor)

    assert "=" not in cursor
    assert position.created_at == when
    assert position.record_id == "a/b+c"


@pytest.mark.parametrize(
    "cursor",
    [
        "",
        "%%%",
        base64.urlsafe_b64encode(b"[1, 2]").decode(),
        base64.urlsafe_b64encode(b'{"c": "yesterday", "i": "x"}').decode(),
        base64.urlsafe_b64encode(b'{"c": "2024-01-01T00:00:00", "i": "x"}').decode(),
        base64.urlsafe_b64encode(b'{"c": "2024-01-01T00:00:00+00:00", "i": 7}').decode(),
    ],
)
def test_malformed_cursors_are_rejected(cursor):
    with pytest.raises(InvalidPaginationError):
        decode_cursor(cursor)


def test_matches_is_case_insensitive_on_title():
    record = make_record("r1", title="The Grand Budapest Hotel", year=2014)

    assert matches(ListFilter(title_contains="budapest"), record)
    assert not matches(ListFilter(title_contains="tokyo"), record)


def test_year_predicates_exclude_records_without_year():
    undated = make_record("r1")

    assert matches(ListFilter(), undated)
    assert not matches(ListFilter(year_from=1900), undated)
    assert not matches(ListFilter(kind=RecordKind.SERIES), undated)


def test_sort_orders_newest_first_then_id():
    records = [make_record("b", 1), make_record("c", 2), make_record("a", 1)]

    assert [r.id for r in sort_records(records)] == ["c", "a", "b"]


def test_paginate_resumes_after_cursor_even_if_anchor_was_deleted():
    records = [make_record(f"r{i}", offset_seconds=i) for i in range(6)]
    first = paginate(records, ListFilter(), PageRequest(limit=2))
    assert [r.id for r in first.records] == ["r5", "r4"]

    survivors = [r for r in records if r.id != "r4"]
    second = paginate(survivors, ListFilter(), PageRequest(limit=2, cursor=first.next_cursor))

    assert [r.id for r in second.records] == ["r3", "r2"]


def test_paginate_last_page_has_no_cursor():
    records = [make_record(f"r{i}", offset_seconds=i) for i in range(4)]

    page = paginate(records, ListFilter(), PageRequest(limit=4))

    assert len(page.records) == 4
    assert page.next_cursor is None
