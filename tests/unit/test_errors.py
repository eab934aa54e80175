from __future__ import annotations

import logging

import pytest

from moviecatalog.errors import (
    AdapterUnavailableError,
    DuplicateIdError,
    InvalidYearError,
    MissingTitleError,
    NotFoundError,
    VersionConflictError,
    error_payload,
    http_status_for,
)


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (MissingTitleError("Title is required.", field="title"), 400),
        (NotFoundError("r1"), 404),
        (VersionConflictError("r1", 1, 2), 409),
        (DuplicateIdError("r1"), 409),
        (AdapterUnavailableError("down"), 503),
        (RuntimeError("boom"), 500),
    ],
)
def test_http_status_mapping(exc, status):
    assert http_status_for(exc) == status


def test_validation_payload_names_code_and_field():
    payload = error_payload(InvalidYearError("Year out of range.", field="year"))

    assert payload == {"error": "invalid_year", "message": "Year out of range.", "field": "year"}


def test_conflict_payload_carries_versions():
    payload = error_payload(VersionConflictError("r1", 1, 4))

    assert payload["error"] == "version_conflict"
    assert payload["expected_version"] == 1
    assert payload["actual_version"] == 4


def test_busy_conflict_omits_actual_version():
    exc = VersionConflictError("r1", 2)

    assert "actual_version" not in exc.to_dict()
    assert "concurrently" in exc.message


def test_unavailable_payload_hides_backend_details():
    payload = error_payload(AdapterUnavailableError("connection to 10.0.0.5 refused"))

    assert payload == {"error": "adapter_unavailable", "message": "Storage backend unavailable."}


def test_unclassified_errors_are_logged_and_masked(caplog):
    with caplog.at_level(logging.ERROR, logger="moviecatalog.errors"):
        payload = error_payload(KeyError("secret"))

    assert payload == {"error": "internal_error", "message": "Internal error."}
    assert caplog.records[0].error_type == "KeyError"
    assert caplog.records[0].exc_info is not None
