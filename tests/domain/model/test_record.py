from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from medirefs.domain.model import CanonicalField, ImportSession, ImportStatus
from tests.helpers.catalog import make_record


def test_apply_overwrites_only_given_fields() -> None:
    record = make_record(notes_text="fasting", primary_code="82947")

    record.apply({CanonicalField.NOTES_TEXT: None, CanonicalField.DISPLAY_NAME: "CBC"})

    assert record.notes_text is None
    assert record.display_name == "CBC"
    assert record.primary_code == "82947"


def test_apply_refuses_to_change_identifier() -> None:
    record = make_record("T1")

    with pytest.raises(ValueError, match="identifier"):
        record.apply({CanonicalField.IDENTIFIER: "T2"})


def test_apply_refuses_to_blank_required_field() -> None:
    record = make_record()

    with pytest.raises(ValueError, match="classification"):
        record.apply({CanonicalField.CLASSIFICATION: "  "})


def test_missing_required_fields_reports_blank_values() -> None:
    record = make_record(display_name=" ")

    assert record.missing_required_fields() == [CanonicalField.DISPLAY_NAME]


def test_timestamps_do_not_affect_equality() -> None:
    now = datetime.now(tz=UTC)
    first = make_record()
    second = make_record()
    first.created_at = now
    second.created_at = now - timedelta(days=1)

    assert first == second


def test_session_status_follows_counts() -> None:
    session = ImportSession(source_name="tests.csv", total_candidate_count=2)
    assert session.status is ImportStatus.IN_PROGRESS

    session.completed_at = datetime.now(tz=UTC)
    session.processed_count = 2
    session.success_count = 2
    assert session.status is ImportStatus.COMPLETED

    session.error_count = 1
    assert session.status is ImportStatus.PARTIAL

    session.success_count = 0
    assert session.status is ImportStatus.FAILED


def test_session_finished_early_is_incomplete() -> None:
    session = ImportSession(source_name="tests.csv", total_candidate_count=3)
    session.completed_at = datetime.now(tz=UTC)
    session.processed_count = 1
    session.success_count = 1

    assert session.is_incomplete
    assert session.status is ImportStatus.INCOMPLETE

    session.is_reportable = False
    assert session.status is ImportStatus.FAILED
