from __future__ import annotations

from typing import TYPE_CHECKING

from medirefs.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyRecordStore,
)
from medirefs.domain.catalog_import import AuditRecorder, SessionMeta
from medirefs.domain.model import AuditOperation, AuditOutcome, CanonicalField, ImportStatus
from tests.helpers.catalog import make_record

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_insert_sets_timestamps_and_get_all_orders_by_identifier(
    sqlite_session: Session,
) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)

    store.insert(make_record("T2", "Lipid Panel"))
    inserted = store.insert(make_record("T1", "Glucose", primary_code="82947"))
    sqlite_session.commit()

    assert inserted.created_at is not None
    assert inserted.updated_at is not None
    assert [record.identifier for record in store.get_all()] == ["T1", "T2"]


def test_update_applies_changes_and_leaves_other_fields(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.insert(make_record("T1", notes_text="fasting", description_text="serum"))
    sqlite_session.commit()

    updated = store.update(
        "T1",
        {CanonicalField.DISPLAY_NAME: "CBC with differential", CanonicalField.NOTES_TEXT: None},
    )
    sqlite_session.commit()
    sqlite_session.expire_all()

    assert updated is not None
    record = store.get_by_id("T1")
    assert record is not None
    assert record.display_name == "CBC with differential"
    assert record.notes_text is None
    assert record.description_text == "serum"


def test_update_and_delete_of_unknown_identifier(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)

    assert store.update("missing", {CanonicalField.DISPLAY_NAME: "x"}) is None
    assert store.delete("missing") is False


def test_delete_removes_record(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.insert(make_record("T1"))
    sqlite_session.commit()

    assert store.delete("T1") is True
    sqlite_session.commit()

    assert store.get_by_id("T1") is None


def test_audit_repository_persists_sessions_and_entries(sqlite_session: Session) -> None:
    repository = SqlAlchemyAuditRepository(sqlite_session)
    recorder = AuditRecorder(repository, commit=sqlite_session.commit)

    session_id = recorder.start_session(SessionMeta("tests.csv", 64, total_candidate_count=2))
    recorder.log_attempt(
        session_id,
        {"id": "T1", "name": "Glucose"},
        AuditOperation.INSERT,
        AuditOutcome.SUCCESS,
        line_number=2,
        target_identifier="T1",
    )
    recorder.log_attempt(
        session_id,
        {"id": "T2", "name": ""},
        AuditOperation.ERROR,
        AuditOutcome.FAILURE,
        line_number=3,
        message="missing required field(s): displayName",
    )
    recorder.finish_session(session_id, 1, 1, 0, ["Line 3: missing displayName"])
    sqlite_session.expire_all()

    stored = repository.get_session(session_id)
    assert stored is not None
    assert stored.status is ImportStatus.PARTIAL
    assert stored.processed_count == 2
    assert stored.error_messages == ["Line 3: missing displayName"]
    entries = repository.list_entries(session_id)
    assert [entry.sequence for entry in entries] == [1, 2]
    assert entries[0].original_row == {"id": "T1", "name": "Glucose"}
    assert entries[1].operation is AuditOperation.ERROR


def test_list_sessions_filters_unreportable(sqlite_session: Session) -> None:
    repository = SqlAlchemyAuditRepository(sqlite_session)
    recorder = AuditRecorder(repository, commit=sqlite_session.commit)
    shown = recorder.start_session(SessionMeta("good.csv"))
    recorder.finish_session(shown, 1, 0, 0)
    hidden = recorder.start_session(SessionMeta("empty.csv"))
    recorder.finish_session(hidden, 0, 0, 0, ["Source is empty"], reportable=False)

    assert [session.id for session in repository.list_sessions(reportable_only=True)] == [shown]
    assert len(repository.list_sessions()) == 2
