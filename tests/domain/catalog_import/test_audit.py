from __future__ import annotations

import uuid

import pytest

from medirefs.domain.catalog_import import AuditError, AuditRecorder, SessionMeta
from medirefs.domain.model import AuditOperation, AuditOutcome, ImportStatus
from tests.helpers.catalog import InMemoryAuditRepository


def _recorder(repository: InMemoryAuditRepository) -> AuditRecorder:
    return AuditRecorder(repository)


def test_entries_are_numbered_per_session(audit_repository: InMemoryAuditRepository) -> None:
    recorder = _recorder(audit_repository)
    session_id = recorder.start_session(SessionMeta("tests.csv", 120, total_candidate_count=2))

    first = recorder.log_attempt(
        session_id, {"id": "T1"}, AuditOperation.INSERT, AuditOutcome.SUCCESS, line_number=2
    )
    second = recorder.log_attempt(
        session_id,
        {"id": "T2"},
        AuditOperation.UPDATE,
        AuditOutcome.FAILURE,
        line_number=3,
        target_identifier="T2",
        message="boom",
    )

    assert (first.sequence, second.sequence) == (1, 2)
    assert [entry.sequence for entry in recorder.entries_for(session_id)] == [1, 2]
    assert audit_repository.sessions[session_id].processed_count == 2


def test_finish_session_records_counts(audit_repository: InMemoryAuditRepository) -> None:
    recorder = _recorder(audit_repository)
    session_id = recorder.start_session(SessionMeta("tests.csv"))

    session = recorder.finish_session(session_id, 2, 1, 1, ["Line 4: missing displayName"])

    assert session.is_finished
    assert (session.success_count, session.error_count, session.duplicate_count) == (2, 1, 1)
    assert session.error_messages == ["Line 4: missing displayName"]
    assert session.status is ImportStatus.PARTIAL


def test_finishing_twice_fails(audit_repository: InMemoryAuditRepository) -> None:
    recorder = _recorder(audit_repository)
    session_id = recorder.start_session(SessionMeta("tests.csv"))
    recorder.finish_session(session_id, 0, 0, 0)

    with pytest.raises(AuditError):
        recorder.finish_session(session_id, 0, 0, 0)


def test_logging_after_finish_fails(audit_repository: InMemoryAuditRepository) -> None:
    recorder = _recorder(audit_repository)
    session_id = recorder.start_session(SessionMeta("tests.csv"))
    recorder.finish_session(session_id, 0, 0, 0)

    with pytest.raises(AuditError):
        recorder.log_attempt(session_id, {}, AuditOperation.INSERT, AuditOutcome.SUCCESS)


def test_unknown_session_fails(audit_repository: InMemoryAuditRepository) -> None:
    recorder = _recorder(audit_repository)

    with pytest.raises(AuditError):
        recorder.log_attempt(uuid.uuid4(), {}, AuditOperation.INSERT, AuditOutcome.SUCCESS)
    with pytest.raises(AuditError):
        recorder.entries_for(uuid.uuid4())


def test_unreportable_sessions_are_hidden_by_default(
    audit_repository: InMemoryAuditRepository,
) -> None:
    recorder = _recorder(audit_repository)
    shown = recorder.start_session(SessionMeta("good.csv"))
    recorder.finish_session(shown, 1, 0, 0)
    hidden = recorder.start_session(SessionMeta("empty.csv"))
    recorder.finish_session(hidden, 0, 0, 0, ["Source is empty"], reportable=False)

    assert [session.id for session in recorder.list_sessions()] == [shown]
    assert {session.id for session in recorder.list_sessions(reportable_only=False)} == {
        shown,
        hidden,
    }
    assert audit_repository.sessions[hidden].status is ImportStatus.FAILED


def test_commit_hook_runs_after_every_write(audit_repository: InMemoryAuditRepository) -> None:
    commits: list[str] = []
    recorder = AuditRecorder(audit_repository, commit=lambda: commits.append("commit"))

    session_id = recorder.start_session(SessionMeta("tests.csv"))
    recorder.log_attempt(session_id, {}, AuditOperation.SKIP, AuditOutcome.SUCCESS)
    recorder.finish_session(session_id, 0, 0, 1)

    assert len(commits) == 3
