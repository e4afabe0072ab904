"""Session-scoped, append-only audit trail of import attempts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from medirefs.domain.model import AuditLogEntry, ImportSession

from .errors import AuditError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from uuid import UUID

    from medirefs.domain.model import AuditOperation, AuditOutcome, DuplicateKind
    from medirefs.domain.ports import AuditRepository

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionMeta:
    source_name: str
    source_size_bytes: int | None = None
    total_candidate_count: int = 0
    notes: str | None = None


class AuditRecorder:
    """Records import sessions and one entry per processed source row.

    ``commit`` is invoked after every write so entries survive a crash mid-import.
    """

    def __init__(
        self,
        repository: AuditRepository,
        commit: Callable[[], None] | None = None,
    ) -> None:
        self._repository = repository
        self._commit = commit
        self._sequences: dict[UUID, int] = {}

    def _flush(self) -> None:
        if self._commit is not None:
            self._commit()

    def _open_session(self, session_id: UUID) -> ImportSession:
        session = self._repository.get_session(session_id)
        if session is None:
            raise AuditError(f"Unknown import session {session_id}")
        if session.is_finished:
            raise AuditError(f"Import session {session_id} is already finished")
        return session

    def start_session(self, meta: SessionMeta) -> UUID:
        session = ImportSession(
            source_name=meta.source_name,
            source_size_bytes=meta.source_size_bytes,
            total_candidate_count=meta.total_candidate_count,
            notes=meta.notes,
        )
        self._repository.add_session(session)
        self._sequences[session.id] = 0
        self._flush()
        log.info("Started import session %s for %s", session.id, meta.source_name)
        return session.id

    def log_attempt(  # noqa: PLR0913
        self,
        session_id: UUID,
        original_row: Mapping[str, str],
        operation: AuditOperation,
        outcome: AuditOutcome,
        *,
        line_number: int | None = None,
        target_identifier: str | None = None,
        duplicate_kind: DuplicateKind | None = None,
        message: str | None = None,
    ) -> AuditLogEntry:
        session = self._open_session(session_id)
        if session_id not in self._sequences:
            self._sequences[session_id] = len(self._repository.list_entries(session_id))
        self._sequences[session_id] += 1
        entry = AuditLogEntry(
            session_id=session_id,
            sequence=self._sequences[session_id],
            operation=operation,
            outcome=outcome,
            original_row=dict(original_row),
            line_number=line_number,
            target_identifier=target_identifier,
            duplicate_kind=duplicate_kind,
            message=message,
        )
        self._repository.add_entry(entry)
        session.processed_count = entry.sequence
        self._repository.save_session(session)
        self._flush()
        return entry

    def finish_session(  # noqa: PLR0913
        self,
        session_id: UUID,
        success_count: int,
        error_count: int,
        duplicate_count: int,
        error_messages: Sequence[str] = (),
        *,
        reportable: bool = True,
    ) -> ImportSession:
        session = self._open_session(session_id)
        session.success_count = success_count
        session.error_count = error_count
        session.duplicate_count = duplicate_count
        session.error_messages = list(error_messages)
        session.is_reportable = reportable
        session.completed_at = datetime.now(tz=UTC)
        self._repository.save_session(session)
        self._sequences.pop(session_id, None)
        self._flush()
        log.info(
            "Finished import session %s: %s (%d ok, %d errors, %d duplicates)",
            session_id,
            session.status,
            success_count,
            error_count,
            duplicate_count,
        )
        return session

    def list_sessions(self, *, reportable_only: bool = True) -> Sequence[ImportSession]:
        return self._repository.list_sessions(reportable_only=reportable_only)

    def entries_for(self, session_id: UUID) -> Sequence[AuditLogEntry]:
        if self._repository.get_session(session_id) is None:
            raise AuditError(f"Unknown import session {session_id}")
        return self._repository.list_entries(session_id)
