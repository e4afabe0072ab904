"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from medirefs.adapters.sqlalchemy.mappings import (
    catalog_record_table,
    import_audit_entry_table,
    import_session_table,
)
from medirefs.domain.model import AuditLogEntry, CanonicalRecord, ImportSession

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from sqlalchemy.orm import Session

    from medirefs.domain.model import CanonicalField


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SqlAlchemyRecordStore:
    """Catalog records keyed by identifier.

    Every call flushes so constraint violations surface at the call that caused them;
    committing is left to the unit of work.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_all(self) -> Sequence[CanonicalRecord]:
        stmt = select(CanonicalRecord).order_by(catalog_record_table.c.identifier)
        return list(self.session.scalars(stmt).all())

    def get_by_id(self, identifier: str) -> CanonicalRecord | None:
        return self.session.get(CanonicalRecord, identifier)

    def insert(self, record: CanonicalRecord) -> CanonicalRecord:
        now = _utcnow()
        record.created_at = record.created_at or now
        record.updated_at = now
        self.session.add(record)
        self.session.flush()
        return record

    def update(
        self,
        identifier: str,
        changes: Mapping[CanonicalField, str | None],
    ) -> CanonicalRecord | None:
        record = self.get_by_id(identifier)
        if record is None:
            return None
        record.apply(changes)
        record.updated_at = _utcnow()
        self.session.flush()
        return record

    def delete(self, identifier: str) -> bool:
        record = self.get_by_id(identifier)
        if record is None:
            return False
        self.session.delete(record)
        self.session.flush()
        return True


class SqlAlchemyAuditRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_session(self, session: ImportSession) -> None:
        self.session.add(session)
        self.session.flush()

    def get_session(self, session_id: UUID) -> ImportSession | None:
        return self.session.get(ImportSession, session_id)

    def save_session(self, session: ImportSession) -> None:
        self.session.add(session)
        self.session.flush()

    def list_sessions(self, *, reportable_only: bool = False) -> Sequence[ImportSession]:
        stmt = select(ImportSession).order_by(import_session_table.c.started_at.desc())
        if reportable_only:
            stmt = stmt.where(import_session_table.c.is_reportable.is_(True))
        return list(self.session.scalars(stmt).all())

    def add_entry(self, entry: AuditLogEntry) -> None:
        self.session.add(entry)
        self.session.flush()

    def list_entries(self, session_id: UUID) -> Sequence[AuditLogEntry]:
        stmt = (
            select(AuditLogEntry)
            .where(import_audit_entry_table.c.session_id == session_id)
            .order_by(import_audit_entry_table.c.sequence)
        )
        return list(self.session.scalars(stmt).all())

