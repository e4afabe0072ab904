"""Ports for persisting catalog records and import audit trails."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from medirefs.domain.model import (
        AuditLogEntry,
        CanonicalField,
        CanonicalRecord,
        ImportSession,
    )


@runtime_checkable
class RecordStore(Protocol):
    """Persistence contract for canonical records, keyed by ``identifier``."""

    def get_all(self) -> Sequence[CanonicalRecord]: ...

    def get_by_id(self, identifier: str) -> CanonicalRecord | None: ...

    def insert(self, record: CanonicalRecord) -> CanonicalRecord: ...

    def update(
        self,
        identifier: str,
        changes: Mapping[CanonicalField, str | None],
    ) -> CanonicalRecord | None: ...

    def delete(self, identifier: str) -> bool: ...


@runtime_checkable
class AuditRepository(Protocol):
    """Append-only store for import sessions and their log entries.

    Sessions are updated while an import runs; entries are never updated or removed.
    """

    def add_session(self, session: ImportSession) -> None: ...

    def get_session(self, session_id: UUID) -> ImportSession | None: ...

    def save_session(self, session: ImportSession) -> None: ...

    def list_sessions(self, *, reportable_only: bool = False) -> Sequence[ImportSession]: ...

    def add_entry(self, entry: AuditLogEntry) -> None: ...

    def list_entries(self, session_id: UUID) -> Sequence[AuditLogEntry]: ...
