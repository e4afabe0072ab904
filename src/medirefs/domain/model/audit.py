"""Audit records for catalog import sessions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .enums import ImportStatus

if TYPE_CHECKING:
    from .enums import AuditOperation, AuditOutcome, DuplicateKind


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False)
class ImportSession:
    """One execution of the import pipeline."""

    source_name: str
    source_size_bytes: int | None = None
    total_candidate_count: int = 0
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    processed_count: int = 0
    success_count: int = 0
    error_count: int = 0
    duplicate_count: int = 0
    is_reportable: bool = True
    error_messages: list[str] = field(default_factory=list[str])
    notes: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.completed_at is not None

    @property
    def is_incomplete(self) -> bool:
        """Finished before every row of the source was processed (e.g. cancelled)."""
        return self.is_finished and self.processed_count < self.total_candidate_count

    @property
    def status(self) -> ImportStatus:
        if not self.is_finished:
            return ImportStatus.IN_PROGRESS
        if not self.is_reportable:
            return ImportStatus.FAILED
        if self.is_incomplete:
            return ImportStatus.INCOMPLETE
        if self.error_count == 0:
            return ImportStatus.COMPLETED
        if self.success_count == 0:
            return ImportStatus.FAILED
        return ImportStatus.PARTIAL


@dataclass(eq=False)
class AuditLogEntry:
    """Immutable trace of one source row's processing attempt."""

    session_id: uuid.UUID
    sequence: int
    operation: AuditOperation
    outcome: AuditOutcome
    original_row: dict[str, str] = field(default_factory=dict[str, str])
    line_number: int | None = None
    target_identifier: str | None = None
    duplicate_kind: DuplicateKind | None = None
    message: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_utcnow)
