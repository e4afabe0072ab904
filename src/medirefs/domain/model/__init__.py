"""Domain model for the medical test catalog."""

from __future__ import annotations

from .audit import AuditLogEntry, ImportSession
from .enums import (
    CANONICAL_HEADER,
    REQUIRED_FIELDS,
    AuditOperation,
    AuditOutcome,
    CanonicalField,
    DuplicateKind,
    ImportStatus,
    ResolutionPolicy,
)
from .record import CanonicalRecord

__all__ = [
    "CANONICAL_HEADER",
    "REQUIRED_FIELDS",
    "AuditLogEntry",
    "AuditOperation",
    "AuditOutcome",
    "CanonicalField",
    "CanonicalRecord",
    "DuplicateKind",
    "ImportSession",
    "ImportStatus",
    "ResolutionPolicy",
]
