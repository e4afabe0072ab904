"""SQLAlchemy mapping metadata for the catalog domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from medirefs.domain.model import (
    AuditLogEntry,
    AuditOperation,
    AuditOutcome,
    CanonicalRecord,
    DuplicateKind,
    ImportSession,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Catalog ---------------------------------------------------------------------

catalog_record_table = Table(
    "catalog_record",
    mapper_registry.metadata,
    Column("identifier", String, primary_key=True),
    Column("display_name", String, nullable=False),
    Column("classification", String, nullable=False),
    Column("sub_classification", String, nullable=True),
    Column("primary_code", String, nullable=True),
    Column("secondary_code", String, nullable=True),
    Column("tertiary_code", String, nullable=True),
    Column("description_text", Text, nullable=True),
    Column("notes_text", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_catalog_record_primary_code", "primary_code"),
)

# Import audit trail ----------------------------------------------------------

import_session_table = Table(
    "import_session",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_name", String, nullable=False),
    Column("source_size_bytes", Integer, nullable=True),
    Column("total_candidate_count", Integer, nullable=False),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("processed_count", Integer, nullable=False),
    Column("success_count", Integer, nullable=False),
    Column("error_count", Integer, nullable=False),
    Column("duplicate_count", Integer, nullable=False),
    Column("is_reportable", Boolean, nullable=False),
    Column("error_messages", JSON, nullable=False),
    Column("notes", Text, nullable=True),
)

import_audit_entry_table = Table(
    "import_audit_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("session_id", UUIDColumnType, ForeignKey("import_session.id"), nullable=False),
    Column("sequence", Integer, nullable=False),
    Column("operation", Enum(AuditOperation, native_enum=False), nullable=False),
    Column("outcome", Enum(AuditOutcome, native_enum=False), nullable=False),
    Column("original_row", JSON, nullable=False),
    Column("line_number", Integer, nullable=True),
    Column("target_identifier", String, nullable=True),
    Column("duplicate_kind", Enum(DuplicateKind, native_enum=False), nullable=True),
    Column("message", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("session_id", "sequence", name="uq_import_audit_entry_session_sequence"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CanonicalRecord, catalog_record_table)
    mapper_registry.map_imperatively(ImportSession, import_session_table)
    mapper_registry.map_imperatively(AuditLogEntry, import_audit_entry_table)

    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
