"""SQLAlchemy adapter package for medirefs."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import SqlAlchemyAuditRepository, SqlAlchemyRecordStore
from .unit_of_work import SqlAlchemyCatalogUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyAuditRepository",
    "SqlAlchemyCatalogUnitOfWork",
    "SqlAlchemyRecordStore",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
