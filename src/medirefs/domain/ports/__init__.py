"""Domain port definitions for adapters."""

from __future__ import annotations

from .classification import Classifier
from .persistence import AuditRepository, RecordStore
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AuditRepository",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "Classifier",
    "RecordStore",
    "RepositoryCollection",
    "UnitOfWork",
]
