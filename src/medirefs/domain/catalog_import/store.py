"""Record store wrapper that makes every write its own unit of work."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from medirefs.domain.model import CanonicalField, CanonicalRecord
    from medirefs.domain.ports import CatalogUnitOfWork, RecordStore


class CommittingRecordStore:
    """Delegates to the unit of work's record store, committing after each write.

    A failed write is rolled back before the error propagates, so one bad record
    cannot poison the writes that follow it.
    """

    def __init__(self, uow: CatalogUnitOfWork) -> None:
        self._uow = uow

    @property
    def _records(self) -> RecordStore:
        return self._uow.repositories.records

    def get_all(self) -> Sequence[CanonicalRecord]:
        return self._records.get_all()

    def get_by_id(self, identifier: str) -> CanonicalRecord | None:
        return self._records.get_by_id(identifier)

    def insert(self, record: CanonicalRecord) -> CanonicalRecord:
        try:
            stored = self._records.insert(record)
            self._uow.commit()
        except Exception:
            self._uow.rollback()
            raise
        return stored

    def update(
        self,
        identifier: str,
        changes: Mapping[CanonicalField, str | None],
    ) -> CanonicalRecord | None:
        try:
            stored = self._records.update(identifier, changes)
            self._uow.commit()
        except Exception:
            self._uow.rollback()
            raise
        return stored

    def delete(self, identifier: str) -> bool:
        try:
            deleted = self._records.delete(identifier)
            self._uow.commit()
        except Exception:
            self._uow.rollback()
            raise
        return deleted
