"""Error taxonomy for the catalog import pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from medirefs.domain.model import CanonicalField


class CatalogImportError(RuntimeError):
    """Base class for import pipeline failures."""


class MalformedInputError(CatalogImportError):
    """Raised when a source has no header or no data rows."""


class MappingValidationError(CatalogImportError):
    """Raised when a field mapping cannot be used for an import."""

    def __init__(
        self,
        missing_required_fields: Sequence[CanonicalField] = (),
        unknown_columns: Sequence[str] = (),
    ) -> None:
        self.missing_required_fields = tuple(missing_required_fields)
        self.unknown_columns = tuple(unknown_columns)
        parts: list[str] = []
        if self.missing_required_fields:
            names = ", ".join(str(name) for name in self.missing_required_fields)
            parts.append(f"missing required fields: {names}")
        if self.unknown_columns:
            parts.append(f"unknown source columns: {', '.join(self.unknown_columns)}")
        super().__init__("Invalid field mapping: " + "; ".join(parts or ["unknown reason"]))


class InvalidTransitionError(CatalogImportError):
    """Raised when an orchestrator operation is called in the wrong phase."""


class AuditError(CatalogImportError):
    """Raised on misuse of the audit recorder (unknown or already finished session)."""
