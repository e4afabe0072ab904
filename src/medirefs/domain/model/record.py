"""Canonical catalog record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import CANONICAL_HEADER, REQUIRED_FIELDS, CanonicalField

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


@dataclass
class CanonicalRecord:
    """One catalogable test or procedure entry.

    ``identifier`` is the store-wide primary key. ``primary_code`` (a billing code such
    as CPT) doubles as the weaker duplicate signal during imports; the secondary and
    tertiary codes carry alternate coding systems (LOINC, SNOMED).
    """

    identifier: str
    display_name: str
    classification: str
    sub_classification: str | None = None
    primary_code: str | None = None
    secondary_code: str | None = None
    tertiary_code: str | None = None
    description_text: str | None = None
    notes_text: str | None = None
    created_at: datetime | None = field(default=None, compare=False, repr=False)
    updated_at: datetime | None = field(default=None, compare=False, repr=False)

    def value_of(self, canonical_field: CanonicalField) -> str | None:
        return getattr(self, canonical_field.attribute)

    def missing_required_fields(self) -> list[CanonicalField]:
        missing: list[CanonicalField] = []
        for canonical_field in CANONICAL_HEADER:
            if canonical_field not in REQUIRED_FIELDS:
                continue
            value = self.value_of(canonical_field)
            if value is None or not value.strip():
                missing.append(canonical_field)
        return missing

    def apply(self, changes: Mapping[CanonicalField, str | None]) -> None:
        """Overwrite the given fields in place. The identifier never changes."""

        for canonical_field, value in changes.items():
            if canonical_field is CanonicalField.IDENTIFIER:
                if value != self.identifier:
                    raise ValueError(
                        f"Cannot change identifier of {self.identifier!r} to {value!r}"
                    )
                continue
            if canonical_field.required and (value is None or not value.strip()):
                raise ValueError(f"{canonical_field} must not be empty")
            setattr(self, canonical_field.attribute, value)

    def as_row(self) -> dict[CanonicalField, str | None]:
        return {name: self.value_of(name) for name in CANONICAL_HEADER}
