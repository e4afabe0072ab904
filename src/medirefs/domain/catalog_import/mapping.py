"""Mapping of source columns onto canonical record fields.

A mapping is tri-state per canonical field: unmapped, mapped to a source column,
or explicitly mapped to :data:`MAP_AS_NULL`. Unmapped optional fields are left
alone on update; null-mapped ones are cleared even if a matching column exists.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Final

from medirefs.domain.model import CANONICAL_HEADER, CanonicalField

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence


class NullColumn(Enum):
    MAP_AS_NULL = "__null__"


MAP_AS_NULL: Final = NullColumn.MAP_AS_NULL

type ColumnRef = str | NullColumn


SYNONYMS: Final[Mapping[CanonicalField, tuple[str, ...]]] = {
    CanonicalField.IDENTIFIER: ("id", "code", "identifier"),
    CanonicalField.DISPLAY_NAME: ("name", "testname", "title", "label"),
    CanonicalField.CLASSIFICATION: ("category", "class", "type", "group"),
    CanonicalField.SUB_CLASSIFICATION: ("subcategory", "subclass", "subtype", "subgroup"),
    CanonicalField.PRIMARY_CODE: ("cpt", "procedurecode", "billingcode", "hcpcs"),
    CanonicalField.SECONDARY_CODE: ("loinc",),
    CanonicalField.TERTIARY_CODE: ("snomed",),
    CanonicalField.DESCRIPTION_TEXT: ("description", "desc", "details", "summary"),
    CanonicalField.NOTES_TEXT: ("notes", "note", "comment", "remarks"),
}


def header_key(name: str) -> str:
    """Comparison key for header names: lowercase alphanumerics only."""

    return re.sub(r"[^0-9a-z]", "", name.lower())


@dataclass(frozen=True, slots=True)
class FieldMapping:
    """Canonical field → source column (or ``MAP_AS_NULL``)."""

    columns: dict[CanonicalField, ColumnRef] = field(default_factory=dict)

    @classmethod
    def from_names(cls, names: Mapping[str, str | None]) -> FieldMapping:
        """Build from canonical header names; ``None`` values mean map-as-null."""

        columns: dict[CanonicalField, ColumnRef] = {}
        for name, column in names.items():
            try:
                canonical_field = CanonicalField(name)
            except ValueError as exc:
                raise ValueError(f"Unknown canonical field: {name!r}") from exc
            columns[canonical_field] = MAP_AS_NULL if column is None else column
        return cls(columns=columns)

    def column_for(self, canonical_field: CanonicalField) -> ColumnRef | None:
        return self.columns.get(canonical_field)

    def with_column(
        self,
        canonical_field: CanonicalField,
        column: ColumnRef | None,
    ) -> FieldMapping:
        """Return a copy with ``canonical_field`` remapped; ``None`` unmaps it."""

        columns = dict(self.columns)
        if column is None:
            columns.pop(canonical_field, None)
        else:
            columns[canonical_field] = column
        return FieldMapping(columns=columns)

    @property
    def provided_fields(self) -> tuple[CanonicalField, ...]:
        return tuple(name for name in CANONICAL_HEADER if name in self.columns)

    def as_names(self) -> dict[str, str | None]:
        return {
            str(name): column if isinstance(column, str) else None
            for name, column in self.columns.items()
        }


@dataclass(frozen=True, slots=True)
class MappingValidation:
    valid: bool
    missing_required_fields: tuple[CanonicalField, ...] = ()
    unknown_columns: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MappingProposal:
    """What the caller needs to confirm a mapping."""

    headers: tuple[str, ...]
    preview_rows: tuple[tuple[str, ...], ...]
    suggested: FieldMapping
    validation: MappingValidation


def column_index(headers: Sequence[str], column: str) -> int | None:
    """Index of ``column`` in ``headers``: exact match first, then case-insensitive."""

    wanted = column.strip()
    for index, header in enumerate(headers):
        if header.strip() == wanted:
            return index
    folded = wanted.casefold()
    for index, header in enumerate(headers):
        if header.strip().casefold() == folded:
            return index
    return None


def _claim_tier(
    headers: Sequence[str],
    claimed: dict[CanonicalField, str],
    needles_for: Callable[[CanonicalField], Iterable[str]],
    *,
    exact: bool,
) -> None:
    taken = set(claimed.values())
    for canonical_field in CANONICAL_HEADER:
        if canonical_field in claimed:
            continue
        for needle in needles_for(canonical_field):
            match = _find_header(headers, taken, needle, exact=exact)
            if match is not None:
                claimed[canonical_field] = match
                taken.add(match)
                break


def _find_header(
    headers: Sequence[str],
    taken: set[str],
    needle: str,
    *,
    exact: bool,
) -> str | None:
    for header in headers:
        if header in taken:
            continue
        key = header_key(header)
        if not key:
            continue
        if (exact and key == needle) or (not exact and needle in key):
            return header
    return None


def suggest_mapping(headers: Sequence[str]) -> FieldMapping:
    """Propose a mapping for ``headers``.

    Per field the priority is: exact (case-insensitive) name match, header containing
    the field name, then field synonyms. Each tier is settled for every field before
    the next, weaker tier runs, and a header is claimed by at most one field.
    """

    claimed: dict[CanonicalField, str] = {}

    def own_name(canonical_field: CanonicalField) -> tuple[str, ...]:
        return (header_key(canonical_field),)

    def synonyms(canonical_field: CanonicalField) -> tuple[str, ...]:
        return SYNONYMS.get(canonical_field, ())

    _claim_tier(headers, claimed, own_name, exact=True)
    _claim_tier(headers, claimed, own_name, exact=False)
    _claim_tier(headers, claimed, synonyms, exact=True)
    _claim_tier(headers, claimed, synonyms, exact=False)

    ordered = {name: claimed[name] for name in CANONICAL_HEADER if name in claimed}
    return FieldMapping(columns=dict(ordered))


def validate_mapping(
    mapping: FieldMapping,
    headers: Sequence[str] | None = None,
) -> MappingValidation:
    """Check required fields are mapped to real columns.

    Required fields that are unmapped or mapped to ``MAP_AS_NULL`` are reported as
    missing. When ``headers`` is given, mapped columns absent from it are reported
    as unknown.
    """

    missing = tuple(
        name
        for name in CANONICAL_HEADER
        if name.required and not isinstance(mapping.column_for(name), str)
    )
    unknown: list[str] = []
    if headers is not None:
        for column in mapping.columns.values():
            if isinstance(column, str) and column_index(headers, column) is None:
                unknown.append(column)
    return MappingValidation(
        valid=not missing and not unknown,
        missing_required_fields=missing,
        unknown_columns=tuple(unknown),
    )
