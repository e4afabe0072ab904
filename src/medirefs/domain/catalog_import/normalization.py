"""Turn mapped source rows into canonical record candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from medirefs.domain.model import CANONICAL_HEADER, CanonicalField, CanonicalRecord

from .errors import MappingValidationError
from .mapping import MAP_AS_NULL, NullColumn, column_index, validate_mapping

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from medirefs.domain.ports import Classifier

    from .mapping import FieldMapping
    from .parser import SourceRow

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Candidate:
    """A normalised row ready for duplicate detection.

    ``provided`` holds the fields the mapping covers (column or null); only those are
    written when the candidate updates an existing record.
    """

    line_number: int
    original_row: dict[str, str]
    record: CanonicalRecord
    provided: frozenset[CanonicalField]

    @property
    def identifier(self) -> str:
        return self.record.identifier

    def changes(self) -> dict[CanonicalField, str | None]:
        return {
            name: self.record.value_of(name)
            for name in CANONICAL_HEADER
            if name in self.provided and name is not CanonicalField.IDENTIFIER
        }


@dataclass(frozen=True, slots=True)
class RowError:
    line_number: int
    message: str
    original_row: dict[str, str]
    identifier: str | None = None

    @property
    def detail(self) -> str:
        return f"Line {self.line_number}: {self.message}"


@dataclass(slots=True)
class NormalizationResult:
    candidates: list[Candidate] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


type _Source = int | NullColumn


class RecordNormalizer:
    """Extracts, trims and classifies rows under a fixed mapping.

    Column indexes are resolved once at construction; an unusable mapping raises
    ``MappingValidationError`` here rather than per row.
    """

    def __init__(
        self,
        mapping: FieldMapping,
        headers: Sequence[str],
        classifier: Classifier,
    ) -> None:
        validation = validate_mapping(mapping, headers)
        if not validation.valid:
            raise MappingValidationError(
                validation.missing_required_fields,
                validation.unknown_columns,
            )
        self._headers = tuple(headers)
        self._classifier = classifier
        self._sources: dict[CanonicalField, _Source] = {}
        for name in mapping.provided_fields:
            column = mapping.column_for(name)
            if column is MAP_AS_NULL:
                self._sources[name] = MAP_AS_NULL
            elif isinstance(column, str):
                index = column_index(self._headers, column)
                if index is not None:
                    self._sources[name] = index

    @property
    def provided_fields(self) -> frozenset[CanonicalField]:
        return frozenset(self._sources)

    def _original_row(self, row: SourceRow) -> dict[str, str]:
        return {
            header: row.fields[index] if index < len(row.fields) else ""
            for index, header in enumerate(self._headers)
        }

    def _extract(self, row: SourceRow) -> dict[CanonicalField, str | None]:
        values: dict[CanonicalField, str | None] = {}
        for name, source in self._sources.items():
            if source is MAP_AS_NULL or not isinstance(source, int):
                values[name] = None
                continue
            raw = row.fields[source] if source < len(row.fields) else ""
            values[name] = raw.strip() or None
        return values

    def normalize(self, row: SourceRow) -> Candidate | RowError:
        original = self._original_row(row)
        values = self._extract(row)
        identifier = values.get(CanonicalField.IDENTIFIER)

        missing = [
            name for name in CANONICAL_HEADER if name.required and not values.get(name)
        ]
        if missing:
            names = ", ".join(str(name) for name in missing)
            return RowError(
                line_number=row.line_number,
                message=f"missing required field(s): {names}",
                original_row=original,
                identifier=identifier,
            )

        classification = values[CanonicalField.CLASSIFICATION] or ""
        sub_classification = values.get(CanonicalField.SUB_CLASSIFICATION)
        try:
            classification = self._classifier.normalize_classification(classification)
            if sub_classification is not None:
                sub_classification = (
                    self._classifier.normalize_sub_classification(
                        classification, sub_classification
                    )
                    or None
                )
        except Exception as exc:  # noqa: BLE001
            return RowError(
                line_number=row.line_number,
                message=f"classification failed: {exc}",
                original_row=original,
                identifier=identifier,
            )
        if not classification.strip():
            return RowError(
                line_number=row.line_number,
                message="classification is empty after normalization",
                original_row=original,
                identifier=identifier,
            )

        values[CanonicalField.CLASSIFICATION] = classification
        if CanonicalField.SUB_CLASSIFICATION in values:
            values[CanonicalField.SUB_CLASSIFICATION] = sub_classification

        record = CanonicalRecord(
            identifier=identifier or "",
            display_name=values[CanonicalField.DISPLAY_NAME] or "",
            classification=classification,
        )
        record.apply(values)
        return Candidate(
            line_number=row.line_number,
            original_row=original,
            record=record,
            provided=self.provided_fields,
        )

    def normalize_all(self, rows: Iterable[SourceRow]) -> NormalizationResult:
        result = NormalizationResult()
        for row in rows:
            outcome = self.normalize(row)
            if isinstance(outcome, RowError):
                log.warning("Skipping row: %s", outcome.detail)
                result.errors.append(outcome)
            else:
                result.candidates.append(outcome)
        return result
