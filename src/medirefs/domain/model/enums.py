"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CanonicalField(StrEnum):
    """Canonical target fields, valued by their documented CSV header names."""

    IDENTIFIER = "identifier"
    DISPLAY_NAME = "displayName"
    CLASSIFICATION = "classification"
    SUB_CLASSIFICATION = "subClassification"
    PRIMARY_CODE = "primaryCode"
    SECONDARY_CODE = "secondaryCode"
    TERTIARY_CODE = "tertiaryCode"
    DESCRIPTION_TEXT = "descriptionText"
    NOTES_TEXT = "notesText"

    @property
    def attribute(self) -> str:
        """Attribute name on ``CanonicalRecord``."""
        return _ATTRIBUTES[self]

    @property
    def required(self) -> bool:
        return self in REQUIRED_FIELDS


_ATTRIBUTES: dict[CanonicalField, str] = {
    CanonicalField.IDENTIFIER: "identifier",
    CanonicalField.DISPLAY_NAME: "display_name",
    CanonicalField.CLASSIFICATION: "classification",
    CanonicalField.SUB_CLASSIFICATION: "sub_classification",
    CanonicalField.PRIMARY_CODE: "primary_code",
    CanonicalField.SECONDARY_CODE: "secondary_code",
    CanonicalField.TERTIARY_CODE: "tertiary_code",
    CanonicalField.DESCRIPTION_TEXT: "description_text",
    CanonicalField.NOTES_TEXT: "notes_text",
}

REQUIRED_FIELDS: frozenset[CanonicalField] = frozenset(
    {CanonicalField.IDENTIFIER, CanonicalField.DISPLAY_NAME, CanonicalField.CLASSIFICATION}
)

CANONICAL_HEADER: tuple[CanonicalField, ...] = tuple(CanonicalField)


class DuplicateKind(StrEnum):
    NEW = "new"
    BY_IDENTIFIER = "duplicate-by-identifier"
    BY_CODE = "duplicate-by-code"


class ResolutionPolicy(StrEnum):
    SKIP_ALL = "skip-all"
    UPDATE_ALL = "update-all"
    DECIDE_EACH = "decide-each"


class AuditOperation(StrEnum):
    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"
    ERROR = "error"


class AuditOutcome(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


class ImportStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
