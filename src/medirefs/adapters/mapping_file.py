"""Pydantic model for saved column mappings.

A mapping file is a JSON document such as::

    {
        "fields": {"identifier": "Test ID", "displayName": "Test Name", "notesText": null},
        "onDuplicate": "skip-all"
    }

``null`` maps a field to nothing (the field is cleared on import); fields that are
absent stay unmapped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from medirefs.domain.catalog_import import FieldMapping
from medirefs.domain.model import CanonicalField, ResolutionPolicy

if TYPE_CHECKING:
    from pathlib import Path


class MappingFileError(RuntimeError):
    """Raised when a mapping file cannot be read or does not validate."""


class MappingFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    columns: dict[CanonicalField, str | None] = Field(alias="fields")
    on_duplicate: ResolutionPolicy | None = Field(default=None, alias="onDuplicate")

    @field_validator("columns")
    @classmethod
    def _reject_blank_columns(
        cls,
        value: dict[CanonicalField, str | None],
    ) -> dict[CanonicalField, str | None]:
        for name, column in value.items():
            if column is not None and not column.strip():
                raise ValueError(f"column for {name} must not be blank; use null to clear it")
        return value

    def to_field_mapping(self) -> FieldMapping:
        return FieldMapping.from_names(
            {str(name): column for name, column in self.columns.items()}
        )


def parse_mapping_file(text: str) -> MappingFileModel:
    try:
        return MappingFileModel.model_validate_json(text)
    except ValidationError as exc:
        raise MappingFileError(f"Invalid mapping file: {exc}") from exc


def load_mapping_file(path: Path) -> MappingFileModel:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MappingFileError(f"Cannot read mapping file {path}: {exc}") from exc
    return parse_mapping_file(text)


def dump_mapping_file(mapping: FieldMapping, on_duplicate: ResolutionPolicy | None = None) -> str:
    """Serialise ``mapping`` in the format read by :func:`load_mapping_file`."""

    model = MappingFileModel(
        columns={CanonicalField(name): column for name, column in mapping.as_names().items()},
        on_duplicate=on_duplicate,
    )
    return model.model_dump_json(by_alias=True, indent=2)
