from __future__ import annotations

import pytest

from medirefs.domain.catalog_import import (
    MAP_AS_NULL,
    FieldMapping,
    suggest_mapping,
    validate_mapping,
)
from medirefs.domain.model import CanonicalField


def test_canonical_headers_map_onto_themselves() -> None:
    headers = [str(name) for name in CanonicalField]

    mapping = suggest_mapping(headers)

    assert all(mapping.column_for(name) == str(name) for name in CanonicalField)


def test_synonyms_map_short_headers() -> None:
    mapping = suggest_mapping(["id", "name", "category"])

    assert mapping.column_for(CanonicalField.IDENTIFIER) == "id"
    assert mapping.column_for(CanonicalField.DISPLAY_NAME) == "name"
    assert mapping.column_for(CanonicalField.CLASSIFICATION) == "category"
    assert validate_mapping(mapping, ["id", "name", "category"]).valid


def test_exact_match_ignores_case_spacing_and_separators() -> None:
    mapping = suggest_mapping(["Display Name", "IDENTIFIER", "primary_code", "sub-classification"])

    assert mapping.column_for(CanonicalField.DISPLAY_NAME) == "Display Name"
    assert mapping.column_for(CanonicalField.IDENTIFIER) == "IDENTIFIER"
    assert mapping.column_for(CanonicalField.PRIMARY_CODE) == "primary_code"
    assert mapping.column_for(CanonicalField.SUB_CLASSIFICATION) == "sub-classification"


def test_containing_field_name_beats_synonym() -> None:
    mapping = suggest_mapping(["Name", "Test DisplayName"])

    assert mapping.column_for(CanonicalField.DISPLAY_NAME) == "Test DisplayName"


def test_subcategory_is_not_claimed_by_category() -> None:
    mapping = suggest_mapping(["Sub Category", "Category", "Test ID", "Test Name"])

    assert mapping.column_for(CanonicalField.CLASSIFICATION) == "Category"
    assert mapping.column_for(CanonicalField.SUB_CLASSIFICATION) == "Sub Category"


def test_each_header_is_claimed_once() -> None:
    mapping = suggest_mapping(["code"])

    claimed = [name for name in CanonicalField if mapping.column_for(name) == "code"]
    assert claimed == [CanonicalField.IDENTIFIER]


def test_unmatched_fields_stay_unmapped() -> None:
    mapping = suggest_mapping(["id", "name", "category"])

    assert mapping.column_for(CanonicalField.NOTES_TEXT) is None
    assert CanonicalField.NOTES_TEXT not in mapping.provided_fields


def test_missing_required_field_is_reported() -> None:
    mapping = FieldMapping.from_names({"identifier": "id", "displayName": "name"})

    result = validate_mapping(mapping)

    assert not result.valid
    assert result.missing_required_fields == (CanonicalField.CLASSIFICATION,)


def test_required_field_mapped_to_null_is_invalid() -> None:
    mapping = FieldMapping.from_names(
        {"identifier": "id", "displayName": "name", "classification": None}
    )

    result = validate_mapping(mapping, ["id", "name", "category"])

    assert not result.valid
    assert result.missing_required_fields == (CanonicalField.CLASSIFICATION,)


def test_unknown_columns_are_reported() -> None:
    mapping = FieldMapping.from_names(
        {"identifier": "id", "displayName": "name", "classification": "kind"}
    )

    result = validate_mapping(mapping, ["id", "name", "category"])

    assert not result.valid
    assert result.unknown_columns == ("kind",)


def test_optional_null_mapping_is_valid_and_provided() -> None:
    mapping = suggest_mapping(["id", "name", "category", "notes"]).with_column(
        CanonicalField.NOTES_TEXT, MAP_AS_NULL
    )

    assert validate_mapping(mapping, ["id", "name", "category", "notes"]).valid
    assert mapping.column_for(CanonicalField.NOTES_TEXT) is MAP_AS_NULL
    assert CanonicalField.NOTES_TEXT in mapping.provided_fields


def test_with_column_none_unmaps() -> None:
    mapping = suggest_mapping(["id", "name", "category", "notes"])

    unmapped = mapping.with_column(CanonicalField.NOTES_TEXT, None)

    assert unmapped.column_for(CanonicalField.NOTES_TEXT) is None
    assert mapping.column_for(CanonicalField.NOTES_TEXT) == "notes"


def test_from_names_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="Unknown canonical field"):
        FieldMapping.from_names({"colour": "c"})
