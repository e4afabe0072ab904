from __future__ import annotations

import pytest

from medirefs.domain.catalog_import import (
    MalformedInputError,
    format_records,
    parse_rows,
    read_source_rows,
    split_header,
)
from tests.helpers.catalog import make_record


def test_quoted_field_keeps_embedded_comma() -> None:
    rows = parse_rows('id,name,category\nT1,"Complex, Name",Lab\n')

    assert rows[1] == ["T1", "Complex, Name", "Lab"]


def test_doubled_quotes_and_embedded_newline_form_one_record() -> None:
    text = 'id,name,notes\nT1,"Say ""hi""","line one\nline two"\nT2,Other,\n'

    rows = parse_rows(text)

    assert len(rows) == 3
    assert rows[1] == ["T1", 'Say "hi"', "line one\nline two"]
    assert rows[2] == ["T2", "Other", ""]


def test_blank_lines_are_returned_as_empty_rows() -> None:
    rows = parse_rows("a,b\n\n1,2\n")

    assert rows == [["a", "b"], [], ["1", "2"]]


def test_empty_text_has_no_rows() -> None:
    assert parse_rows("") == []


def test_final_line_without_newline_is_parsed() -> None:
    assert parse_rows("a,b\n1,2") == [["a", "b"], ["1", "2"]]


def test_source_rows_carry_start_line_numbers() -> None:
    text = 'id,notes\nT1,"multi\nline"\nT2,plain\n'

    rows = read_source_rows(text)

    assert [row.line_number for row in rows] == [1, 2, 4]


def test_split_header_drops_bom_and_blank_rows() -> None:
    table = split_header("\ufeffid , name\n\n T1 ,Glucose\n,\n")

    assert table.header == ("id", "name")
    assert len(table.rows) == 1
    assert table.rows[0].line_number == 3
    assert table.rows[0].fields == (" T1 ", "Glucose")


@pytest.mark.parametrize("text", ["", "\n\n", "id,name\n", "id,name\n\n ,\n"])
def test_split_header_requires_a_data_row(text: str) -> None:
    with pytest.raises(MalformedInputError):
        split_header(text)


def test_preview_is_limited() -> None:
    table = split_header("id\n1\n2\n3\n")

    assert table.preview(2) == [("1",), ("2",)]


def test_format_records_quotes_special_values() -> None:
    record = make_record("T1", "Panel, basic", notes_text='He said "ok"\nthen left')

    text = format_records([record])

    lines = parse_rows(text)
    assert lines[0][:3] == ["identifier", "displayName", "classification"]
    assert lines[1][1] == "Panel, basic"
    assert lines[1][-1] == 'He said "ok"\nthen left'
    assert '"Panel, basic"' in text


UNCLOSED_NOTE = (
    "identifier,displayName,classification,notesText\n"
    'A,Name A,Lab,"unclosed note\n'
    "B,Name B,Lab,\n"
    "C,Name C,Lab,\n"
)


def test_unclosed_quote_is_malformed_instead_of_absorbing_rows() -> None:
    with pytest.raises(MalformedInputError, match="line 2"):
        split_header(UNCLOSED_NOTE)


def test_text_after_closing_quote_is_malformed() -> None:
    with pytest.raises(MalformedInputError, match="line 3"):
        parse_rows('id,name\nT1,Glucose\nT2,"Lipid" panel\n')


def test_format_records_follows_canonical_column_order() -> None:
    record = make_record("T1", "Glucose", primary_code="82947")

    header, row = parse_rows(format_records([record]))

    assert dict(zip(header, row, strict=True)) == {
        name: value or "" for name, value in record.as_row().items()
    }
