"""Delimited-text parsing for catalog import sources.

The parser yields every logical record, blank ones included, and leaves row-count
policy to :func:`split_header` and the orchestrator. Quoted fields may contain the
delimiter, doubled quotes and line breaks. A quote left open at the end of the input,
or stray text after a closing quote, is malformed: accepting it would fold every
following row into one field.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from medirefs.domain.model import CANONICAL_HEADER

from .errors import MalformedInputError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from medirefs.domain.model import CanonicalRecord

DELIMITER: Final[str] = ","
QUOTE_CHAR: Final[str] = '"'
_BOM: Final[str] = "\ufeff"


@dataclass(frozen=True, slots=True)
class SourceRow:
    """A logical record together with the 1-based line it starts on."""

    line_number: int
    fields: tuple[str, ...]

    @property
    def is_blank(self) -> bool:
        return all(not value.strip() for value in self.fields)


@dataclass(frozen=True, slots=True)
class ParsedTable:
    header: tuple[str, ...]
    rows: tuple[SourceRow, ...]

    def preview(self, count: int) -> list[tuple[str, ...]]:
        return [row.fields for row in self.rows[:count]]


def _reader(text: str) -> Iterator[SourceRow]:
    if text.startswith(_BOM):
        text = text[len(_BOM) :]
    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=DELIMITER,
        quotechar=QUOTE_CHAR,
        doublequote=True,
        strict=True,
    )
    consumed = 0
    try:
        for fields in reader:
            yield SourceRow(line_number=consumed + 1, fields=tuple(fields))
            consumed = reader.line_num
    except csv.Error as exc:
        raise MalformedInputError(f"Unreadable input near line {consumed + 1}: {exc}") from exc


def decode_source(data: bytes) -> str:
    """Decode raw source bytes as UTF-8 (a leading BOM is kept for the reader to drop)."""

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(
            f"Source is not UTF-8 text (byte {exc.start}: {exc.reason}); re-save it as UTF-8"
        ) from exc


def parse_rows(text: str) -> list[list[str]]:
    """Split ``text`` into rows of fields, one row per logical record."""

    return [list(row.fields) for row in _reader(text)]


def read_source_rows(text: str) -> list[SourceRow]:
    return list(_reader(text))


def split_header(text: str) -> ParsedTable:
    """Return header plus non-blank data rows.

    Raises ``MalformedInputError`` unless the text has a header and at least one
    non-blank data row.
    """

    rows = [row for row in _reader(text) if not row.is_blank]
    if not rows:
        raise MalformedInputError("Source is empty; expected a header row and data rows")
    header, *data = rows
    if not data:
        raise MalformedInputError(
            "Source must contain at least a header row and one data row"
        )
    return ParsedTable(
        header=tuple(name.strip() for name in header.fields),
        rows=tuple(data),
    )


def format_records(records: Iterable[CanonicalRecord]) -> str:
    """Serialise ``records`` under the canonical header."""

    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=DELIMITER,
        quotechar=QUOTE_CHAR,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writerow([str(name) for name in CANONICAL_HEADER])
    for record in records:
        writer.writerow([value or "" for value in record.as_row().values()])
    return buffer.getvalue()
