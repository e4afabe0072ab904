"""Classify candidates against a snapshot of the stored catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from medirefs.domain.model import DuplicateKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from medirefs.domain.model import CanonicalRecord

    from .normalization import Candidate


@dataclass(frozen=True, slots=True)
class DuplicateMatch:
    """A candidate paired with the stored record it collides with."""

    candidate: Candidate
    stored: CanonicalRecord
    kind: DuplicateKind


@dataclass(slots=True)
class DuplicateReport:
    new: list[Candidate] = field(default_factory=list)
    by_identifier: list[DuplicateMatch] = field(default_factory=list)
    by_code: list[DuplicateMatch] = field(default_factory=list)

    @property
    def duplicates(self) -> list[DuplicateMatch]:
        """All matches, in source order."""

        return sorted(
            [*self.by_identifier, *self.by_code],
            key=lambda match: match.candidate.line_number,
        )

    @property
    def duplicate_count(self) -> int:
        return len(self.by_identifier) + len(self.by_code)

    @property
    def has_duplicates(self) -> bool:
        return self.duplicate_count > 0

    def kind_of(self, candidate: Candidate) -> DuplicateKind:
        for match in self.by_identifier:
            if match.candidate is candidate:
                return DuplicateKind.BY_IDENTIFIER
        for match in self.by_code:
            if match.candidate is candidate:
                return DuplicateKind.BY_CODE
        return DuplicateKind.NEW

    def __iter__(self) -> Iterator[Candidate]:
        """All candidates, in source order."""

        candidates = [
            *self.new,
            *(match.candidate for match in self.by_identifier),
            *(match.candidate for match in self.by_code),
        ]
        return iter(sorted(candidates, key=lambda candidate: candidate.line_number))


class _SnapshotIndex:
    def __init__(self, stored: Iterable[CanonicalRecord]) -> None:
        self.by_identifier: dict[str, CanonicalRecord] = {}
        self.by_code: dict[str, list[CanonicalRecord]] = {}
        for record in stored:
            self.by_identifier.setdefault(record.identifier, record)
            if record.primary_code:
                self.by_code.setdefault(record.primary_code, []).append(record)

    def code_match(self, code: str, identifier: str) -> CanonicalRecord | None:
        for record in self.by_code.get(code, ()):
            if record.identifier != identifier:
                return record
        return None


def detect_duplicates(
    candidates: Sequence[Candidate],
    stored: Iterable[CanonicalRecord],
) -> DuplicateReport:
    """Assign every candidate exactly one bucket.

    An identifier match always wins over a primary-code match. Candidates are only
    compared with the stored snapshot, never with each other.
    """

    index = _SnapshotIndex(stored)
    report = DuplicateReport()
    for candidate in candidates:
        record = candidate.record
        existing = index.by_identifier.get(record.identifier)
        if existing is not None:
            report.by_identifier.append(
                DuplicateMatch(candidate, existing, DuplicateKind.BY_IDENTIFIER)
            )
            continue
        if record.primary_code:
            existing = index.code_match(record.primary_code, record.identifier)
            if existing is not None:
                report.by_code.append(DuplicateMatch(candidate, existing, DuplicateKind.BY_CODE))
                continue
        report.new.append(candidate)
    return report
