"""Bulk CSV import pipeline for the test catalog."""

from __future__ import annotations

from .audit import AuditRecorder, SessionMeta
from .duplicates import DuplicateMatch, DuplicateReport, detect_duplicates
from .errors import (
    AuditError,
    CatalogImportError,
    InvalidTransitionError,
    MalformedInputError,
    MappingValidationError,
)
from .mapping import (
    MAP_AS_NULL,
    FieldMapping,
    MappingProposal,
    MappingValidation,
    suggest_mapping,
    validate_mapping,
)
from .normalization import Candidate, NormalizationResult, RecordNormalizer, RowError
from .orchestrator import ImportOrchestrator, ImportSummary
from .parser import (
    ParsedTable,
    SourceRow,
    decode_source,
    format_records,
    parse_rows,
    read_source_rows,
    split_header,
)
from .progress import AwaitingInput, CancellationToken, ImportPhase, ProgressSnapshot
from .resolution import Resolution, resolve_conflicts
from .store import CommittingRecordStore

__all__ = [
    "MAP_AS_NULL",
    "AuditError",
    "AuditRecorder",
    "AwaitingInput",
    "CancellationToken",
    "Candidate",
    "CatalogImportError",
    "CommittingRecordStore",
    "DuplicateMatch",
    "DuplicateReport",
    "FieldMapping",
    "ImportOrchestrator",
    "ImportPhase",
    "ImportSummary",
    "InvalidTransitionError",
    "MalformedInputError",
    "MappingProposal",
    "MappingValidation",
    "MappingValidationError",
    "NormalizationResult",
    "ParsedTable",
    "ProgressSnapshot",
    "RecordNormalizer",
    "Resolution",
    "RowError",
    "SessionMeta",
    "SourceRow",
    "decode_source",
    "detect_duplicates",
    "format_records",
    "parse_rows",
    "read_source_rows",
    "resolve_conflicts",
    "split_header",
    "suggest_mapping",
    "validate_mapping",
]
