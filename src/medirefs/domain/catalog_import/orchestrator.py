"""Resumable state machine driving one catalog import.

The orchestrator suspends at two points and resumes on caller input::

    orchestrator.load(text, "tests.csv")        # -> MAPPING, awaiting mapping
    orchestrator.submit_mapping(mapping)        # -> COMPLETE, or awaiting resolution
    orchestrator.submit_resolution(policy)      # -> COMPLETE

Fatal problems (unusable source, invalid mapping, unreadable catalog) end in
``ImportPhase.ERROR`` without any writes; they never propagate as exceptions.
Calling an operation in the wrong phase raises ``InvalidTransitionError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from medirefs.domain.model import AuditOperation, AuditOutcome, DuplicateKind, ResolutionPolicy

from .audit import SessionMeta
from .duplicates import DuplicateMatch, detect_duplicates
from .errors import CatalogImportError, InvalidTransitionError
from .mapping import MappingProposal, suggest_mapping, validate_mapping
from .normalization import Candidate, RecordNormalizer, RowError
from .parser import decode_source, split_header
from .progress import (
    AwaitingInput,
    CancellationToken,
    ImportPhase,
    ProgressTracker,
)
from .resolution import resolve_conflicts

if TYPE_CHECKING:
    from uuid import UUID

    from medirefs.domain.ports import Classifier, RecordStore

    from .audit import AuditRecorder
    from .duplicates import DuplicateReport
    from .mapping import FieldMapping
    from .normalization import NormalizationResult
    from .parser import ParsedTable
    from .progress import ProgressCallback, ProgressSnapshot
    from .resolution import DecideCallback, Resolution

log = getLogger(__name__)

type _PlanItem = Candidate | DuplicateMatch | RowError


@dataclass(frozen=True, slots=True)
class ImportSummary:
    session_id: UUID | None
    phase: ImportPhase
    success_count: int
    error_count: int
    duplicate_count: int
    message: str
    details: tuple[str, ...] = ()
    cancelled: bool = False
    total: int = 0


@dataclass(slots=True)
class _Counters:
    processed: int = 0
    success: int = 0
    error: int = 0


def _line_of(item: _PlanItem) -> int:
    if isinstance(item, DuplicateMatch):
        return item.candidate.line_number
    return item.line_number


class ImportOrchestrator:
    """Drives parse → map → normalise → detect → resolve → write for one source.

    One instance handles exactly one import; ``COMPLETE`` and ``ERROR`` are terminal.
    With ``policy=None`` the orchestrator asks for a resolution whenever duplicates
    are found; ``decide-each`` without a ``decide`` callback asks as well.
    """

    def __init__(  # noqa: PLR0913
        self,
        store: RecordStore,
        recorder: AuditRecorder,
        classifier: Classifier,
        policy: ResolutionPolicy | None = None,
        on_progress: ProgressCallback | None = None,
        preview_rows: int = 5,
        *,
        decide: DecideCallback | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        self._store = store
        self._recorder = recorder
        self._classifier = classifier
        self._policy = policy
        self._decide = decide
        self._preview_rows = preview_rows
        self._tracker = ProgressTracker(on_progress)
        self._cancellation = cancellation or CancellationToken()

        self._phase = ImportPhase.IDLE
        self._awaiting: AwaitingInput | None = None
        self._source_name = ""
        self._source_size_bytes: int | None = None
        self._table: ParsedTable | None = None
        self._proposal: MappingProposal | None = None
        self._normalized: NormalizationResult | None = None
        self._report: DuplicateReport | None = None
        self._summary: ImportSummary | None = None

    # ------------------------------------------------------------------ state

    @property
    def phase(self) -> ImportPhase:
        return self._phase

    @property
    def awaiting(self) -> AwaitingInput | None:
        return self._awaiting

    @property
    def proposal(self) -> MappingProposal | None:
        return self._proposal

    @property
    def review(self) -> DuplicateReport | None:
        return self._report

    @property
    def summary(self) -> ImportSummary | None:
        return self._summary

    @property
    def progress(self) -> ProgressSnapshot | None:
        return self._tracker.last

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation

    # ------------------------------------------------------------- operations

    def load(
        self,
        text: str | bytes,
        source_name: str,
        source_size_bytes: int | None = None,
        mapping: FieldMapping | None = None,
    ) -> ImportPhase:
        """Parse ``text`` and propose a mapping; continue at once if ``mapping`` is given.

        ``bytes`` are decoded as UTF-8; undecodable input fails like any malformed source.
        """

        self._require(ImportPhase.IDLE, None, "load")
        self._source_name = source_name
        self._source_size_bytes = (
            source_size_bytes
            if source_size_bytes is not None
            else len(text if isinstance(text, bytes) else text.encode())
        )
        self._enter(ImportPhase.PARSING, f"Parsing {source_name}")
        try:
            if isinstance(text, bytes):
                text = decode_source(text)
            table = split_header(text)
        except CatalogImportError as exc:
            return self._fail(str(exc))

        self._table = table
        suggested = suggest_mapping(table.header)
        self._proposal = MappingProposal(
            headers=table.header,
            preview_rows=tuple(table.preview(self._preview_rows)),
            suggested=suggested,
            validation=validate_mapping(suggested, table.header),
        )
        self._awaiting = AwaitingInput.MAPPING
        self._enter(
            ImportPhase.MAPPING,
            f"Found {len(table.header)} columns and {len(table.rows)} data rows",
        )
        if mapping is not None:
            return self.submit_mapping(mapping)
        return self._phase

    def submit_mapping(self, mapping: FieldMapping) -> ImportPhase:
        """Normalise rows under ``mapping`` and look for duplicates."""

        self._require(ImportPhase.MAPPING, AwaitingInput.MAPPING, "submit a mapping")
        assert self._table is not None
        self._awaiting = None

        try:
            normalizer = RecordNormalizer(mapping, self._table.header, self._classifier)
        except CatalogImportError as exc:
            return self._fail(str(exc))
        self._normalized = normalizer.normalize_all(self._table.rows)

        try:
            stored = self._store.get_all()
        except Exception as exc:  # noqa: BLE001
            log.exception("Could not read the catalog snapshot")
            return self._fail(f"Could not read the existing catalog: {exc}")

        report = detect_duplicates(self._normalized.candidates, stored)
        self._report = report
        if self._needs_resolution(report):
            self._awaiting = AwaitingInput.RESOLUTION
            self._tracker.emit(
                self._phase,
                f"{report.duplicate_count} duplicate(s) need a decision",
            )
            return self._phase

        policy = self._policy or ResolutionPolicy.UPDATE_ALL
        return self._run(resolve_conflicts(report, policy, self._decide))

    def submit_resolution(
        self,
        policy: ResolutionPolicy,
        decide: DecideCallback | None = None,
    ) -> ImportPhase:
        self._require(ImportPhase.MAPPING, AwaitingInput.RESOLUTION, "submit a resolution")
        assert self._report is not None
        self._awaiting = None
        return self._run(resolve_conflicts(self._report, policy, decide))

    def cancel(self) -> ImportPhase:
        """Request cancellation.

        While suspended the run closes out immediately with no writes; while
        importing, the request takes effect before the next record.
        """

        if self._phase.is_terminal:
            raise InvalidTransitionError(f"Cannot cancel an import that is {self._phase}")
        self._cancellation.cancel()
        if self._phase is ImportPhase.IDLE or self._awaiting is not None:
            self._close_cancelled()
        return self._phase

    # -------------------------------------------------------------- internals

    def _require(
        self,
        phase: ImportPhase,
        awaiting: AwaitingInput | None,
        action: str,
    ) -> None:
        if self._phase is not phase or self._awaiting is not awaiting:
            state = f"{self._phase} (awaiting {self._awaiting})" if self._awaiting else self._phase
            raise InvalidTransitionError(f"Cannot {action} while import is {state}")

    def _enter(self, phase: ImportPhase, message: str, *, percentage: float | None = None) -> None:
        log.info("Import of %s: %s -> %s", self._source_name, self._phase, phase)
        self._phase = phase
        self._tracker.emit(phase, message, percentage=percentage)

    def _needs_resolution(self, report: DuplicateReport) -> bool:
        if not report.has_duplicates:
            return False
        if self._policy is None:
            return True
        return self._policy is ResolutionPolicy.DECIDE_EACH and self._decide is None

    def _row_count(self) -> int:
        return len(self._table.rows) if self._table is not None else 0

    def _record_failed_session(self, message: str) -> UUID | None:
        try:
            session_id = self._recorder.start_session(
                SessionMeta(
                    source_name=self._source_name,
                    source_size_bytes=self._source_size_bytes,
                    total_candidate_count=self._row_count(),
                )
            )
            self._recorder.finish_session(session_id, 0, 0, 0, [message], reportable=False)
        except Exception:  # noqa: BLE001
            log.exception("Could not record failed import session for %s", self._source_name)
            return None
        return session_id

    def _fail(self, message: str) -> ImportPhase:
        log.error("Import of %s failed: %s", self._source_name, message)
        self._awaiting = None
        session_id = self._record_failed_session(message)
        self._enter(ImportPhase.ERROR, message)
        self._summary = ImportSummary(
            session_id=session_id,
            phase=ImportPhase.ERROR,
            success_count=0,
            error_count=0,
            duplicate_count=0,
            message=message,
            total=self._row_count(),
        )
        return self._phase

    def _close_cancelled(self) -> None:
        message = "Import cancelled before any records were written"
        self._awaiting = None
        session_id = None
        if self._table is not None:
            session_id = self._record_failed_session(message)
        duplicate_count = self._report.duplicate_count if self._report is not None else 0
        self._enter(ImportPhase.COMPLETE, message)
        self._summary = ImportSummary(
            session_id=session_id,
            phase=ImportPhase.COMPLETE,
            success_count=0,
            error_count=0,
            duplicate_count=duplicate_count,
            message=message,
            cancelled=True,
            total=self._row_count(),
        )

    def _plan(self, resolution: Resolution) -> list[_PlanItem]:
        assert self._normalized is not None
        items: list[_PlanItem] = [
            *resolution.writes,
            *resolution.skipped,
            *self._normalized.errors,
        ]
        return sorted(items, key=_line_of)

    def _run(self, resolution: Resolution) -> ImportPhase:
        assert self._report is not None
        plan = self._plan(resolution)
        total = len(plan)
        kinds = {
            id(match.candidate): match.kind
            for match in (*self._report.by_identifier, *self._report.by_code)
        }

        self._enter(ImportPhase.IMPORTING, f"Importing {total} rows", percentage=0.0)
        try:
            session_id = self._recorder.start_session(
                SessionMeta(
                    source_name=self._source_name,
                    source_size_bytes=self._source_size_bytes,
                    total_candidate_count=total,
                )
            )
        except Exception as exc:  # noqa: BLE001
            log.exception("Could not start import session")
            return self._fail(f"Could not start the import session: {exc}")

        counters = _Counters()
        details: list[str] = []
        cancelled = False
        failure: str | None = None
        try:
            for item in plan:
                if self._cancellation.cancelled:
                    cancelled = True
                    log.info(
                        "Import of %s cancelled after %d rows",
                        self._source_name,
                        counters.processed,
                    )
                    break
                label = self._process(session_id, item, kinds, counters, details)
                counters.processed += 1
                self._tracker.emit(
                    ImportPhase.IMPORTING,
                    f"Processed {counters.processed} of {total}",
                    current=counters.processed,
                    total=total,
                    current_record=label,
                )
        except Exception as exc:  # noqa: BLE001
            log.exception("Import of %s aborted", self._source_name)
            failure = f"Import aborted after {counters.processed} of {total} rows: {exc}"
            details.append(failure)
        finally:
            try:
                self._recorder.finish_session(
                    session_id,
                    counters.success,
                    counters.error,
                    self._report.duplicate_count,
                    details,
                )
            except Exception:  # noqa: BLE001
                log.exception("Could not finish import session %s", session_id)

        phase = ImportPhase.ERROR if failure is not None else ImportPhase.COMPLETE
        message = failure or self._completion_message(counters, total, cancelled=cancelled)
        finished = not cancelled and failure is None
        self._enter(phase, message, percentage=100.0 if finished else None)
        self._summary = ImportSummary(
            session_id=session_id,
            phase=phase,
            success_count=counters.success,
            error_count=counters.error,
            duplicate_count=self._report.duplicate_count,
            message=message,
            details=tuple(details),
            cancelled=cancelled,
            total=total,
        )
        return self._phase

    def _completion_message(self, counters: _Counters, total: int, *, cancelled: bool) -> str:
        assert self._report is not None
        counts = (
            f"{counters.success} succeeded, {counters.error} failed, "
            f"{self._report.duplicate_count} duplicate(s)"
        )
        if cancelled:
            return f"Import cancelled after {counters.processed} of {total} rows: {counts}"
        return f"Imported {self._source_name}: {counts}"

    def _process(
        self,
        session_id: UUID,
        item: _PlanItem,
        kinds: dict[int, DuplicateKind],
        counters: _Counters,
        details: list[str],
    ) -> str | None:
        """Handle one plan item and log it; returns a label for progress reporting."""

        if isinstance(item, RowError):
            counters.error += 1
            details.append(item.detail)
            self._recorder.log_attempt(
                session_id,
                item.original_row,
                AuditOperation.ERROR,
                AuditOutcome.FAILURE,
                line_number=item.line_number,
                target_identifier=item.identifier,
                message=item.message,
            )
            return item.identifier

        if isinstance(item, DuplicateMatch):
            candidate = item.candidate
            self._recorder.log_attempt(
                session_id,
                candidate.original_row,
                AuditOperation.SKIP,
                AuditOutcome.SUCCESS,
                line_number=candidate.line_number,
                target_identifier=candidate.identifier,
                duplicate_kind=item.kind,
                message=f"Skipped {item.kind} of {item.stored.identifier}",
            )
            return candidate.record.display_name

        kind = kinds.get(id(item), DuplicateKind.NEW)
        return self._write(session_id, item, kind, counters, details)

    def _write(
        self,
        session_id: UUID,
        candidate: Candidate,
        kind: DuplicateKind,
        counters: _Counters,
        details: list[str],
    ) -> str:
        identifier = candidate.identifier
        operation = AuditOperation.INSERT
        try:
            existing = self._store.get_by_id(identifier)
            if existing is None:
                self._store.insert(candidate.record)
            else:
                operation = AuditOperation.UPDATE
                if self._store.update(identifier, candidate.changes()) is None:
                    raise LookupError(f"{identifier} disappeared before update")  # noqa: TRY301
        except Exception as exc:  # noqa: BLE001
            counters.error += 1
            details.append(f"Record {identifier}: {exc}")
            log.warning("Failed to %s record %s: %s", operation, identifier, exc)
            self._recorder.log_attempt(
                session_id,
                candidate.original_row,
                operation,
                AuditOutcome.FAILURE,
                line_number=candidate.line_number,
                target_identifier=identifier,
                duplicate_kind=kind,
                message=str(exc),
            )
        else:
            counters.success += 1
            self._recorder.log_attempt(
                session_id,
                candidate.original_row,
                operation,
                AuditOutcome.SUCCESS,
                line_number=candidate.line_number,
                target_identifier=identifier,
                duplicate_kind=kind,
            )
        return candidate.record.display_name
