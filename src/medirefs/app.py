"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from medirefs.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from medirefs.config import get_import_config
from medirefs.domain.catalog_import import (
    AuditRecorder,
    AwaitingInput,
    CommittingRecordStore,
    ImportOrchestrator,
    MappingProposal,
    decode_source,
    format_records,
    split_header,
    suggest_mapping,
    validate_mapping,
)
from medirefs.domain.classification import HeuristicClassifier
from medirefs.domain.model import ResolutionPolicy
from medirefs.domain.ports.unit_of_work import CatalogUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path
    from uuid import UUID

    from medirefs.domain.catalog_import import (
        CancellationToken,
        FieldMapping,
        ImportSummary,
        ProgressSnapshot,
    )
    from medirefs.domain.catalog_import.mapping import ColumnRef
    from medirefs.domain.catalog_import.resolution import DecideCallback
    from medirefs.domain.model import AuditLogEntry, CanonicalField, ImportSession
    from medirefs.domain.ports import Classifier

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]


log = getLogger(__name__)


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyCatalogUnitOfWork


def _read_source(path: Path) -> bytes:
    return path.read_bytes()


def preview_catalog_file(path: Path, *, preview_rows: int | None = None) -> MappingProposal:
    """Parse ``path`` and propose a column mapping without touching the catalog.

    Raises ``MalformedInputError`` for undecodable, empty or header-only files.
    """

    rows = preview_rows if preview_rows is not None else get_import_config().preview_rows
    table = split_header(decode_source(_read_source(path)))
    suggested = suggest_mapping(table.header)
    return MappingProposal(
        headers=table.header,
        preview_rows=tuple(table.preview(rows)),
        suggested=suggested,
        validation=validate_mapping(suggested, table.header),
    )


def import_catalog_text(  # noqa: PLR0913
    text: str | bytes,
    source_name: str,
    *,
    source_size_bytes: int | None = None,
    mapping: FieldMapping | None = None,
    overrides: Mapping[CanonicalField, ColumnRef | None] | None = None,
    policy: ResolutionPolicy | None = None,
    decide: DecideCallback | None = None,
    classifier: Classifier | None = None,
    on_progress: Callable[[ProgressSnapshot], None] | None = None,
    cancellation: CancellationToken | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportSummary:
    """Run a complete, non-interactive import of ``text`` (``bytes`` must be UTF-8).

    Without ``mapping`` the suggested mapping is used; ``overrides`` then replace
    single fields (``None`` unmaps a field). Without ``policy`` duplicates go to
    ``decide`` when given and are skipped otherwise; ``decide-each`` without a
    callback updates every duplicate.
    """

    config = get_import_config()
    if policy is None and config.duplicate_policy is not None:
        policy = ResolutionPolicy(config.duplicate_policy)
    if policy is None and decide is not None:
        policy = ResolutionPolicy.DECIDE_EACH

    uow_factory = _unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        orchestrator = ImportOrchestrator(
            store=CommittingRecordStore(uow),
            recorder=AuditRecorder(uow.repositories.audit, commit=uow.commit),
            classifier=classifier or HeuristicClassifier(),
            policy=policy,
            on_progress=on_progress,
            preview_rows=config.preview_rows,
            decide=decide,
            cancellation=cancellation,
        )
        log.info("Starting catalog import from %s", source_name)
        orchestrator.load(text, source_name, source_size_bytes)

        if orchestrator.awaiting is AwaitingInput.MAPPING:
            assert orchestrator.proposal is not None
            effective = mapping or orchestrator.proposal.suggested
            for canonical_field, column in (overrides or {}).items():
                effective = effective.with_column(canonical_field, column)
            orchestrator.submit_mapping(effective)

        if orchestrator.awaiting is AwaitingInput.RESOLUTION:
            if policy is None:
                log.info("Duplicates found and no policy configured; skipping them")
            orchestrator.submit_resolution(policy or ResolutionPolicy.SKIP_ALL, decide)

        summary = orchestrator.summary
        assert summary is not None

    log.info(
        "Finished catalog import: phase=%s, succeeded=%s, failed=%s, duplicates=%s",
        summary.phase,
        summary.success_count,
        summary.error_count,
        summary.duplicate_count,
    )
    return summary


def import_catalog_file(path: Path, **options: object) -> ImportSummary:
    """Import the CSV file at ``path``; see :func:`import_catalog_text` for options."""

    data = _read_source(path)
    return import_catalog_text(
        data,
        path.name,
        source_size_bytes=len(data),
        **options,  # pyright: ignore[reportArgumentType]
    )


def export_catalog(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> str:
    """Serialise every stored record under the canonical header."""

    uow_factory = _unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        records = uow.repositories.records.get_all()
        return format_records(records)


def list_import_sessions(
    *,
    include_unreportable: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Sequence[ImportSession]:
    uow_factory = _unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        recorder = AuditRecorder(uow.repositories.audit)
        return recorder.list_sessions(reportable_only=not include_unreportable)


def import_session_entries(
    session_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Sequence[AuditLogEntry]:
    uow_factory = _unit_of_work_factory(unit_of_work_factory)
    with uow_factory() as uow:
        recorder = AuditRecorder(uow.repositories.audit)
        return recorder.entries_for(session_id)
