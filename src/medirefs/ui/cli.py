# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from medirefs.adapters.mapping_file import load_mapping_file
from medirefs.app import (
    export_catalog,
    import_catalog_file,
    import_session_entries,
    list_import_sessions,
    preview_catalog_file,
)
from medirefs.config import configure_logging
from medirefs.domain.catalog_import import (
    MAP_AS_NULL,
    CancellationToken,
    CatalogImportError,
    ImportPhase,
)
from medirefs.domain.classification import HeuristicClassifier, PassthroughClassifier
from medirefs.domain.model import CanonicalField, ResolutionPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from medirefs.domain.catalog_import import DuplicateMatch, MappingProposal, ProgressSnapshot
    from medirefs.domain.catalog_import.mapping import ColumnRef

log = logging.getLogger(__name__)

_ON_DUPLICATE: dict[str, ResolutionPolicy | None] = {
    "skip": ResolutionPolicy.SKIP_ALL,
    "update": ResolutionPolicy.UPDATE_ALL,
    "ask": ResolutionPolicy.DECIDE_EACH,
    "config": None,
}

_CANCELLATION = CancellationToken()
_IMPORT_RUNNING = False


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the medical test catalog")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Import records from a CSV file")
    importer.add_argument("path", type=Path, help="CSV file with a header row")
    importer.add_argument(
        "--map",
        dest="mappings",
        action="append",
        default=[],
        metavar="FIELD=COLUMN",
        help="Map a catalog field to a source column; an empty COLUMN clears the field",
    )
    importer.add_argument(
        "--mapping-file",
        type=Path,
        help="JSON mapping file (see medirefs.adapters.mapping_file)",
    )
    importer.add_argument(
        "--on-duplicate",
        choices=sorted(_ON_DUPLICATE),
        default="config",
        help="How to treat records that already exist (default: %(default)s)",
    )
    importer.add_argument(
        "--classifier",
        choices=("heuristic", "passthrough"),
        default="heuristic",
        help="Category normalization (default: %(default)s)",
    )

    preview = subparsers.add_parser("preview", help="Show columns and the suggested mapping")
    preview.add_argument("path", type=Path, help="CSV file with a header row")
    preview.add_argument("--rows", type=int, help="Number of preview rows (defaults to config)")

    export = subparsers.add_parser("export", help="Write the catalog as CSV")
    export.add_argument("--output", type=Path, help="Target file (defaults to stdout)")

    sessions = subparsers.add_parser("sessions", help="List import sessions")
    sessions.add_argument(
        "--all",
        action="store_true",
        help="Include failed attempts that never reached the import phase",
    )
    sessions.add_argument("--entries", type=str, help="Show audit entries for a session id")

    return parser.parse_args(list(argv))


def _parse_field_overrides(values: Sequence[str]) -> dict[CanonicalField, ColumnRef | None]:
    overrides: dict[CanonicalField, ColumnRef | None] = {}
    for value in values:
        name, separator, column = value.partition("=")
        if not separator:
            raise ValueError(f"Invalid --map value {value!r}; expected FIELD=COLUMN")
        try:
            canonical_field = CanonicalField(name.strip())
        except ValueError as exc:
            choices = ", ".join(CanonicalField)
            raise ValueError(f"Unknown field {name!r}; expected one of {choices}") from exc
        overrides[canonical_field] = column.strip() or MAP_AS_NULL
    return overrides


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _ask(match: DuplicateMatch) -> bool:
    candidate = match.candidate.record
    answer = input(
        f"{match.kind}: {candidate.identifier} ({candidate.display_name}) matches stored "
        f"{match.stored.identifier} ({match.stored.display_name}). Overwrite? [y/N] "
    )
    return answer.strip().lower() in {"y", "yes"}


def _log_progress(snapshot: ProgressSnapshot) -> None:
    log.debug(
        "%s %5.1f%% %s%s",
        snapshot.phase,
        snapshot.percentage,
        snapshot.message,
        f" ({snapshot.current_record})" if snapshot.current_record else "",
    )


def _print_proposal(proposal: MappingProposal) -> None:
    print("Columns: " + ", ".join(proposal.headers))
    print("Suggested mapping:")
    for canonical_field in CanonicalField:
        column = proposal.suggested.column_for(canonical_field)
        marker = "*" if canonical_field.required else " "
        print(f"  {marker} {canonical_field:<18} <- {column or '(unmapped)'}")
    if not proposal.validation.valid:
        missing = ", ".join(str(name) for name in proposal.validation.missing_required_fields)
        print(f"Mapping incomplete, missing: {missing}")
    print("Preview:")
    for row in proposal.preview_rows:
        print("  " + " | ".join(row))


def _run_import(args: argparse.Namespace) -> int:
    global _IMPORT_RUNNING  # noqa: PLW0603
    mapping = None
    policy = _ON_DUPLICATE[args.on_duplicate]
    if args.mapping_file is not None:
        mapping_file = load_mapping_file(args.mapping_file)
        mapping = mapping_file.to_field_mapping()
        if policy is None:
            policy = mapping_file.on_duplicate
    classifier = (
        PassthroughClassifier() if args.classifier == "passthrough" else HeuristicClassifier()
    )

    _IMPORT_RUNNING = True
    try:
        summary = import_catalog_file(
            args.path,
            mapping=mapping,
            overrides=_parse_field_overrides(args.mappings),
            policy=policy,
            decide=_ask if policy is ResolutionPolicy.DECIDE_EACH else None,
            classifier=classifier,
            on_progress=_log_progress,
            cancellation=_CANCELLATION,
        )
    finally:
        _IMPORT_RUNNING = False

    print(summary.message)
    for detail in summary.details:
        print(f"  {detail}")
    if summary.session_id is not None:
        print(f"Session: {summary.session_id}")
    return 1 if summary.phase is ImportPhase.ERROR else 0


def _run_sessions(args: argparse.Namespace) -> None:
    if args.entries:
        for entry in import_session_entries(_parse_uuid(args.entries)):
            print(
                f"{entry.sequence:>4} line {entry.line_number or '-':>5} "
                f"{entry.operation:<6} {entry.outcome:<7} "
                f"{entry.target_identifier or '-'} {entry.message or ''}".rstrip()
            )
        return
    for session in list_import_sessions(include_unreportable=args.all):
        print(
            f"{session.id} {session.started_at:%Y-%m-%d %H:%M} {session.status:<11} "
            f"{session.source_name} ok={session.success_count} "
            f"errors={session.error_count} duplicates={session.duplicate_count}"
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "import":
            _parse_field_overrides(parsed_args.mappings)
        elif parsed_args.command == "sessions" and parsed_args.entries:
            _parse_uuid(parsed_args.entries)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    exit_code = 0
    try:
        if parsed_args.command == "import":
            exit_code = _run_import(parsed_args)
        elif parsed_args.command == "preview":
            _print_proposal(preview_catalog_file(parsed_args.path, preview_rows=parsed_args.rows))
        elif parsed_args.command == "export":
            text = export_catalog()
            if parsed_args.output is None:
                sys.stdout.write(text)
            else:
                parsed_args.output.write_text(text, encoding="utf-8")
                log.info("Exported catalog to %s", parsed_args.output)
        elif parsed_args.command == "sessions":
            _run_sessions(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except CatalogImportError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C): stop a running import after its current record."""
    if _IMPORT_RUNNING and not _CANCELLATION.cancelled:
        log.info("Cancelling import after the current record (Ctrl+C again to quit)")
        _CANCELLATION.cancel()
        return
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
