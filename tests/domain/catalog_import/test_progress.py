from __future__ import annotations

import threading

import pytest

from medirefs.domain.catalog_import import CancellationToken, ImportPhase, ProgressSnapshot
from medirefs.domain.catalog_import.progress import ProgressTracker


def test_percentage_never_decreases() -> None:
    seen: list[ProgressSnapshot] = []
    tracker = ProgressTracker(seen.append)

    tracker.emit(ImportPhase.IMPORTING, "half", current=1, total=2)
    tracker.emit(ImportPhase.IMPORTING, "restart", current=0, total=2)
    tracker.emit(ImportPhase.COMPLETE, "done", percentage=100.0)

    assert [snapshot.percentage for snapshot in seen] == [50.0, 50.0, 100.0]
    assert tracker.last is seen[-1]


def test_snapshots_are_immutable() -> None:
    snapshot = ProgressTracker().emit(ImportPhase.PARSING, "parsing")

    with pytest.raises(AttributeError):
        snapshot.message = "changed"  # type: ignore[misc]


def test_cancellation_token_is_shared_across_threads() -> None:
    token = CancellationToken()
    worker = threading.Thread(target=token.cancel)

    worker.start()
    worker.join()

    assert token.cancelled


@pytest.mark.parametrize(
    ("phase", "terminal"),
    [
        (ImportPhase.IDLE, False),
        (ImportPhase.MAPPING, False),
        (ImportPhase.COMPLETE, True),
        (ImportPhase.ERROR, True),
    ],
)
def test_terminal_phases(phase: ImportPhase, terminal: bool) -> None:  # noqa: FBT001
    assert phase.is_terminal is terminal
