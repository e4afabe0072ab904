"""Import phases, progress snapshots and cooperative cancellation."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class ImportPhase(StrEnum):
    IDLE = "idle"
    PARSING = "parsing"
    MAPPING = "mapping"
    IMPORTING = "importing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportPhase.COMPLETE, ImportPhase.ERROR)


class AwaitingInput(StrEnum):
    MAPPING = "mapping"
    RESOLUTION = "resolution"


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    phase: ImportPhase
    current: int
    total: int
    percentage: float
    message: str
    current_record: str | None = None


type ProgressCallback = Callable[[ProgressSnapshot], None]


class ProgressTracker:
    """Builds snapshots whose percentage never decreases."""

    def __init__(self, on_progress: ProgressCallback | None = None) -> None:
        self._on_progress = on_progress
        self._percentage = 0.0
        self.last: ProgressSnapshot | None = None

    def emit(
        self,
        phase: ImportPhase,
        message: str,
        *,
        current: int = 0,
        total: int = 0,
        percentage: float | None = None,
        current_record: str | None = None,
    ) -> ProgressSnapshot:
        if percentage is None:
            percentage = 100.0 * current / total if total else 0.0
        self._percentage = max(self._percentage, min(percentage, 100.0))
        snapshot = ProgressSnapshot(
            phase=phase,
            current=current,
            total=total,
            percentage=self._percentage,
            message=message,
            current_record=current_record,
        )
        self.last = snapshot
        if self._on_progress is not None:
            self._on_progress(snapshot)
        return snapshot


class CancellationToken:
    """Thread-safe flag checked between record writes."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
