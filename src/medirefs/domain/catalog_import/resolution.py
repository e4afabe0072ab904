"""Turn duplicate buckets into the final write list."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from medirefs.domain.model import ResolutionPolicy

if TYPE_CHECKING:
    from collections.abc import Callable

    from .duplicates import DuplicateMatch, DuplicateReport
    from .normalization import Candidate

log = getLogger(__name__)

type DecideCallback = Callable[[DuplicateMatch], bool]
"""Per-duplicate decision; ``True`` writes the candidate, ``False`` skips it."""


@dataclass(slots=True)
class Resolution:
    writes: list[Candidate] = field(default_factory=list)
    skipped: list[DuplicateMatch] = field(default_factory=list)


def resolve_conflicts(
    report: DuplicateReport,
    policy: ResolutionPolicy,
    decide: DecideCallback | None = None,
) -> Resolution:
    """Apply ``policy`` to ``report``; both lists keep source order.

    Duplicates by code are written under the candidate's own identifier. Without a
    ``decide`` callback ``decide-each`` behaves like ``update-all``.
    """

    if not report.has_duplicates:
        return Resolution(writes=list(report))

    if policy is ResolutionPolicy.DECIDE_EACH and decide is None:
        log.info("No decision callback for decide-each; updating all duplicates")
        policy = ResolutionPolicy.UPDATE_ALL

    accepted: set[int] = {id(candidate) for candidate in report.new}
    skipped: list[DuplicateMatch] = []
    for match in report.duplicates:
        if policy is ResolutionPolicy.UPDATE_ALL:
            write = True
        elif policy is ResolutionPolicy.SKIP_ALL:
            write = False
        else:
            assert decide is not None
            write = bool(decide(match))
        if write:
            accepted.add(id(match.candidate))
        else:
            skipped.append(match)

    writes = [candidate for candidate in report if id(candidate) in accepted]
    return Resolution(writes=writes, skipped=skipped)
