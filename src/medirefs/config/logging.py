"""Shared logging helpers for medirefs."""

from __future__ import annotations

import logging

# Chatty at INFO on every startup (migration checks, engine setup).
_QUIET_LOGGERS = ("alembic", "sqlalchemy.engine")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with a terse format suitable for CLI output.

    Migration and engine chatter is held back to WARNING; with ``level=DEBUG`` it shows
    at INFO, which includes the emitted SQL.
    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    quiet_level = logging.INFO if level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
