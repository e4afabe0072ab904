"""Catalog import defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import optional_int_env
from .errors import ConfigurationError

DEFAULT_PREVIEW_ROWS: Final[int] = 5
DUPLICATE_POLICY_CHOICES: Final[tuple[str, ...]] = ("skip-all", "update-all", "decide-each")


@dataclass(frozen=True, slots=True)
class ImportConfig:
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    # None means "ask the caller" once duplicates are found
    duplicate_policy: str | None = None


def get_import_config() -> ImportConfig:
    preview_rows = optional_int_env("MEDIREFS_PREVIEW_ROWS", DEFAULT_PREVIEW_ROWS)
    if preview_rows < 0:
        raise ConfigurationError("MEDIREFS_PREVIEW_ROWS must be non-negative")

    policy = os.getenv("MEDIREFS_DUPLICATE_POLICY")
    if policy is not None:
        policy = policy.strip().lower() or None
    if policy is not None and policy not in DUPLICATE_POLICY_CHOICES:
        choices = ", ".join(DUPLICATE_POLICY_CHOICES)
        raise ConfigurationError(
            f"MEDIREFS_DUPLICATE_POLICY must be one of {choices}, got {policy!r}"
        )
    return ImportConfig(preview_rows=preview_rows, duplicate_policy=policy)
