"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_int_env
from .errors import ConfigurationError
from .imports import DUPLICATE_POLICY_CHOICES, ImportConfig, get_import_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DUPLICATE_POLICY_CHOICES",
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_import_config",
    "get_storage_config",
    "optional_int_env",
]
