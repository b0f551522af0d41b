"""Depot core -- errors, logging, settings and timestamp primitives.

Architecture::

    errors.py       DepotError taxonomy (validation, conflict, consistency, storage, config)
    logging.py      structlog configuration and get_logger
    settings.py     DepotSettings (pydantic-settings, DEPOT_* env)
    timestamps.py   epoch-millis helpers and unique key suffixes
"""

from depot.core.errors import (
    ConfigError,
    ConflictError,
    ConsistencyError,
    DepotError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ConfigError",
    "ConflictError",
    "ConsistencyError",
    "DepotError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "StoreError",
    "ValidationError",
]
