"""
Structured error types for the metadata depot.

Every failure raised by the store and queue layers is a :class:`DepotError`
subclass carrying a category, structured context and an optional chained
cause, so callers can decide how to react without parsing messages.

Manifesto:
    - **Typed taxonomy:** validation, conflict, consistency, storage, config
    - **Surface locally:** errors go to the immediate caller, no retries here
    - **Rich context:** keys, collections and coordinates travel with the error
    - **Error chaining:** substrate exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                         DepotError                              │
        │                (category, context, cause)                       │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  ValidationError     StoreError          ConsistencyError       │
        │  (VALIDATION)        (STORAGE)           (CONSISTENCY)          │
        │                          │                                      │
        │                      ConflictError       ConfigError            │
        │                      (CONFLICT)          (CONFIG)               │
        │                                              │                  │
        │                                          InvalidConfigError     │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = StoreError("write rejected", key="entities:g:a:1.0.0:x::Y")
    >>> error.key
    'entities:g:a:1.0.0:x::Y'
    >>> error.category.value
    'STORAGE'

Guardrails:
    ❌ DON'T: Raise a bare Exception from a repository
    ✅ DO: Pick the DepotError subclass matching the taxonomy

    ❌ DON'T: Treat a missing row as an error
    ✅ DO: Return ``None`` and let the caller branch

Tags:
    error-handling, exception-hierarchy, error-context, depot-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    CONSISTENCY = "CONSISTENCY"
    STORAGE = "STORAGE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Where in the store an error happened.

    ``metadata`` holds anything that is not one of the named slots, such as
    coordinates or a worker name.
    """

    collection: str | None = None
    key: str | None = None
    index: str | None = None
    query: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        slots = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "metadata"}
        return {**{name: value for name, value in slots.items() if value is not None}, **self.metadata}


class DepotError(Exception):
    """Root of the depot error taxonomy.

    Subclasses only pick a ``default_category``.  A ``cause`` is kept both as
    an attribute and as ``__cause__`` so tracebacks show the substrate error.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        self.__cause__ = cause

    def with_context(self, **values: Any) -> DepotError:
        """Fill context slots (unknown names go to ``metadata``); returns ``self`` for ``raise``."""
        slots = {f.name for f in fields(self.context)} - {"metadata"}
        for name, value in values.items():
            if name in slots:
                setattr(self.context, name, value)
            else:
                self.context.metadata[name] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Log-friendly view: type, category, message plus context and cause when present."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
        }
        if context := self.context.to_dict():
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DepotError):
    """
    Invalid input rejected before any write.

    Raised for bad coordinates, version strings, entity paths and malformed
    package/classifier filters.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        errors: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.errors:
            result["errors"] = list(self.errors)
        return result


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StoreError(DepotError):
    """Substrate failure or rejected write; carries the attempted key."""

    default_category = ErrorCategory.STORAGE

    def __init__(self, message: str, *, key: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.key = key
        if key is not None:
            self.context.key = key


class ConflictError(StoreError):
    """Duplicate unique key write or an attempt to rebind a unique coordinate."""

    default_category = ErrorCategory.CONFLICT


class ConsistencyError(DepotError):
    """
    A unique-key filter matched more than one row.

    Signals a corrupted index or a key-filter bug. Never resolved silently.
    """

    default_category = ErrorCategory.CONSISTENCY


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DepotError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DepotError",
    "ValidationError",
    "StoreError",
    "ConflictError",
    "ConsistencyError",
    "ConfigError",
    "InvalidConfigError",
]
