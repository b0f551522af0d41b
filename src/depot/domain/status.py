"""Outcome report for bulk store operations.

Tags:
    depot, domain, status

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StoreOperationResult:
    """Counts of inserted/modified/deleted rows plus collected errors."""

    inserted_count: int = 0
    modified_count: int = 0
    deleted_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def log_error(self, message: str) -> None:
        self.errors.append(message)

    def combine(self, other: StoreOperationResult) -> StoreOperationResult:
        self.inserted_count += other.inserted_count
        self.modified_count += other.modified_count
        self.deleted_count += other.deleted_count
        self.errors.extend(other.errors)
        return self
