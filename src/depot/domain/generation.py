"""Generated file records.

Tags:
    depot, domain, file-generations

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass

from depot.domain.base import Record, StoredRecord, nested


@dataclass(kw_only=True, eq=False)
class FileGeneration(Record):
    path: str
    content: str | None = None


@dataclass(kw_only=True, eq=False)
class StoredFileGeneration(StoredRecord):
    """A file produced by a generation element of an artifact version."""

    group_id: str
    artifact_id: str
    version_id: str
    path: str | None = None
    type: str | None = None
    file: FileGeneration = nested(FileGeneration)
