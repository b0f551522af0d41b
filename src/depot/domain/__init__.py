"""Depot domain records and validators."""

from depot.domain.artifacts import ArtifactFile, RefreshStatus
from depot.domain.base import Record, StoredRecord
from depot.domain.entity import EntityDefinition, StoredEntity, StoredEntityOverview
from depot.domain.generation import FileGeneration, StoredFileGeneration
from depot.domain.metrics import VersionQueryMetric
from depot.domain.notifications import MetadataEventStatus, MetadataNotification
from depot.domain.project import (
    ProjectVersion,
    ProjectVersionData,
    StoreProjectData,
    StoreProjectVersionData,
)
from depot.domain.schedules import ScheduleInfo, ScheduleInstance
from depot.domain.status import StoreOperationResult

__all__ = [
    "ArtifactFile",
    "EntityDefinition",
    "FileGeneration",
    "MetadataEventStatus",
    "MetadataNotification",
    "ProjectVersion",
    "ProjectVersionData",
    "Record",
    "RefreshStatus",
    "ScheduleInfo",
    "ScheduleInstance",
    "StoreOperationResult",
    "StoreProjectData",
    "StoreProjectVersionData",
    "StoredEntity",
    "StoredEntityOverview",
    "StoredFileGeneration",
    "StoredRecord",
    "VersionQueryMetric",
]
