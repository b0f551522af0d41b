"""Repositories for the depot's domain collections.

Each repository owns one collection: its index schema, its key and
key-filter functions and its validation.  All of them delegate storage
mechanics to :class:`~depot.store.engine.DocumentStore`.

Architecture::

    entities.py     EntitiesRepository            entities
    projects.py     ProjectsRepository            project-configurations
    versions.py     ProjectVersionsRepository     versions
    generations.py  FileGenerationsRepository     file-generations
    metrics.py      QueryMetricsRepository        query-metrics
    schedules.py    SchedulesRepository           schedules
                    ScheduleInstancesRepository   schedule-instances
    artifacts.py    ArtifactFilesRepository       artifacts-files
    refresh.py      RefreshStatusRepository       artifacts-refresh-status
    _helpers.py     field names, coordinate filters and validation

Tags:
    depot, store, repository

Doc-Types:
    api-reference, architecture
"""

from depot.store.repositories.artifacts import ArtifactFilesRepository
from depot.store.repositories.entities import EntitiesRepository
from depot.store.repositories.generations import FileGenerationsRepository
from depot.store.repositories.metrics import QueryMetricsRepository
from depot.store.repositories.projects import ProjectsRepository
from depot.store.repositories.refresh import RefreshStatusRepository
from depot.store.repositories.schedules import ScheduleInstancesRepository, SchedulesRepository
from depot.store.repositories.versions import ProjectVersionsRepository

__all__ = [
    "ArtifactFilesRepository",
    "EntitiesRepository",
    "FileGenerationsRepository",
    "ProjectVersionsRepository",
    "ProjectsRepository",
    "QueryMetricsRepository",
    "RefreshStatusRepository",
    "ScheduleInstancesRepository",
    "SchedulesRepository",
]
