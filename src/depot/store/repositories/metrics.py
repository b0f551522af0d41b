"""Query metrics repository: append-only observations of version queries.

Every :meth:`QueryMetricsRepository.record` writes a new row keyed
``query-metrics:<g>:<a>:<v>:<suffix>`` where the suffix is a
high-resolution timestamp, so concurrent observations never collide.
:meth:`~QueryMetricsRepository.consolidate` later collapses the history of
one coordinate down to its most recent observation.

Tags:
    depot, store, repository, metrics, consolidation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.logging import get_logger
from depot.core.timestamps import Clock, key_suffix, now_millis
from depot.domain.metrics import VersionQueryMetric
from depot.domain.project import ProjectVersion
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder, format_expression
from depot.store.repositories._helpers import (
    ARTIFACT_ID,
    GROUP_ID,
    VERSION_ID,
    coordinate_fields,
    require_valid_coordinates,
    version_filter,
)
from depot.store.substrate import Aggregation, DocumentSubstrate, IndexField, IndexSchema, compound_key

logger = get_logger(__name__)

COLLECTION = "query-metrics"
LAST_QUERY_TIME = "lastQueryTime"
COORDINATE = "coordinate"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(*coordinate_fields(), IndexField.numeric(LAST_QUERY_TIME)),
)


class QueryMetricsRepository:
    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._clock = clock
        self._store: DocumentStore[VersionQueryMetric] = DocumentStore(
            substrate, SCHEMA, VersionQueryMetric, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: VersionQueryMetric) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id, key_suffix())

    def get_key_filter(self, record: VersionQueryMetric) -> str:
        return version_filter(record.group_id, record.artifact_id, record.version_id).build()

    def validate_new_data(self, record: VersionQueryMetric) -> None:
        require_valid_coordinates(record.group_id, record.artifact_id, record.version_id)

    def record(self, metric: VersionQueryMetric) -> VersionQueryMetric:
        """Append one observation."""
        return self._store.insert(metric, unique=False)

    def record_query(self, group_id: str, artifact_id: str, version_id: str) -> VersionQueryMetric:
        return self.record(VersionQueryMetric(group_id=group_id, artifact_id=artifact_id, version_id=version_id,
                                              last_query_time=self._clock()))

    def get(self, group_id: str, artifact_id: str, version_id: str) -> list[VersionQueryMetric]:
        return self._store.find(version_filter(group_id, artifact_id, version_id).build())

    def get_all(self) -> list[VersionQueryMetric]:
        return self._store.find_all()

    def consolidate(self, metric: VersionQueryMetric) -> int:
        """Delete observations of ``metric``'s coordinate strictly older than it."""
        query = version_filter(metric.group_id, metric.artifact_id, metric.version_id).less_than(
            LAST_QUERY_TIME, metric.last_query_time
        )
        deleted = self._store.delete_by_query(query.build())
        logger.debug("metrics_consolidated", group_id=metric.group_id, artifact_id=metric.artifact_id,
                     version_id=metric.version_id, deleted=deleted)
        return deleted

    def find_metrics_before(self, millis: int) -> list[VersionQueryMetric]:
        """Observations with ``lastQueryTime <= millis``."""
        return self._store.find(QueryBuilder().less_than_or_equal(LAST_QUERY_TIME, millis).build())

    def get_all_stored_entities_coordinates(self) -> list[ProjectVersion]:
        """Distinct coordinates that have at least one observation."""
        aggregation = (
            Aggregation()
            .apply(COORDINATE, format_expression(GROUP_ID, ARTIFACT_ID, VERSION_ID))
            .group(COORDINATE)
        )
        versions = []
        for row in self._store.aggregate(aggregation):
            value = row.get(COORDINATE)
            if not value:
                continue
            group_id, artifact_id, version_id = str(value).split(":", 2)
            versions.append(ProjectVersion(group_id=group_id, artifact_id=artifact_id, version_id=version_id))
        return versions
