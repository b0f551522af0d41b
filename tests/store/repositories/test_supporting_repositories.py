"""Tests for generations, schedules, artifact files and refresh markers."""

import pytest

from depot.core.errors import ConflictError, ValidationError
from depot.domain import (
    ArtifactFile,
    FileGeneration,
    RefreshStatus,
    ScheduleInfo,
    ScheduleInstance,
    StoredFileGeneration,
)
from depot.store.repositories import (
    ArtifactFilesRepository,
    FileGenerationsRepository,
    RefreshStatusRepository,
    ScheduleInstancesRepository,
    SchedulesRepository,
)


class TestFileGenerations:
    @pytest.fixture
    def generations(self, substrate, clock) -> FileGenerationsRepository:
        repo = FileGenerationsRepository(substrate, clock=clock)
        for path, element, kind in (
            ("/model/Person.avsc", "model::PersonAvro", "avro"),
            ("/model/Firm.avsc", "model::FirmAvro", "avro"),
            ("/model/person.proto", "model::PersonProto", "protobuf"),
        ):
            repo.create_or_update(StoredFileGeneration(
                group_id="g", artifact_id="a", version_id="1.0.0",
                path=element, type=kind, file=FileGeneration(path=path, content="{}"),
            ))
        return repo

    def test_lookups(self, generations):
        assert len(generations.find("g", "a", "1.0.0")) == 3
        assert len(generations.find_by_type("g", "a", "1.0.0", "avro")) == 2
        assert [g.type for g in generations.find_by_element_path("g", "a", "1.0.0", "model::PersonProto")] == ["protobuf"]
        found = generations.find_by_file_path("g", "a", "1.0.0", "/model/Firm.avsc")
        assert found.path == "model::FirmAvro"

    def test_update_same_file(self, generations):
        generations.create_or_update(StoredFileGeneration(
            group_id="g", artifact_id="a", version_id="1.0.0",
            path="model::FirmAvro", type="avro", file=FileGeneration(path="/model/Firm.avsc", content="{\"v\": 2}"),
        ))
        assert len(generations.get_all()) == 3
        assert generations.find_by_file_path("g", "a", "1.0.0", "/model/Firm.avsc").file.content == "{\"v\": 2}"

    def test_delete_version(self, generations):
        assert generations.delete("g", "a", "1.0.0") == 3


class TestSchedules:
    def test_create_get_delete(self, substrate, clock):
        schedules = SchedulesRepository(substrate, clock=clock)
        schedules.create_or_update(ScheduleInfo(name="refresh-all", frequency=3600))
        schedules.create_or_update(ScheduleInfo(name="refresh-all", frequency=60, disabled=True))

        stored = schedules.get("refresh-all")
        assert stored.disabled
        assert stored.frequency == 60
        assert len(schedules.get_all()) == 1
        assert schedules.delete("refresh-all") == 1
        assert schedules.get("refresh-all") is None

    def test_name_required(self, substrate):
        with pytest.raises(ValidationError):
            SchedulesRepository(substrate).create_or_update(ScheduleInfo(name=""))

    def test_instances(self, substrate, clock):
        instances = ScheduleInstancesRepository(substrate, clock=clock)
        first = instances.insert(ScheduleInstance(schedule="refresh-all", expected_run=1))
        instances.insert(ScheduleInstance(schedule="refresh-all", expected_run=2))
        instances.insert(ScheduleInstance(schedule="purge", expected_run=3))

        assert instances.insert(None) is None
        assert first.id.startswith("schedule-instances:refresh-all:")
        assert len(instances.find("refresh-all")) == 2
        assert instances.delete(first.id) == 1
        assert len(instances.get_all()) == 2


class TestArtifactFiles:
    def test_create_find_delete(self, substrate, clock):
        files = ArtifactFilesRepository(substrate, clock=clock)
        files.create_or_update(ArtifactFile(path="com/acme/lib/1.0.0/lib-1.0.0.jar", checksum="abc"))
        files.create_or_update(ArtifactFile(path="com/acme/lib/1.0.0/lib-1.0.0.jar", checksum="def"))

        assert files.find("com/acme/lib/1.0.0/lib-1.0.0.jar").checksum == "def"
        assert len(files.get_all()) == 1
        assert files.delete("com/acme/lib/1.0.0/lib-1.0.0.jar") == 1


class TestRefreshStatus:
    @pytest.fixture
    def refresh(self, substrate, clock) -> RefreshStatusRepository:
        return RefreshStatusRepository(substrate, clock=clock)

    def test_concurrent_refresh_conflicts(self, refresh):
        refresh.insert(RefreshStatus(group_id="g", artifact_id="a", version_id="1.0.0", event_id="e1"))
        with pytest.raises(ConflictError):
            refresh.insert(RefreshStatus(group_id="g", artifact_id="a", version_id="1.0.0", event_id="e2"))
        assert refresh.get("g", "a", "1.0.0").event_id == "e1"

    def test_find(self, refresh):
        refresh.insert(RefreshStatus(group_id="g", artifact_id="a", version_id="1.0.0", event_id="e1"))
        refresh.insert(RefreshStatus(group_id="g", artifact_id="b", version_id="1.0.0", event_id="e2",
                                     parent_event_id="e1"))
        refresh.insert(RefreshStatus(group_id="h", artifact_id="a", version_id="1.0.0", event_id="e3"))

        assert len(refresh.find(group_id="g")) == 2
        assert [s.event_id for s in refresh.find(parent_event_id="e1")] == ["e2"]
        assert len(refresh.find()) == 3

    def test_delete(self, refresh):
        refresh.insert(RefreshStatus(group_id="g", artifact_id="a", version_id="1.0.0"))
        assert refresh.delete("g", "a", "1.0.0") == 1
        assert refresh.get_all() == []
