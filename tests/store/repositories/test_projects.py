"""Tests for the projects and project-versions repositories."""

import pytest

from depot.core.errors import ConflictError, ValidationError
from depot.domain import ProjectVersionData, StoreProjectData, StoreProjectVersionData
from depot.store.repositories import ProjectsRepository, ProjectVersionsRepository


@pytest.fixture
def projects(substrate, clock) -> ProjectsRepository:
    return ProjectsRepository(substrate, clock=clock)


@pytest.fixture
def versions(substrate, clock) -> ProjectVersionsRepository:
    return ProjectVersionsRepository(substrate, clock=clock)


def version(version_id, *, artifact_id="a", excluded=False):
    return StoreProjectVersionData(
        group_id="g",
        artifact_id=artifact_id,
        version_id=version_id,
        version_data=ProjectVersionData(excluded=excluded),
    )


class TestProjects:
    def test_rebinding_coordinates_conflicts(self, projects):
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1"))

        with pytest.raises(ConflictError) as exc_info:
            projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P2"))

        assert "Different project P1" in exc_info.value.message
        assert projects.find("g", "a").project_id == "P1"

    def test_same_project_updates(self, projects):
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1"))
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1",
                                                   latest_version="1.0.0"))
        assert projects.find("g", "a").latest_version == "1.0.0"
        assert len(projects.get_all()) == 1

    def test_project_id_required(self, projects):
        with pytest.raises(ValidationError):
            projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id=""))

    def test_find_by_project_id(self, projects):
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1"))
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="b", project_id="P1"))
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="c", project_id="P2"))
        assert sorted(p.artifact_id for p in projects.find_by_project_id("P1")) == ["a", "b"]

    def test_paging(self, projects):
        for artifact_id in ("a", "b", "c"):
            projects.create_or_update(StoreProjectData(group_id="g", artifact_id=artifact_id, project_id="P"))
        assert [p.artifact_id for p in projects.get_projects(2, 2)] == ["c"]

    def test_delete(self, projects):
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1"))
        assert projects.delete("g", "a") == 1
        assert projects.find("g", "a") is None


class TestProjectVersions:
    def test_invalid_version_rejected(self, versions):
        with pytest.raises(ValidationError):
            versions.create_or_update(version("1.a.2"))

    def test_find_and_count(self, versions):
        for version_id in ("1.0.0", "1.1.0", "master-SNAPSHOT"):
            versions.create_or_update(version(version_id))
        versions.create_or_update(version("1.0.0", artifact_id="b"))

        assert len(versions.find("g", "a")) == 3
        assert versions.get_version_count("g", "a") == 3
        assert versions.get_version_count() == 4
        assert versions.find_version("g", "a", "1.1.0").version_id == "1.1.0"

    def test_find_version_requires_version(self, versions):
        with pytest.raises(ValidationError):
            versions.find_version("g", "a", "")

    def test_excluded(self, versions):
        versions.create_or_update(version("1.0.0", excluded=True))
        versions.create_or_update(version("1.1.0"))
        assert [v.version_id for v in versions.find_versions(True)] == ["1.0.0"]
        assert [v.version_id for v in versions.find_versions(False)] == ["1.1.0"]

    def test_deletes(self, versions):
        for version_id in ("1.0.0", "1.1.0"):
            versions.create_or_update(version(version_id))
        assert versions.delete_by_version_id("g", "a", "1.0.0") == 1
        assert versions.delete("g", "a") == 1
        assert versions.get_all() == []
