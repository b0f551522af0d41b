"""Tests for index and collection administration."""

import pytest

from depot.core.errors import ConfigError, StoreError, ValidationError
from depot.domain import StoreProjectData
from depot.store.admin import AdminStore, CollectionRegistry, default_registry, store_registry
from depot.store.repositories import EntitiesRepository, ProjectsRepository
from depot.store.substrate import IndexField, IndexSchema


@pytest.fixture
def admin(substrate) -> AdminStore:
    return AdminStore(substrate, default_registry())


class TestCollectionRegistry:
    def test_store_registry(self):
        names = store_registry().names()
        assert len(names) == 9
        assert "entities" in names
        assert "notifications" not in names

    def test_default_registry_adds_notifications(self):
        registry = default_registry()
        assert len(registry) == 11
        assert "notifications" in registry
        assert "notifications_queue" in registry

    def test_reregistering_same_schema(self):
        registry = CollectionRegistry([EntitiesRepository.SCHEMA])
        registry.register(EntitiesRepository.SCHEMA)
        assert len(registry) == 1

    def test_conflicting_schema(self):
        registry = CollectionRegistry([EntitiesRepository.SCHEMA])
        with pytest.raises(ConfigError):
            registry.register(IndexSchema(collection="entities", fields=(IndexField.tag("x"),)))

    def test_unknown_collection(self):
        with pytest.raises(ValidationError):
            CollectionRegistry().schema("nope")


class TestAdminStore:
    def test_create_indexes_idempotent(self, admin, substrate):
        first = admin.create_indexes()
        second = admin.create_indexes()
        assert first == second
        assert len(substrate.list_indexes()) == 11

    def test_get_all_collections(self, admin):
        assert admin.get_all_collections() == admin.registry.names()

    def test_delete_index_keeps_documents(self, admin, substrate):
        projects = ProjectsRepository(substrate)
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1"))

        assert admin.delete_index("project-configurations") == "project-configurations:index"
        assert "project-configurations:index" not in admin.get_all_indexes()
        assert substrate.scan_keys("project-configurations:") == ["project-configurations:g:a"]

        admin.create_indexes()
        assert projects.find("g", "a").project_id == "P1"

    def test_delete_missing_index(self, admin):
        with pytest.raises(StoreError):
            admin.delete_index("entities")

    def test_delete_collection(self, admin, substrate):
        projects = ProjectsRepository(substrate)
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="a", project_id="P1"))
        projects.create_or_update(StoreProjectData(group_id="g", artifact_id="b", project_id="P2"))

        assert admin.delete_collection("project-configurations") == 2
        assert projects.get_all() == []

    def test_unknown_collection_rejected(self, admin):
        with pytest.raises(ValidationError):
            admin.delete_collection("nope")
