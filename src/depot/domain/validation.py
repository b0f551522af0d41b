"""Coordinate, version and entity-path validators.

A ``versionId`` is valid when it is a release version ``x.y.z``, one of the
aliases ``latest`` / ``head``, or a branch snapshot ending in ``-SNAPSHOT``.

Tags:
    depot, validation, maven-coordinates, versions

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re

SNAPSHOT = "-SNAPSHOT"
LATEST = "latest"
HEAD = "head"
VERSION_ALIASES = frozenset({LATEST, HEAD})

VALID_VERSION_ID_TXT = (
    "a valid version string: x.y.z, <branch>-SNAPSHOT or alias: "
    "latest = last released version, head = latest unreleased revision"
)

_RELEASE_VERSION = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")
_GROUP_ID = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")
_ARTIFACT_ID = re.compile(r"^[a-z][a-z0-9_]*(-[a-z][a-z0-9_]*)*$")
_PATH_SEGMENT = r"[A-Za-z_$][\w$]*"
_PACKAGE_PATH = re.compile(rf"^{_PATH_SEGMENT}(::{_PATH_SEGMENT})*$")
_ENTITY_PATH = re.compile(rf"^{_PATH_SEGMENT}(::{_PATH_SEGMENT})+$")


def branch_snapshot(branch_name: str) -> str:
    """Snapshot version id for a branch, e.g. ``master-SNAPSHOT``."""
    return branch_name + SNAPSHOT


MASTER_SNAPSHOT = branch_snapshot("master")


def is_snapshot_version(version_id: str) -> bool:
    return version_id.endswith(SNAPSHOT) and len(version_id) > len(SNAPSHOT)


def is_valid_release_version(version_id: str) -> bool:
    return _RELEASE_VERSION.match(version_id) is not None


def is_version_alias(version_id: str) -> bool:
    return version_id in VERSION_ALIASES


def is_valid_version(version_id: str | None) -> bool:
    """True iff ``version_id`` is ``x.y.z``, an alias, or a ``-SNAPSHOT`` branch."""
    if not version_id:
        return False
    return (
        is_snapshot_version(version_id)
        or is_valid_release_version(version_id)
        or is_version_alias(version_id)
    )


def is_valid_group_id(group_id: str | None) -> bool:
    return bool(group_id) and _GROUP_ID.match(group_id) is not None


def is_valid_artifact_id(artifact_id: str | None) -> bool:
    return bool(artifact_id) and _ARTIFACT_ID.match(artifact_id) is not None


def is_valid_entity_path(path: str | None) -> bool:
    """Entity paths are ``package::Name`` with at least one package segment."""
    return bool(path) and _ENTITY_PATH.match(path) is not None


def is_valid_package_path(package: str | None) -> bool:
    return bool(package) and _PACKAGE_PATH.match(package) is not None


def coordinate_errors(group_id: str | None, artifact_id: str | None, version_id: str | None = None,
                      *, check_version: bool = True) -> list[str]:
    """Collect human-readable coordinate violations (empty when valid)."""
    errors: list[str] = []
    if not is_valid_group_id(group_id):
        errors.append(f"invalid groupId [{group_id}]")
    if not is_valid_artifact_id(artifact_id):
        errors.append(f"invalid artifactId [{artifact_id}]")
    if check_version and not is_valid_version(version_id):
        errors.append(f"invalid versionId [{version_id}], expected {VALID_VERSION_ID_TXT}")
    return errors
