"""Combinatorics over the changelog catalog.

Answers which update changelogs follow a given version and which
snapshot/update combinations could have built a database. Everything here
is computed from the catalog alone; no database is touched.
"""

from __future__ import annotations

from baseline.catalog import ChangeLogCatalog
from baseline.models import ChangeLogRole
from baseline.versions import as_dot_x, compare_versions, version_key


class UnknownVersionError(ValueError):
    """Raised when a version is not among the catalog's update versions."""


class ChangeLogVersionFinder:
    """Provides information about available snapshot and update changelogs."""

    def __init__(self, catalog: ChangeLogCatalog) -> None:
        self.catalog = catalog

    def snapshot_versions(self) -> set[str]:
        return self.catalog.snapshot_versions()

    def update_versions(self) -> set[str]:
        return self.catalog.update_versions()

    def update_versions_greater_than(self, version: str) -> list[str]:
        """Update versions strictly newer than ``version``, ascending.

        Raises:
            VersionFormatError: If ``version`` has no ``major.minor.`` prefix.
        """
        version_as_dot_x = as_dot_x(version)
        return sorted(
            (v for v in self.update_versions() if compare_versions(v, version_as_dot_x) > 0),
            key=version_key,
        )

    def update_versions_equal_or_greater_than(self, version: str) -> list[str]:
        """Update versions from ``version`` onwards, ascending.

        Raises:
            UnknownVersionError: If ``version`` is not a known update version.
        """
        version_as_dot_x = as_dot_x(version)

        if version_as_dot_x not in self.update_versions():
            raise UnknownVersionError(
                f"update version '{version_as_dot_x}' does not exist"
            )

        return [version_as_dot_x, *self.update_versions_greater_than(version_as_dot_x)]

    def update_file_names(self, versions: list[str]) -> list[str]:
        return [self.catalog.update_file(version).path for version in versions]

    def snapshot_file_names(self, version: str) -> list[str]:
        """Snapshot paths of a version: schema-only first, then core data."""
        schema_only, core_data = self.catalog.snapshot_files(version)
        return [schema_only.path, core_data.path]

    def change_log_combinations(self) -> dict[str, list[str]]:
        """Every snapshot version with its snapshot pair and all newer updates."""
        return {
            version: self.snapshot_file_names(version)
            + self.update_file_names(self.update_versions_greater_than(version))
            for version in self.snapshot_versions()
        }

    def snapshot_combinations(self) -> dict[str, list[str]]:
        """Every snapshot version with its snapshot pair only."""
        return {
            version: self.snapshot_file_names(version)
            for version in self.snapshot_versions()
        }

    def latest_snapshot_version(self) -> str | None:
        versions = self.snapshot_versions()
        if not versions:
            return None
        return max(versions, key=version_key)

    def latest_snapshot_file_name(self, role: ChangeLogRole) -> str | None:
        """Path of the newest snapshot file for a role.

        Raises:
            ValueError: If ``role`` is not a snapshot role.
        """
        if role == ChangeLogRole.UPDATE:
            raise ValueError("update changelogs are not snapshot files")

        version = self.latest_snapshot_version()
        if version is None:
            return None

        schema_only, core_data = self.catalog.snapshot_files(version)
        return schema_only.path if role == ChangeLogRole.SCHEMA_ONLY else core_data.path
