"""Catalogs of available snapshot and update changelogs.

Two historical layouts are supported under a changelog root.

Subfolders (one folder per version)::

    snapshots/2.1.x/schema-only.yaml
    snapshots/2.1.x/core-data.yaml
    updates/2.2.x/update-to-latest.yaml

Flat (version embedded in the file name)::

    snapshots/schema-only/schema-only-2.1.x.yaml
    snapshots/core-data/core-data-2.1.x.yaml
    updates/update-to-latest-2.2.x.yaml

Both expose the same query surface. Listing a missing or unreadable
location yields an empty set.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from baseline.logging import get_logger
from baseline.models import ChangeLogFile, ChangeLogRole
from baseline.versions import VersionFormatError, as_dot_x, is_version

if TYPE_CHECKING:
    from baseline.config import Config

log = get_logger("catalog")

SNAPSHOTS_FOLDER = "snapshots"
UPDATES_FOLDER = "updates"
EXTENSION = ".yaml"

SCHEMA_ONLY_NAME = "schema-only"
CORE_DATA_NAME = "core-data"
UPDATE_TO_LATEST_NAME = "update-to-latest"


def list_subfolder_names(folder: Path) -> set[str]:
    """Names of the directories directly inside a folder.

    Returns an empty set if the folder is missing or cannot be read.
    """
    try:
        return {entry.name for entry in folder.iterdir() if entry.is_dir()}
    except OSError as e:
        log.debug("folder_not_listable", folder=str(folder), error=str(e))
        return set()


def list_file_names(folder: Path) -> set[str]:
    """Names of the regular files directly inside a folder.

    Returns an empty set if the folder is missing or cannot be read.
    """
    try:
        return {entry.name for entry in folder.iterdir() if entry.is_file()}
    except OSError as e:
        log.debug("folder_not_listable", folder=str(folder), error=str(e))
        return set()


class ChangeLogCatalog(ABC):
    """Query surface over the changelog files under a root folder."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    @abstractmethod
    def snapshot_versions(self) -> set[str]:
        """Versions for which a snapshot pair exists."""

    @abstractmethod
    def update_versions(self) -> set[str]:
        """Versions for which an update changelog exists."""

    @abstractmethod
    def snapshot_files(self, version: str) -> tuple[ChangeLogFile, ChangeLogFile]:
        """The (schema-only, core-data) snapshot files of a version."""

    @abstractmethod
    def update_file(self, version: str) -> ChangeLogFile:
        """The update changelog of a version."""


class SubfolderCatalog(ChangeLogCatalog):
    """Layout with one folder per version holding fixed-name files."""

    def snapshot_versions(self) -> set[str]:
        return self._versions_in(self.root / SNAPSHOTS_FOLDER)

    def update_versions(self) -> set[str]:
        return self._versions_in(self.root / UPDATES_FOLDER)

    def snapshot_files(self, version: str) -> tuple[ChangeLogFile, ChangeLogFile]:
        folder = f"{SNAPSHOTS_FOLDER}/{version}"
        return (
            ChangeLogFile(
                path=f"{folder}/{SCHEMA_ONLY_NAME}{EXTENSION}",
                version=version,
                role=ChangeLogRole.SCHEMA_ONLY,
            ),
            ChangeLogFile(
                path=f"{folder}/{CORE_DATA_NAME}{EXTENSION}",
                version=version,
                role=ChangeLogRole.CORE_DATA,
            ),
        )

    def update_file(self, version: str) -> ChangeLogFile:
        return ChangeLogFile(
            path=f"{UPDATES_FOLDER}/{version}/{UPDATE_TO_LATEST_NAME}{EXTENSION}",
            version=version,
            role=ChangeLogRole.UPDATE,
        )

    @staticmethod
    def _versions_in(folder: Path) -> set[str]:
        versions = set()

        for name in list_subfolder_names(folder):
            if is_version(name):
                versions.add(name)
            else:
                log.warning("unversioned_changelog_ignored", file=name)

        return versions


class FlatCatalog(ChangeLogCatalog):
    """Layout with the version embedded in each file name.

    Versions are reported and addressed in ``major.minor.x`` form.
    """

    def snapshot_versions(self) -> set[str]:
        schema_versions = self._versions_in(
            self.root / SNAPSHOTS_FOLDER / SCHEMA_ONLY_NAME, SCHEMA_ONLY_NAME
        )
        core_data_versions = self._versions_in(
            self.root / SNAPSHOTS_FOLDER / CORE_DATA_NAME, CORE_DATA_NAME
        )

        for version in sorted(schema_versions ^ core_data_versions):
            log.warning("incomplete_snapshot_pair", version=version)

        return schema_versions & core_data_versions

    def update_versions(self) -> set[str]:
        return self._versions_in(self.root / UPDATES_FOLDER, UPDATE_TO_LATEST_NAME)

    def snapshot_files(self, version: str) -> tuple[ChangeLogFile, ChangeLogFile]:
        dot_x = as_dot_x(version)
        return (
            ChangeLogFile(
                path=(
                    f"{SNAPSHOTS_FOLDER}/{SCHEMA_ONLY_NAME}/"
                    f"{SCHEMA_ONLY_NAME}-{dot_x}{EXTENSION}"
                ),
                version=dot_x,
                role=ChangeLogRole.SCHEMA_ONLY,
            ),
            ChangeLogFile(
                path=(
                    f"{SNAPSHOTS_FOLDER}/{CORE_DATA_NAME}/"
                    f"{CORE_DATA_NAME}-{dot_x}{EXTENSION}"
                ),
                version=dot_x,
                role=ChangeLogRole.CORE_DATA,
            ),
        )

    def update_file(self, version: str) -> ChangeLogFile:
        dot_x = as_dot_x(version)
        return ChangeLogFile(
            path=f"{UPDATES_FOLDER}/{UPDATE_TO_LATEST_NAME}-{dot_x}{EXTENSION}",
            version=dot_x,
            role=ChangeLogRole.UPDATE,
        )

    @staticmethod
    def _versions_in(folder: Path, base_name: str) -> set[str]:
        pattern = re.compile(rf"^{re.escape(base_name)}-(.+){re.escape(EXTENSION)}$")
        versions = set()

        for name in list_file_names(folder):
            match = pattern.match(name)
            if match is None:
                continue
            try:
                versions.add(as_dot_x(match.group(1)))
            except VersionFormatError:
                log.warning("unversioned_changelog_ignored", file=name)

        return versions


CATALOG_LAYOUTS: dict[str, type[ChangeLogCatalog]] = {
    "subfolders": SubfolderCatalog,
    "flat": FlatCatalog,
}


def get_catalog(config: Config) -> ChangeLogCatalog:
    """Create the catalog for the configured changelog layout."""
    catalog_cls = CATALOG_LAYOUTS[config.changelog.layout]
    return catalog_cls(config.changelog.root)
