"""Figures out which snapshot initialised a database and which updates it still needs.

A database built from a snapshot has every change set of that snapshot's
schema-only and core-data changelogs recorded in its ledger. Candidate
snapshots are tried newest first; the first one with no unrun change sets
is the baseline. Update changelogs newer than the baseline that still hold
unrun change sets are what the database is owed.

Sessions are opened one at a time and released before the next file is
checked, so the ledger never sees concurrent readers from here.
"""

from __future__ import annotations

from baseline.finder import ChangeLogVersionFinder
from baseline.logging import get_logger
from baseline.models import ChangeSet
from baseline.provider import MigrationProvider
from baseline.versions import version_key

log = get_logger("detective")

# Housekeeping toggles that appear in every snapshot and never count as work.
VINTAGE_AUTHOR = "ben"
VINTAGE_CHANGE_SET_IDS = frozenset({"disable-foreign-key-checks", "enable-foreign-key-checks"})


class BaselineError(RuntimeError):
    """The initialisation snapshot of a database could not be determined."""


class NoSnapshotCandidatesError(BaselineError):
    """The catalog holds no snapshot versions to test."""


class UnidentifiableBaselineError(BaselineError):
    """No snapshot version matches the database's ledger."""


def is_vintage_change_set(change_set: ChangeSet) -> bool:
    return (
        change_set.author == VINTAGE_AUTHOR
        and change_set.id in VINTAGE_CHANGE_SET_IDS
    )


def exclude_vintage_change_sets(change_sets: list[ChangeSet]) -> list[ChangeSet]:
    return [change_set for change_set in change_sets if not is_vintage_change_set(change_set)]


def snapshot_versions_descending(combinations: dict[str, list[str]]) -> list[str]:
    return sorted(combinations, key=version_key, reverse=True)


class ChangeLogDetective:
    """Resolves the baseline snapshot and the owed update changelogs."""

    def __init__(self, finder: ChangeLogVersionFinder) -> None:
        self.finder = finder

    def resolve_baseline(self, context: str | None, provider: MigrationProvider) -> str:
        """Return the snapshot version that was used to initialise the database.

        Args:
            context: Execution context used to select active change sets.
            provider: Opens migration sessions against the live database.

        Returns:
            The snapshot version, e.g. ``"2.1.x"``.

        Raises:
            NoSnapshotCandidatesError: If the catalog has no snapshots.
            UnidentifiableBaselineError: If no snapshot matches the ledger.
            ProviderError: If a session can't be opened or queried.
        """
        snapshot_combinations = self.finder.snapshot_combinations()

        if not snapshot_combinations:
            raise NoSnapshotCandidatesError(
                "identifying the snapshot version that initialised the database failed "
                "as no candidate snapshots were found"
            )

        for version in snapshot_versions_descending(snapshot_combinations):
            log.info("checking_snapshot_version", version=version)

            unrun_count = 0
            for filename in snapshot_combinations[version]:
                unrun = exclude_vintage_change_sets(
                    self._unrun_change_sets(filename, context, provider)
                )
                unrun_count += len(unrun)

            if unrun_count == 0:
                log.info("baseline_resolved", version=version)
                return version

        raise UnidentifiableBaselineError(
            "identifying the snapshot version that initialised the database failed "
            "as no candidate snapshot resulted in zero un-run change sets"
        )

    def pending_update_files(
        self,
        baseline_version: str,
        context: str | None,
        provider: MigrationProvider,
    ) -> list[str]:
        """Return update changelogs that still contain unrun change sets.

        Args:
            baseline_version: Snapshot version the database was initialised from.
            context: Execution context used to select active change sets.
            provider: Opens migration sessions against the live database.

        Returns:
            Update file names in ascending version order.

        Raises:
            ProviderError: If a session can't be opened or queried.
        """
        update_versions = self.finder.update_versions_greater_than(baseline_version)

        pending = []
        for filename in self.finder.update_file_names(update_versions):
            if self._unrun_change_sets(filename, context, provider):
                pending.append(filename)

        log.info("pending_updates_found", baseline=baseline_version, count=len(pending))
        return pending

    @staticmethod
    def _unrun_change_sets(
        filename: str,
        context: str | None,
        provider: MigrationProvider,
    ) -> list[ChangeSet]:
        with provider.open(filename) as session:
            unrun = session.unrun_change_sets(context)
        log.info("unrun_change_sets", file=filename, count=len(unrun))
        return unrun
