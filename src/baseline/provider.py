"""Access to the migration engine's view of a live database.

The detective only needs one question answered per changelog file: which of
its change sets has the database not recorded as run? Anything that can open
a session on a changelog and answer that satisfies :class:`MigrationProvider`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Protocol

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from baseline.changelog import ChangeLogError, load_changelog
from baseline.database import get_ran_change_sets
from baseline.logging import get_logger
from baseline.models import ChangeSet

log = get_logger("provider")


class ProviderError(Exception):
    """A migration session could not be opened or queried."""


class MigrationSession(Protocol):
    """A migration engine session bound to one changelog file."""

    def unrun_change_sets(self, context: str | None) -> list[ChangeSet]:
        """Change sets of the changelog not yet recorded as run, in order.

        Raises:
            ProviderError: If the ledger can't be queried.
        """
        ...


class MigrationProvider(Protocol):
    """Opens migration sessions against the live database.

    Implementations report every open or query failure as
    :class:`ProviderError`.
    """

    def open(self, filename: str) -> AbstractContextManager[MigrationSession]:
        """Open a session for a changelog; released when the context exits.

        Raises:
            ProviderError: If the changelog or the database can't be opened.
        """
        ...


class LedgerSession:
    """Session reading the ledger over a single connection."""

    def __init__(self, conn: Connection, filename: str, change_sets: list[ChangeSet]) -> None:
        self.conn = conn
        self.filename = filename
        self.change_sets = change_sets

    def unrun_change_sets(self, context: str | None) -> list[ChangeSet]:
        try:
            ran = get_ran_change_sets(self.conn, self.filename)
        except SQLAlchemyError as e:
            raise ProviderError(f"ledger query for '{self.filename}' failed: {e}") from e

        return [
            change_set
            for change_set in self.change_sets
            if change_set.matches_context(context)
            and (change_set.id, change_set.author) not in ran
        ]


class LedgerMigrationProvider:
    """Provider backed by YAML changelogs and the database's ledger tables.

    Args:
        engine: Engine for the live database.
        changelog_root: Folder that changelog filenames are relative to.
    """

    def __init__(self, engine: Engine, changelog_root: Path | str) -> None:
        self.engine = engine
        self.changelog_root = Path(changelog_root)

    @contextmanager
    def open(self, filename: str) -> Iterator[LedgerSession]:
        try:
            change_sets = load_changelog(self.changelog_root / filename, filename)
        except ChangeLogError as e:
            raise ProviderError(str(e)) from e

        try:
            conn = self.engine.connect()
        except SQLAlchemyError as e:
            raise ProviderError(f"database connection for '{filename}' failed: {e}") from e

        log.debug("session_opened", file=filename, change_sets=len(change_sets))

        with conn:
            try:
                yield LedgerSession(conn, filename, change_sets)
            finally:
                # Read-only; discard the implicit transaction.
                conn.rollback()
                log.debug("session_released", file=filename)
