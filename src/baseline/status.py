"""Update check for callers that decide whether a database needs updating.

Wraps baseline resolution and the owed-update computation into a single
:class:`UpdateStatus`. A failure of either step is reported, never hidden:
the status is marked undetermined and an update is flagged as required.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from baseline.database import is_ledger_locked
from baseline.detective import BaselineError, ChangeLogDetective
from baseline.logging import get_logger
from baseline.models import UpdateStatus
from baseline.provider import MigrationProvider, ProviderError
from baseline.versions import VersionFormatError

log = get_logger("status")


def check_update_status(
    detective: ChangeLogDetective,
    provider: MigrationProvider,
    context: str | None,
    engine: Engine | None = None,
) -> UpdateStatus:
    """Determine whether the database still needs update changelogs.

    Args:
        detective: Resolver over the changelog catalog.
        provider: Opens migration sessions against the live database.
        context: Execution context used to select active change sets.
        engine: When given, the ledger lock is reported as well.

    Returns:
        The update status. Never raises for resolution, provider or ledger failures.
    """
    ledger_locked = False

    try:
        if engine is not None:
            ledger_locked = is_ledger_locked(engine)
            if ledger_locked:
                log.warning("ledger_locked")

        baseline_version = detective.resolve_baseline(context, provider)
        pending = detective.pending_update_files(baseline_version, context, provider)

    except (BaselineError, ProviderError, VersionFormatError, SQLAlchemyError) as e:
        log.error("update_status_undetermined", error=str(e))
        return UpdateStatus(
            update_required=True,
            determined=False,
            error=str(e),
            ledger_locked=ledger_locked,
        )

    return UpdateStatus(
        baseline_version=baseline_version,
        pending_files=pending,
        update_required=bool(pending),
        ledger_locked=ledger_locked,
    )
