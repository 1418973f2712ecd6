"""Pydantic models for changelog files, change sets and update status."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class ChangeLogRole(str, Enum):
    """Role a changelog file plays in building a database."""

    SCHEMA_ONLY = "schema-only"
    CORE_DATA = "core-data"
    UPDATE = "update"


# =============================================================================
# Changelogs
# =============================================================================


class ChangeLogFile(BaseModel):
    """A changelog file known to a catalog.

    ``path`` is relative to the changelog root, with forward slashes.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    version: str
    role: ChangeLogRole


class ChangeSet(BaseModel):
    """An atomic migration step declared in a changelog.

    Identified in the ledger by (id, author, filename).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    author: str
    filename: str = ""
    context: str | None = None
    comment: str | None = None

    def matches_context(self, context: str | None) -> bool:
        """Check whether this change set is active for an execution context.

        A change set without a context always runs, and an empty execution
        context activates every change set. Otherwise the comma separated
        context lists must share at least one entry.
        """
        own = _split_contexts(self.context)
        requested = _split_contexts(context)
        if not own or not requested:
            return True
        return bool(own & requested)


def _split_contexts(value: str | None) -> set[str]:
    if not value:
        return set()
    return {part.strip().lower() for part in value.split(",") if part.strip()}


# =============================================================================
# Status
# =============================================================================


class UpdateStatus(BaseModel):
    """Outcome of checking a database for owed update changelogs.

    When ``determined`` is False the migration state is unknown and
    ``update_required`` is forced to True so no caller skips updates.
    """

    baseline_version: str | None = None
    pending_files: list[str] = Field(default_factory=list)
    update_required: bool = False
    determined: bool = True
    error: str | None = None
    ledger_locked: bool = False
