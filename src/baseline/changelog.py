"""Parsing of YAML changelog files.

A changelog lists change sets in the order they are meant to run::

    databaseChangeLog:
      - changeSet:
          id: create-person-table
          author: alice
          context: core
          comment: Adds the person table
      - changeSet:
          id: seed-roles
          author: bob

Entries other than ``changeSet`` (preconditions, properties, includes) are
ignored here; they matter only to the engine that applies the changes.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from baseline.models import ChangeSet


class ChangeLogError(Exception):
    """Raised when a changelog file is missing or malformed."""


def load_changelog(path: Path, filename: str) -> list[ChangeSet]:
    """Load the change sets declared in a changelog file.

    Args:
        path: Location of the file on disk.
        filename: Identifier recorded in the ledger for this changelog.

    Returns:
        Change sets in declaration order.

    Raises:
        ChangeLogError: If the file can't be read or is malformed.
    """
    try:
        with open(path) as f:
            document = yaml.safe_load(f) or {}
    except OSError as e:
        raise ChangeLogError(f"changelog '{filename}' could not be read: {e}") from e
    except yaml.YAMLError as e:
        raise ChangeLogError(f"changelog '{filename}' is not valid YAML: {e}") from e

    if not isinstance(document, dict):
        raise ChangeLogError(f"changelog '{filename}' must be a mapping")

    entries = document.get("databaseChangeLog") or []
    if not isinstance(entries, list):
        raise ChangeLogError(f"changelog '{filename}': databaseChangeLog must be a list")

    change_sets: list[ChangeSet] = []
    seen: set[tuple[str, str]] = set()

    for position, entry in enumerate(entries):
        if not isinstance(entry, dict) or "changeSet" not in entry:
            continue

        body = entry["changeSet"] or {}
        change_set_id = body.get("id")
        author = body.get("author")
        if change_set_id is None or author is None:
            raise ChangeLogError(
                f"changelog '{filename}': change set #{position} needs an id and an author"
            )

        key = (str(change_set_id), str(author))
        if key in seen:
            raise ChangeLogError(
                f"changelog '{filename}': duplicate change set '{key[0]}' by '{key[1]}'"
            )
        seen.add(key)

        change_sets.append(
            ChangeSet(
                id=key[0],
                author=key[1],
                filename=filename,
                context=body.get("context"),
                comment=body.get("comment"),
            )
        )

    return change_sets
