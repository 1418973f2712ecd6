"""Migration ledger schema and connection management.

Uses SQLAlchemy Core (not ORM) for explicit SQL control. The tables mirror
the bookkeeping a changelog-driven migration engine keeps in the target
database: one row per change set that has run, plus a single-row lock.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    inspect,
    select,
)
from sqlalchemy.engine import Connection, Engine

from baseline.config import Config
from baseline.models import ChangeSet

metadata = MetaData()

LEDGER_TABLE = "databasechangelog"
LOCK_TABLE = "databasechangeloglock"


# =============================================================================
# Ledger
# =============================================================================

databasechangelog = Table(
    LEDGER_TABLE,
    metadata,
    Column("id", String(255), nullable=False),
    Column("author", String(255), nullable=False),
    Column("filename", String(255), nullable=False),
    Column("dateexecuted", DateTime, nullable=False),
    Column("orderexecuted", Integer, nullable=False),
    Column("exectype", String(10), nullable=False, default="EXECUTED"),
    Column("description", String(255), nullable=True),
)

databasechangeloglock = Table(
    LOCK_TABLE,
    metadata,
    Column("id", Integer, primary_key=True),
    Column("locked", Boolean, nullable=False, default=False),
    Column("lockgranted", DateTime, nullable=True),
    Column("lockedby", String(255), nullable=True),
)


# =============================================================================
# Engine
# =============================================================================


def get_engine(config: Config) -> Engine:
    """Create SQLAlchemy engine from config.

    Args:
        config: Application configuration.

    Returns:
        SQLAlchemy Engine instance.
    """
    return create_engine(config.database.url, echo=config.log_level == "DEBUG")


def create_tables(engine: Engine) -> None:
    """Create the ledger tables if they don't exist."""
    metadata.create_all(engine)


# =============================================================================
# Queries
# =============================================================================


def get_ran_change_sets(conn: Connection, filename: str) -> set[tuple[str, str]]:
    """(id, author) pairs recorded as run for a changelog file.

    A database without a ledger table has run nothing.
    """
    if not inspect(conn).has_table(LEDGER_TABLE):
        return set()

    rows = conn.execute(
        select(databasechangelog.c.id, databasechangelog.c.author).where(
            databasechangelog.c.filename == filename
        )
    )
    return {(row.id, row.author) for row in rows}


def record_change_set(conn: Connection, change_set: ChangeSet) -> None:
    """Record a change set as run.

    The caller owns the transaction.
    """
    order = conn.execute(
        select(func.coalesce(func.max(databasechangelog.c.orderexecuted), 0))
    ).scalar()

    conn.execute(
        databasechangelog.insert().values(
            id=change_set.id,
            author=change_set.author,
            filename=change_set.filename,
            dateexecuted=datetime.now(timezone.utc),
            orderexecuted=order + 1,
            exectype="EXECUTED",
            description=change_set.comment,
        )
    )


def is_ledger_locked(engine: Engine) -> bool:
    """Check whether a migration engine currently holds the ledger lock."""
    with engine.connect() as conn:
        if not inspect(conn).has_table(LOCK_TABLE):
            return False
        locked = conn.execute(
            select(databasechangeloglock.c.locked).where(
                databasechangeloglock.c.locked.is_(True)
            )
        ).first()
        return locked is not None
