"""Tests for the ledger tables and queries."""

from sqlalchemy import create_engine

from baseline.database import (
    create_tables,
    databasechangeloglock,
    get_ran_change_sets,
    is_ledger_locked,
    record_change_set,
)
from baseline.models import ChangeSet


def test_ran_change_sets_are_scoped_to_file(engine) -> None:
    with engine.begin() as conn:
        record_change_set(conn, ChangeSet(id="a", author="alice", filename="one.yaml"))
        record_change_set(conn, ChangeSet(id="b", author="bob", filename="two.yaml"))

    with engine.connect() as conn:
        assert get_ran_change_sets(conn, "one.yaml") == {("a", "alice")}
        assert get_ran_change_sets(conn, "two.yaml") == {("b", "bob")}
        assert get_ran_change_sets(conn, "three.yaml") == set()


def test_record_change_set_numbers_executions(engine) -> None:
    with engine.begin() as conn:
        record_change_set(conn, ChangeSet(id="a", author="alice", filename="one.yaml"))
        record_change_set(conn, ChangeSet(id="b", author="alice", filename="one.yaml"))
        rows = conn.exec_driver_sql(
            "SELECT id, orderexecuted FROM databasechangelog ORDER BY orderexecuted"
        ).all()

    assert [(row[0], row[1]) for row in rows] == [("a", 1), ("b", 2)]


def test_database_without_ledger_has_run_nothing() -> None:
    bare = create_engine("sqlite://")
    with bare.connect() as conn:
        assert get_ran_change_sets(conn, "one.yaml") == set()
    assert is_ledger_locked(bare) is False


def test_ledger_lock(engine) -> None:
    assert is_ledger_locked(engine) is False

    with engine.begin() as conn:
        conn.execute(databasechangeloglock.insert().values(id=1, locked=True, lockedby="host"))
    assert is_ledger_locked(engine) is True

    with engine.begin() as conn:
        conn.execute(databasechangeloglock.update().values(locked=False))
    assert is_ledger_locked(engine) is False


def test_create_tables_is_idempotent(engine) -> None:
    create_tables(engine)
    create_tables(engine)
