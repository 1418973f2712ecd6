"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from contextlib import contextmanager
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from baseline.config import ChangeLogConfig, Config, DatabaseConfig
from baseline.database import create_tables, get_engine
from baseline.models import ChangeSet
from baseline.provider import ProviderError

# Change sets declared by each file of the standard changelog tree.
SNAPSHOT_1_9_SCHEMA = [
    {"id": "disable-foreign-key-checks", "author": "ben"},
    {"id": "create-person", "author": "alice"},
    {"id": "create-encounter", "author": "alice"},
    {"id": "enable-foreign-key-checks", "author": "ben"},
]
SNAPSHOT_1_9_CORE_DATA = [
    {"id": "seed-roles", "author": "bob"},
    {"id": "seed-privileges", "author": "bob"},
]
SNAPSHOT_2_1_SCHEMA = [
    {"id": "create-person", "author": "alice"},
    {"id": "create-encounter", "author": "alice"},
    {"id": "create-visit", "author": "carol"},
]
SNAPSHOT_2_1_CORE_DATA = [
    {"id": "seed-roles", "author": "bob"},
    {"id": "seed-visit-types", "author": "carol"},
]
UPDATE_2_0 = [{"id": "add-person-uuid", "author": "dave"}]
UPDATE_2_1 = [
    {"id": "create-visit", "author": "carol"},
    {"id": "seed-visit-types", "author": "carol"},
]
UPDATE_2_2 = [
    {"id": "add-visit-index", "author": "erin"},
    {"id": "demo-patients", "author": "erin", "context": "demo"},
]


def write_changelog(path: Path, change_sets: list[dict]) -> Path:
    """Write a YAML changelog declaring the given change sets."""
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {"databaseChangeLog": [{"changeSet": dict(cs)} for cs in change_sets]}
    with open(path, "w") as f:
        yaml.dump(document, f)
    return path


class FakeSession:
    def __init__(self, unrun: list[ChangeSet]) -> None:
        self.unrun = unrun
        self.contexts: list[str | None] = []

    def unrun_change_sets(self, context: str | None) -> list[ChangeSet]:
        self.contexts.append(context)
        return list(self.unrun)


class FakeProvider:
    """In-memory provider: filename -> change sets reported as unrun.

    Filenames not in the mapping report nothing unrun. Filenames listed in
    ``failing`` raise on open.
    """

    def __init__(
        self,
        unrun: dict[str, list[ChangeSet]] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.unrun = unrun or {}
        self.failing = failing or set()
        self.opened: list[str] = []
        self.open_sessions = 0
        self.sessions: list[FakeSession] = []

    @contextmanager
    def open(self, filename: str):
        self.opened.append(filename)
        if filename in self.failing:
            raise ProviderError(f"cannot open {filename}")
        session = FakeSession(self.unrun.get(filename, []))
        self.sessions.append(session)
        self.open_sessions += 1
        try:
            yield session
        finally:
            self.open_sessions -= 1


def change_set(id: str, author: str = "alice", filename: str = "") -> ChangeSet:
    return ChangeSet(id=id, author=author, filename=filename)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def changelog_root(tmp_path: Path) -> Path:
    """Subfolder-layout changelog tree.

    Snapshot 1.9.x, updates 2.0.x, 2.1.x and 2.2.x.
    """
    root = tmp_path / "changelogs"
    write_changelog(root / "snapshots/1.9.x/schema-only.yaml", SNAPSHOT_1_9_SCHEMA)
    write_changelog(root / "snapshots/1.9.x/core-data.yaml", SNAPSHOT_1_9_CORE_DATA)
    write_changelog(root / "updates/2.0.x/update-to-latest.yaml", UPDATE_2_0)
    write_changelog(root / "updates/2.1.x/update-to-latest.yaml", UPDATE_2_1)
    write_changelog(root / "updates/2.2.x/update-to-latest.yaml", UPDATE_2_2)
    return root


@pytest.fixture
def changelog_root_with_2_1_snapshot(changelog_root: Path) -> Path:
    """Standard tree plus a 2.1.x snapshot pair."""
    write_changelog(changelog_root / "snapshots/2.1.x/schema-only.yaml", SNAPSHOT_2_1_SCHEMA)
    write_changelog(changelog_root / "snapshots/2.1.x/core-data.yaml", SNAPSHOT_2_1_CORE_DATA)
    return changelog_root


@pytest.fixture
def flat_changelog_root(tmp_path: Path) -> Path:
    """Flat-layout changelog tree with the same versions as ``changelog_root``."""
    root = tmp_path / "flat-changelogs"
    write_changelog(root / "snapshots/schema-only/schema-only-1.9.x.yaml", SNAPSHOT_1_9_SCHEMA)
    write_changelog(root / "snapshots/core-data/core-data-1.9.x.yaml", SNAPSHOT_1_9_CORE_DATA)
    write_changelog(root / "updates/update-to-latest-2.0.x.yaml", UPDATE_2_0)
    write_changelog(root / "updates/update-to-latest-2.1.x.yaml", UPDATE_2_1)
    write_changelog(root / "updates/update-to-latest-2.2.x.yaml", UPDATE_2_2)
    return root


@pytest.fixture
def test_config(tmp_path: Path, changelog_root: Path) -> Config:
    """Configuration pointing at a temp sqlite database and the changelog tree."""
    return Config(
        log_level="ERROR",
        log_json=False,
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'app.db'}"),
        changelog=ChangeLogConfig(root=changelog_root),
    )


@pytest.fixture
def engine(test_config: Config):
    """Engine for the temp database with empty ledger tables."""
    engine = get_engine(test_config)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def config_file(tmp_path: Path, test_config: Config) -> Path:
    """YAML file holding ``test_config``."""
    path = tmp_path / "baseline.yaml"
    with open(path, "w") as f:
        yaml.dump(test_config.model_dump(mode="json"), f)
    return path


@pytest.fixture
def seed_ledger(engine, changelog_root: Path) -> Callable[..., None]:
    """Record every change set of the given changelog files as run."""
    from baseline.changelog import load_changelog
    from baseline.database import record_change_set

    def seed(*filenames: str, skip: set[str] | None = None) -> None:
        skip = skip or set()
        with engine.begin() as conn:
            for filename in filenames:
                for cs in load_changelog(changelog_root / filename, filename):
                    if cs.id not in skip:
                        record_change_set(conn, cs)

    return seed
