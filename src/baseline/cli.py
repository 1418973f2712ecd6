"""Command-line interface for baseline."""

from pathlib import Path

import click

from baseline import __version__
from baseline.config import Config
from baseline.logging import get_logger, setup_logging

log = get_logger("cli")


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.option(
    "--context",
    default=None,
    help="Execution context used to select change sets (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    log_level: str | None,
    log_json: bool | None,
    context: str | None,
) -> None:
    """baseline - find the snapshot a database was built from.

    Works out which snapshot changelog initialised a database and which
    update changelogs it still needs.
    """
    ctx.ensure_object(dict)

    config = Config.load_or_default(config_file)
    ctx.obj["config"] = config
    ctx.obj["config_file"] = config_file
    ctx.obj["context"] = context if context is not None else config.context

    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json

    setup_logging(json_output=effective_log_json, level=effective_log_level)


def _build(config: Config):
    """Create the engine, provider and detective for a configuration."""
    from baseline.catalog import get_catalog
    from baseline.database import get_engine
    from baseline.detective import ChangeLogDetective
    from baseline.finder import ChangeLogVersionFinder
    from baseline.provider import LedgerMigrationProvider

    engine = get_engine(config)
    provider = LedgerMigrationProvider(engine, config.changelog.root)
    detective = ChangeLogDetective(ChangeLogVersionFinder(get_catalog(config)))
    return engine, provider, detective


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"baseline {__version__}")


@cli.command()
@click.pass_context
def catalog(ctx: click.Context) -> None:
    """List the snapshot and update versions available."""
    from baseline.catalog import get_catalog
    from baseline.finder import ChangeLogVersionFinder
    from baseline.versions import version_key

    config = ctx.obj["config"]
    finder = ChangeLogVersionFinder(get_catalog(config))

    snapshots = sorted(finder.snapshot_versions(), key=version_key)
    updates = sorted(finder.update_versions(), key=version_key)

    click.echo(f"Changelog root: {config.changelog.root} ({config.changelog.layout})")
    click.echo(f"Snapshot versions: {', '.join(snapshots) if snapshots else 'none'}")
    click.echo(f"Update versions: {', '.join(updates) if updates else 'none'}")
    click.echo(f"Latest snapshot: {finder.latest_snapshot_version() or 'none'}")


@cli.command()
@click.pass_context
def detect(ctx: click.Context) -> None:
    """Print the snapshot version the database was initialised from."""
    from baseline.detective import BaselineError
    from baseline.provider import ProviderError
    from baseline.versions import VersionFormatError

    engine, provider, detective = _build(ctx.obj["config"])

    try:
        version = detective.resolve_baseline(ctx.obj["context"], provider)
    except (BaselineError, ProviderError, VersionFormatError) as e:
        log.error("detect_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        engine.dispose()

    click.echo(version)


@cli.command()
@click.option(
    "--baseline",
    "baseline_version",
    default=None,
    help="Snapshot version to start from (default: detect it).",
)
@click.pass_context
def pending(ctx: click.Context, baseline_version: str | None) -> None:
    """List update changelogs the database still needs, in order."""
    from baseline.detective import BaselineError
    from baseline.provider import ProviderError
    from baseline.versions import VersionFormatError

    engine, provider, detective = _build(ctx.obj["config"])
    context = ctx.obj["context"]

    try:
        if baseline_version is None:
            baseline_version = detective.resolve_baseline(context, provider)
        files = detective.pending_update_files(baseline_version, context, provider)
    except (BaselineError, ProviderError, VersionFormatError) as e:
        log.error("pending_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        engine.dispose()

    for filename in files:
        click.echo(filename)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show whether the database requires updates.

    Exits with status 1 when the migration state can't be determined.
    """
    from baseline.status import check_update_status

    config = ctx.obj["config"]
    engine, provider, detective = _build(config)

    try:
        result = check_update_status(detective, provider, ctx.obj["context"], engine=engine)
    finally:
        engine.dispose()

    click.echo(f"Database: {config.database.url}")
    if result.ledger_locked:
        click.echo("Ledger is locked by a running migration")

    if not result.determined:
        click.echo(f"Migration state unknown: {result.error}", err=True)
        click.echo("Automatic updates must not proceed.", err=True)
        raise SystemExit(1)

    click.echo(f"Baseline snapshot: {result.baseline_version}")
    if result.update_required:
        click.echo(f"Update required: {len(result.pending_files)} changelog(s)")
        for filename in result.pending_files:
            click.echo(f"  {filename}")
    else:
        click.echo("No update required")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="check")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    default="baseline.yaml",
    help="Path to configuration file.",
)
def config_check(config_file: Path) -> None:
    """Validate configuration file."""
    try:
        cfg = Config.load(config_file)
        click.echo(f"Configuration valid: {config_file}")
        click.echo(f"  Database URL: {cfg.database.url}")
        click.echo(f"  Changelog root: {cfg.changelog.root}")
        click.echo(f"  Changelog layout: {cfg.changelog.layout}")
        click.echo(f"  Context: {cfg.context or 'all'}")
        click.echo(f"  Log level: {cfg.log_level}")
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)
