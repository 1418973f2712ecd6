"""CLI entrypoint for running baseline as a module."""

from baseline.cli import cli

if __name__ == "__main__":
    cli()
