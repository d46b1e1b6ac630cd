"""CLI commands for admin: install, config."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from bugbook.config import SUPPORTED_KEYS, get_user_config_value, set_user_config
from bugbook.core import BUGBOOK_DIR_NAME, BugStore, UnsafeStorageRootError, get_storage_root
from bugbook.logging import setup_logging


def _mask(value: str) -> str:
    return value[:4] + "*" * max(len(value) - 4, 0)


@click.command()
def install() -> None:
    """Create .bugbook/ in the current directory."""
    try:
        root = get_storage_root()
    except UnsafeStorageRootError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    existed = root.is_dir()
    store = BugStore(root)
    store.initialize()
    setup_logging(root)
    if existed:
        click.echo(f"{BUGBOOK_DIR_NAME}/ already exists in {Path.cwd()}")
        if store.migration is not None and store.migration.changed:
            click.echo("  Upgraded legacy storage to one file per bug")
        return
    click.echo(f"Initialized {BUGBOOK_DIR_NAME}/ in {Path.cwd()}")
    click.echo(f"  Bugs: {store.bugs_dir}")
    click.echo(f"  Tags: {store.tags_path}")
    click.echo("\nNext: bugbook add \"<error message>\"")


@click.command()
@click.argument("key", type=click.Choice(SUPPORTED_KEYS))
@click.argument("value", required=False)
def config(key: str, value: str | None) -> None:
    """Show or set a user setting in ~/.bugbookrc."""
    if value is None:
        current = get_user_config_value(key)
        if current is None:
            click.echo(f"{key} is not set")
        elif key == "github.token":
            click.echo(f"{key} = {_mask(str(current))}")
        else:
            click.echo(f"{key} = {current}")
        return
    try:
        set_user_config(key, value)
    except OSError as e:
        click.echo(f"Failed to write config: {e}", err=True)
        sys.exit(1)
    shown = _mask(value) if key == "github.token" else value
    click.echo(f"Set {key} = {shown}")


def register(cli: click.Group) -> None:
    """Register admin commands with the CLI group."""
    cli.add_command(install)
    cli.add_command(config)
