"""Shared CLI helpers used by ``cli.py`` and the ``cli_commands`` modules."""

from __future__ import annotations

import sys
from collections.abc import Iterable

import click

from bugbook.config import read_user_config
from bugbook.core import BUGBOOK_DIR_NAME, BugStore, UnsafeStorageRootError, get_storage_root
from bugbook.logging import setup_logging
from bugbook.migrate import MigrationReport
from bugbook.models import Bug


def get_store() -> BugStore:
    """Open the ``.bugbook/`` store in the current directory, or exit 1."""
    try:
        root = get_storage_root()
    except UnsafeStorageRootError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if not root.is_dir():
        click.echo(f"No {BUGBOOK_DIR_NAME}/ found. Run 'bugbook install' first.", err=True)
        sys.exit(1)
    setup_logging(root)
    store = BugStore(root, user_config=read_user_config())
    if store.migration is not None:
        echo_migration(store.migration)
    return store


def echo_migration(report: MigrationReport) -> None:
    if report.array_records:
        click.echo(f"Migrated {report.array_records} bug(s) from bugs.json")
    if report.ledger_records:
        click.echo(f"Migrated {report.ledger_records} bug(s) from bugs.md")
    if report.tags:
        click.echo(f"Migrated {report.tags} tag(s) from tags.md")
    for failure in report.failures:
        click.echo(f"Warning: migration: {failure}", err=True)


def echo_skipped(store: BugStore) -> None:
    for skipped in store.skipped:
        click.echo(f"Warning: skipped {skipped.path.name}: {skipped.reason}", err=True)


def format_bug_line(bug: Bug) -> str:
    status = "x" if bug.is_resolved else " "
    priority = f" ({bug.priority})" if bug.priority else ""
    due = f" due {bug.due_date}" if bug.due_date else ""
    headline = bug.error.split("\n", 1)[0]
    return f"[{status}] {bug.id} [{bug.category}]{priority}{due} {headline}"


def echo_bugs(bugs: Iterable[Bug]) -> None:
    for bug in bugs:
        click.echo(format_bug_line(bug))
