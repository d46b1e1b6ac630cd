"""CLI commands for metadata: comments, tags, stats, export."""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path

import click

from bugbook.cli_common import echo_skipped, get_store
from bugbook.codec import RecordDecodeError
from bugbook.export import DEFAULT_EXPORT_FILENAME, write_export
from bugbook.stats import compute_stats
from bugbook.validation import validate_bug_id

_RULE = "-" * 50


@click.command()
@click.argument("bug_id")
@click.argument("text")
def comment(bug_id: str, text: str) -> None:
    """Append a comment to a bug."""
    if not validate_bug_id(bug_id):
        click.echo(f"Error: invalid bug ID '{bug_id}' (expected 1-8 hex characters)", err=True)
        sys.exit(1)
    store = get_store()
    try:
        result = store.add_comment(bug_id, text)
    except RecordDecodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if not result.success:
        click.echo(result.message, err=True)
        sys.exit(1)
    click.echo(result.message)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tags(as_json: bool) -> None:
    """List registered tags with the number of bugs in each."""
    store = get_store()
    registered = store.list_tags()
    counts = store.tag_counts()
    echo_skipped(store)
    unregistered = sorted(c for c in counts if c not in registered)
    if as_json:
        click.echo(json_mod.dumps({t: counts.get(t, 0) for t in [*registered, *unregistered]}, indent=2))
        return
    for tag in registered:
        click.echo(f"  {tag}: {counts.get(tag, 0)}")
    for tag in unregistered:
        click.echo(f"  {tag}: {counts[tag]} (not registered)")


@click.command("new-tag")
@click.argument("name")
def new_tag(name: str) -> None:
    """Register a new category tag."""
    store = get_store()
    result = store.add_tag(name)
    if not result.success:
        click.echo(result.message, err=True)
        sys.exit(1)
    click.echo(result.message)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool) -> None:
    """Show bug counts by status and category."""
    store = get_store()
    result = compute_stats(store.list_bugs())
    echo_skipped(store)
    if as_json:
        click.echo(json_mod.dumps(result.to_dict(), indent=2))
        return
    if result.total == 0:
        click.echo("No bugs recorded yet.")
        return
    click.echo("Bugbook Statistics")
    click.echo(_RULE)
    click.echo(f"Total Bugs:     {result.total}")
    click.echo(f"Open:           {result.open}")
    click.echo(f"Resolved:       {result.resolved}")
    if result.overdue:
        click.echo(f"Overdue:        {result.overdue}")
    click.echo(_RULE)
    click.echo("Top Categories:")
    for category, count in result.categories:
        click.echo(f"  {category}: {count}")
    click.echo(_RULE)


@click.command()
@click.option("--out", "-o", "output", default=DEFAULT_EXPORT_FILENAME, help="Output file (default: BUGS.md)")
def export(output: str) -> None:
    """Export every bug to a markdown report."""
    store = get_store()
    bugs = store.list_bugs()
    echo_skipped(store)
    if not bugs:
        click.echo("No bugs to export.")
        return
    try:
        path = write_export(bugs, Path(output))
    except OSError as e:
        click.echo(f"Failed to export: {e}", err=True)
        sys.exit(1)
    click.echo(f"Exported {len(bugs)} bugs to {path}")


def register(cli: click.Group) -> None:
    """Register metadata commands with the CLI group."""
    cli.add_command(comment)
    cli.add_command(tags)
    cli.add_command(new_tag)
    cli.add_command(stats)
    cli.add_command(export)
