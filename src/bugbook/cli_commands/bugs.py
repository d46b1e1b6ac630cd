"""CLI commands for bug CRUD: add, show, list, edit, delete."""

from __future__ import annotations

import json as json_mod
import sys

import click

from bugbook.cli_common import echo_bugs, echo_skipped, get_store
from bugbook.codec import RecordDecodeError
from bugbook.models import DEFAULT_TAG
from bugbook.query import DEFAULT_LIST_COUNT, ListOptions, get_overdue, query_bugs
from bugbook.types import PRIORITIES, SORT_KEYS, STATUSES
from bugbook.validation import check_file_paths, validate_bug_id, validate_due_date


def _require_id(bug_id: str) -> None:
    if not validate_bug_id(bug_id):
        click.echo(f"Error: invalid bug ID '{bug_id}' (expected 1-8 hex characters)", err=True)
        sys.exit(1)


def _require_due(due: str | None) -> None:
    if due and not validate_due_date(due):
        click.echo(f"Error: invalid due date '{due}' (expected YYYY-MM-DD)", err=True)
        sys.exit(1)


def _warn_missing_files(files: tuple[str, ...]) -> None:
    _, missing = check_file_paths(files)
    for path in missing:
        click.echo(f"Warning: file not found: {path}", err=True)


@click.command()
@click.argument("error")
@click.option("--solution", "-s", default="", help="How it was fixed")
@click.option("--tag", "-t", "category", default=DEFAULT_TAG, help=f"Category tag (default: {DEFAULT_TAG})")
@click.option("--priority", "-p", type=click.Choice(PRIORITIES), default=None, help="Priority")
@click.option("--file", "-f", "files", multiple=True, help="Related file (repeatable)")
@click.option("--due", default=None, help="Due date YYYY-MM-DD")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def add(
    error: str,
    solution: str,
    category: str,
    priority: str | None,
    files: tuple[str, ...],
    due: str | None,
    as_json: bool,
) -> None:
    """Record a new bug."""
    _require_due(due)
    store = get_store()
    if files:
        _warn_missing_files(files)
    try:
        bug = store.create_bug(
            error,
            solution,
            category=category,
            priority=priority,  # type: ignore[arg-type]
            files=list(files) or None,
            due_date=due,
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if as_json:
        click.echo(json_mod.dumps(bug.to_dict(), indent=2))
    else:
        click.echo(f"Bug added with ID: {bug.id}")


@click.command()
@click.argument("bug_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(bug_id: str, as_json: bool) -> None:
    """Show details for a bug."""
    _require_id(bug_id)
    store = get_store()
    try:
        bug = store.get_bug(bug_id)
    except RecordDecodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if bug is None:
        click.echo(f"Bug with ID '{bug_id}' not found.", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json_mod.dumps(bug.to_dict(), indent=2))
        return

    click.echo(f"[{bug.id}] {bug.status}")
    click.echo(f"  Category: {bug.category}")
    if bug.priority:
        click.echo(f"  Priority: {bug.priority}")
    if bug.author:
        click.echo(f"  Author: {bug.author}")
    click.echo(f"  Created: {bug.timestamp}")
    if bug.due_date:
        click.echo(f"  Due: {bug.due_date}")
    if bug.github_issue_url:
        click.echo(f"  GitHub: {bug.github_issue_url}")
    click.echo(f"\nError:\n  {bug.error}")
    if bug.solution:
        click.echo(f"\nSolution:\n  {bug.solution}")
    if bug.files:
        click.echo("\nFiles:")
        for path in bug.files:
            click.echo(f"  {path}")
    if bug.comments:
        click.echo(f"\nComments ({len(bug.comments)}):")
        for comment in bug.comments:
            author = f" {comment.author}" if comment.author else ""
            click.echo(f"  [{comment.timestamp}]{author}: {comment.text}")


@click.command("list")
@click.option("--status", default=None, help=f"Filter by status ({', '.join(STATUSES)})")
@click.option("--priority", "-p", default=None, help=f"Filter by priority ({', '.join(PRIORITIES)})")
@click.option("--tagged", "-t", default=None, help="Filter by category (case-insensitive)")
@click.option("--author", default=None, help="Filter by author (substring)")
@click.option("--sort", default=None, help=f"Sort key ({', '.join(SORT_KEYS)})")
@click.option("--order", default=None, help="asc or desc")
@click.option("--limit", "-n", default=None, help=f"Max results (default {DEFAULT_LIST_COUNT} most recent)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_bugs(
    status: str | None,
    priority: str | None,
    tagged: str | None,
    author: str | None,
    sort: str | None,
    order: str | None,
    limit: str | None,
    as_json: bool,
) -> None:
    """List bugs. Unrecognized filter values are ignored."""
    store = get_store()
    all_bugs = store.list_bugs()
    echo_skipped(store)
    options = ListOptions.from_strings(
        status=status, priority=priority, tagged=tagged, author=author, sort=sort, order=order, limit=limit
    )
    results = query_bugs(all_bugs, options)

    if as_json:
        click.echo(json_mod.dumps([b.to_dict() for b in results], indent=2))
        return

    overdue = get_overdue(all_bugs)
    if overdue:
        click.echo(f"Warning: {len(overdue)} overdue bug(s): {', '.join(b.id for b in overdue)}", err=True)
    if options.has_filters:
        click.echo(f"Filters: {options.describe_filters()}")
    if not results:
        click.echo("No bugs found.")
        return
    echo_bugs(results)
    if not options.has_filters and options.limit is None and len(all_bugs) > len(results):
        click.echo(f"\nShowing {len(results)} most recent of {len(all_bugs)}. Use --limit to see more.")


@click.command()
@click.argument("bug_id")
@click.option("--error", "-e", default=None, help="New error message")
@click.option("--solution", "-s", default=None, help="New solution")
@click.option("--tag", "-t", "category", default=None, help="New category tag")
@click.option(
    "--priority",
    "-p",
    type=click.Choice([*PRIORITIES, "none"]),
    default=None,
    help="New priority ('none' to clear)",
)
@click.option("--file", "-f", "files", multiple=True, help="Replace related files (repeatable)")
@click.option("--due", default=None, help="New due date YYYY-MM-DD ('' to clear)")
def edit(
    bug_id: str,
    error: str | None,
    solution: str | None,
    category: str | None,
    priority: str | None,
    files: tuple[str, ...],
    due: str | None,
) -> None:
    """Edit the fields of an existing bug."""
    _require_id(bug_id)
    _require_due(due)
    if all(v is None for v in (error, solution, category, priority, due)) and not files:
        click.echo("Nothing to edit. Pass at least one option.", err=True)
        sys.exit(1)
    store = get_store()
    if files:
        _warn_missing_files(files)
    try:
        bug = store.update_bug(
            bug_id,
            error=error,
            solution=solution,
            category=category,
            priority="" if priority == "none" else priority,
            files=list(files) if files else None,
            due_date=due,
        )
    except KeyError:
        click.echo(f"Bug with ID '{bug_id}' not found.", err=True)
        sys.exit(1)
    except (ValueError, RecordDecodeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Bug [{bug.id}] updated.")


@click.command()
@click.argument("bug_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def delete(bug_id: str, yes: bool) -> None:
    """Delete a bug permanently."""
    _require_id(bug_id)
    store = get_store()
    if not yes and not click.confirm(f"Delete bug [{bug_id.upper()}]?", default=False):
        click.echo("Cancelled.")
        return
    if not store.delete_bug(bug_id):
        click.echo(f"Bug with ID '{bug_id}' not found.", err=True)
        sys.exit(1)
    click.echo(f"Bug [{bug_id.upper()}] deleted.")


def register(cli: click.Group) -> None:
    """Register bug commands with the CLI group."""
    cli.add_command(add)
    cli.add_command(show)
    cli.add_command(list_bugs)
    cli.add_command(edit)
    cli.add_command(delete)
