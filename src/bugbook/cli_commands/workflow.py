"""CLI commands for status workflow: resolve."""

from __future__ import annotations

import sys

import click

from bugbook.cli_common import echo_bugs, echo_skipped, get_store
from bugbook.github import GitHubIssueSync
from bugbook.models import Bug
from bugbook.resolve import InvalidBugIdError, bulk_resolve
from bugbook.types import STATUSES


def _confirm_batch(candidates: list[Bug]) -> bool:
    click.echo(f"The following {len(candidates)} bugs will be toggled:")
    echo_bugs(candidates)
    return click.confirm("Proceed?", default=False)


@click.command()
@click.argument("bug_ids", nargs=-1)
@click.option("--all-tagged", default=None, help="Toggle every bug in this category")
@click.option("--all-status", type=click.Choice(STATUSES), default=None, help="Toggle every bug with this status")
@click.option("--yes", "--no-confirm", "-y", "skip_confirm", is_flag=True, help="Do not ask for confirmation")
def resolve(bug_ids: tuple[str, ...], all_tagged: str | None, all_status: str | None, skip_confirm: bool) -> None:
    """Toggle bugs between Open and Resolved.

    Linked GitHub issues are closed or reopened when GitHub is configured.
    """
    if not bug_ids and not all_tagged and all_status is None:
        click.echo("Error: give at least one bug ID, --all-tagged or --all-status.", err=True)
        sys.exit(1)

    store = get_store()
    sync = GitHubIssueSync.from_config(store.user_config)
    try:
        report = bulk_resolve(
            store,
            ids=bug_ids,
            all_tagged=all_tagged,
            all_status=all_status,
            skip_confirm=skip_confirm,
            confirm=_confirm_batch,
            sync=sync,
        )
    except InvalidBugIdError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        if sync is not None:
            sync.close()
    echo_skipped(store)

    for bug_id in report.missing_ids:
        click.echo(f"Warning: Bug with ID '{bug_id}' not found.", err=True)
    if report.cancelled:
        click.echo("Cancelled.")
        return
    if not report.candidates:
        click.echo("No matching bugs.")
        sys.exit(1 if report.missing_ids else 0)

    linked = {b.id for b in report.candidates if b.github_issue_number is not None}
    for outcome in report.outcomes:
        if not outcome.success:
            click.echo(f"Failed to update [{outcome.bug_id}]: {outcome.error}", err=True)
            continue
        click.echo(f"Bug [{outcome.bug_id}] status updated to: {outcome.new_status}")
        if outcome.sync is not None and outcome.bug_id in linked:
            click.echo(f"  {outcome.sync.message}", err=not outcome.sync.success)

    if len(report.outcomes) > 1:
        click.echo(f"Updated {len(report.succeeded)}/{len(report.outcomes)} bugs")
    if report.failed:
        sys.exit(1)


def register(cli: click.Group) -> None:
    """Register workflow commands with the CLI group."""
    cli.add_command(resolve)
