"""CLI commands for GitHub issues: github auth, github status, github push."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import httpx

from bugbook.cli_common import echo_bugs, echo_skipped, get_store
from bugbook.config import read_user_config, set_user_config
from bugbook.github import GitHubIssueSync, detect_repo, pending_bugs, push_bugs
from bugbook.validation import validate_bug_id

HTTP_TIMEOUT = 10.0
STATUS_PENDING_SHOWN = 5


def _http_client() -> httpx.Client:
    return httpx.Client(timeout=HTTP_TIMEOUT)


@click.group()
def github() -> None:
    """Create and track GitHub issues for bugs."""


@github.command()
@click.option("--token", prompt="GitHub personal access token", hide_input=True, help="Token with repo scope")
def auth(token: str) -> None:
    """Verify a GitHub token and save it to ~/.bugbookrc.

    The repository is detected from the git remote when github.owner and
    github.repo are not set yet.
    """
    token = token.strip()
    with _http_client() as client, GitHubIssueSync("", "", token, client=client) as sync:
        login = sync.verify_token()
    if login is None:
        click.echo("Error: GitHub rejected the token.", err=True)
        sys.exit(1)
    try:
        set_user_config("github.token", token)
        config = read_user_config()
        detected = None if config.github.owner and config.github.repo else detect_repo(Path.cwd())
        if detected is not None:
            set_user_config("github.owner", detected[0])
            set_user_config("github.repo", detected[1])
    except OSError as e:
        click.echo(f"Failed to write config: {e}", err=True)
        sys.exit(1)
    click.echo(f"Authenticated as {login}" if login else "Authenticated")
    if detected is not None:
        click.echo(f"Repository: {detected[0]}/{detected[1]}")
    elif not (config.github.owner and config.github.repo):
        click.echo("Set the repository with: bugbook config github.owner <owner> && bugbook config github.repo <repo>")


@github.command()
def status() -> None:
    """Show GitHub settings and how many open bugs have issues."""
    store = get_store()
    gh = store.user_config.github
    authenticated = False
    if gh.token:
        with _http_client() as client:
            sync = GitHubIssueSync(gh.owner or "", gh.repo or "", gh.token, client=client)
            authenticated = sync.verify_token() is not None

    open_bugs = [b for b in store.list_bugs() if b.status == "Open"]
    echo_skipped(store)
    pending = pending_bugs(open_bugs)
    click.echo(f"Authenticated: {'yes' if authenticated else 'no'}")
    click.echo(f"Repository: {gh.owner}/{gh.repo}" if gh.owner and gh.repo else "Repository: not set")
    click.echo(f"Open bugs: {len(open_bugs)}")
    click.echo(f"Synced to GitHub: {len(open_bugs) - len(pending)}")
    click.echo(f"Pending sync: {len(pending)}")
    if pending:
        click.echo("")
        echo_bugs(pending[:STATUS_PENDING_SHOWN])
        if len(pending) > STATUS_PENDING_SHOWN:
            click.echo(f"... and {len(pending) - STATUS_PENDING_SHOWN} more")


@github.command()
@click.argument("bug_ids", nargs=-1)
@click.option("--dry-run", is_flag=True, help="List the bugs that would be pushed and stop")
@click.option("--force", is_flag=True, help="Also push bugs that already have an issue")
@click.option("--yes", "-y", "skip_confirm", is_flag=True, help="Do not ask for confirmation")
def push(bug_ids: tuple[str, ...], dry_run: bool, force: bool, skip_confirm: bool) -> None:
    """Create GitHub issues for open bugs that have none yet."""
    bad = [i for i in bug_ids if not validate_bug_id(i)]
    if bad:
        click.echo(f"Error: Invalid bug ID format: {', '.join(bad)}", err=True)
        sys.exit(1)

    store = get_store()
    candidates = pending_bugs(store.list_bugs(), ids=bug_ids, force=force)
    echo_skipped(store)
    if not candidates:
        click.echo("No bugs to push.")
        return
    if dry_run:
        click.echo(f"Would create {len(candidates)} issue(s):")
        echo_bugs(candidates)
        return

    with _http_client() as client:
        sync = GitHubIssueSync.from_config(store.user_config, client=client)
        if sync is None:
            click.echo("Error: GitHub is not configured. Run 'bugbook github auth' first.", err=True)
            sys.exit(1)
        if len(candidates) > 1 and not skip_confirm:
            click.echo(f"The following {len(candidates)} bugs will be pushed to {sync.owner}/{sync.repo}:")
            echo_bugs(candidates)
            if not click.confirm("Proceed?", default=False):
                click.echo("Cancelled.")
                return
        results = push_bugs(store, sync, candidates)

    failed = 0
    for bug, result in results:
        if result.success:
            click.echo(f"[{bug.id}] -> {result.message}")
        else:
            failed += 1
            click.echo(f"[{bug.id}] failed: {result.message}", err=True)
    click.echo(f"Done! {len(results) - failed} succeeded, {failed} failed.")
    if failed:
        sys.exit(1)


def register(cli: click.Group) -> None:
    """Register the github command group with the CLI group."""
    cli.add_command(github)
