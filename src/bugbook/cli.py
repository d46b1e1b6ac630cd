"""CLI for bugbook.

Convention-based: uses the .bugbook/ directory in the current directory.

Usage:
    bugbook install                                  # Create .bugbook/ in cwd
    bugbook add "TypeError in parser" -s "Guard None" -t Backend
    bugbook list --status Open --sort priority       # Query bugs
    bugbook show <id>                                # Show one bug
    bugbook edit <id> --priority High                # Edit fields
    bugbook delete <id>                              # Delete a bug
    bugbook comment <id> "text"                      # Append a comment
    bugbook resolve <id> [<id> ...]                  # Toggle Open/Resolved
    bugbook resolve --all-tagged Backend -y          # Bulk toggle
    bugbook tags / bugbook new-tag <name>            # Tag registry
    bugbook stats                                    # Counts
    bugbook export --out BUGS.md                     # Markdown report
    bugbook config user.name "Ada"                   # User settings
    bugbook github auth                              # Save a GitHub token
    bugbook github push [<id> ...]                   # Open issues for bugs
    bugbook github status                            # Synced vs pending
"""

from __future__ import annotations

import click

from bugbook import __version__
from bugbook.cli_commands import admin, bugs, github, meta, workflow


@click.group()
@click.version_option(version=__version__, prog_name="bugbook")
def cli() -> None:
    """Bugbook: a per-project bug ledger."""


admin.register(cli)
bugs.register(cli)
meta.register(cli)
workflow.register(cli)
github.register(cli)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
