"""Markdown report generator for ``bugbook export``.

Open bugs first, then resolved ones, each as a level-3 heading with its
metadata, the full error in a fenced block, and the solution and related
files when present.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path

from bugbook.models import Bug

DEFAULT_EXPORT_FILENAME = "BUGS.md"


def _format_bug(bug: Bug) -> list[str]:
    headline = bug.error.split("\n", 1)[0]
    lines = [
        f"### [{bug.id}] {headline}",
        f"- **Category**: {bug.category}",
        f"- **Priority**: {bug.priority or 'Medium'}",
    ]
    if bug.author:
        lines.append(f"- **Author**: {bug.author}")
    lines.append(f"- **Date**: {bug.timestamp}")
    lines.append("")
    lines.extend(["**Error**:", "```", bug.error, "```", ""])
    if bug.solution:
        lines.extend(["**Solution**:", bug.solution, ""])
    if bug.files:
        lines.append("**Related Files**:")
        lines.extend(f"- `{f}`" for f in bug.files)
        lines.append("")
    lines.extend(["---", ""])
    return lines


def generate_markdown(bugs: Iterable[Bug], generated_at: datetime | None = None) -> str:
    items = list(bugs)
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = ["# BugBook Report", "", f"Generated on: {stamp}", ""]

    for title, status, placeholder in (
        ("Open Bugs", "Open", "_No open bugs._"),
        ("Resolved Bugs", "Resolved", "_No resolved bugs._"),
    ):
        lines.extend([f"## {title}", ""])
        section = [b for b in items if b.status == status]
        if not section:
            lines.extend([placeholder, ""])
        for bug in section:
            lines.extend(_format_bug(bug))

    return "\n".join(lines)


def write_export(bugs: Sequence[Bug], path: str | Path) -> Path:
    """Write the report atomically (write-temp then rename). Returns the path written."""
    output = Path(path)
    content = generate_markdown(bugs)
    fd, tmp_name = tempfile.mkstemp(dir=output.parent or ".", suffix=".tmp", prefix=".export_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, str(output))
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
    return output
