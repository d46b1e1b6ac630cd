"""GitHub issue sync.

Pushing an open bug creates an issue and links it to the record. After
that, resolving or reopening the bug closes or reopens the linked issue.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

import httpx

from bugbook.config import UserConfig
from bugbook.models import Bug
from bugbook.store_base import OpResult, _now_iso

if TYPE_CHECKING:
    from bugbook.core import BugStore

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
_ACCEPT = "application/vnd.github.v3+json"
_USER_AGENT = "bugbook"
TITLE_MAX_LENGTH = 256

_REMOTE_RE = re.compile(r"github\.com[:/]([^/\s]+)/([^/\s]+?)(?:\.git)?/?\s*$")


def issue_title(bug: Bug) -> str:
    """First line of the error message, cut to GitHub's title limit."""
    return bug.error.split("\n", 1)[0][:TITLE_MAX_LENGTH]


def issue_labels(bug: Bug, label_prefix: str) -> list[str]:
    labels = [f"{label_prefix}{bug.category}"]
    if bug.priority:
        labels.append(f"priority:{bug.priority.lower()}")
    return labels


def issue_body(bug: Bug) -> str:
    parts = [f"## Error\n{bug.error}\n"]
    if bug.solution:
        parts.append(f"## Solution\n{bug.solution}\n")
    if bug.files:
        parts.append("## Related Files\n" + "".join(f"- `{f}`\n" for f in bug.files))
    meta = [f"- **BugBook ID**: {bug.id}", f"- **Category**: {bug.category}"]
    if bug.priority:
        meta.append(f"- **Priority**: {bug.priority}")
    if bug.author:
        meta.append(f"- **Author**: {bug.author}")
    if bug.due_date:
        meta.append(f"- **Due Date**: {bug.due_date}")
    meta.append(f"- **Created**: {bug.timestamp}")
    parts.append("## Metadata\n" + "\n".join(meta) + "\n")
    parts.append("---\n*Created from bugbook*\n")
    return "\n".join(parts)


def detect_repo(project_dir: Path) -> tuple[str, str] | None:
    """Return (owner, repo) from the first GitHub remote in ``.git/config``."""
    git_config = project_dir / ".git" / "config"
    try:
        text = git_config.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep or key.strip() != "url":
            continue
        match = _REMOTE_RE.search(value.strip())
        if match:
            return match.group(1), match.group(2)
    return None


def pending_bugs(bugs: Iterable[Bug], *, ids: Sequence[str] = (), force: bool = False) -> list[Bug]:
    """Open bugs with no linked issue (or every open bug with *force*), narrowed to *ids* if given."""
    wanted = {i.upper() for i in ids}
    return [
        b
        for b in bugs
        if b.status == "Open"
        and (force or b.github_issue_number is None)
        and (not wanted or b.id.upper() in wanted)
    ]


class GitHubIssueSync:
    """IssueSync backed by the GitHub REST API.

    Status changes touch only the issue state. Bugs without
    ``github_issue_number`` are reported as not linked and no request is
    made.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        *,
        auto_labels: bool = True,
        label_prefix: str = "bug:",
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.auto_labels = auto_labels
        self.label_prefix = label_prefix
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._headers = {
            "Accept": _ACCEPT,
            "Authorization": f"Bearer {token}",
            "User-Agent": _USER_AGENT,
        }

    @classmethod
    def from_config(cls, config: UserConfig, *, client: httpx.Client | None = None) -> GitHubIssueSync | None:
        gh = config.github
        if not gh.is_configured:
            return None
        return cls(
            gh.owner or "",
            gh.repo or "",
            gh.token or "",
            auto_labels=gh.auto_labels,
            label_prefix=gh.label_prefix,
            client=client,
        )

    def issues_url(self) -> str:
        return f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/issues"

    def issue_url(self, number: int) -> str:
        return f"{self.issues_url()}/{number}"

    def verify_token(self) -> str | None:
        """Return the login the token belongs to, or None if GitHub rejects it."""
        try:
            response = self._client.get(f"{GITHUB_API_URL}/user", headers=self._headers)
            response.raise_for_status()
            login = response.json().get("login")
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("GitHub token check failed: %s", exc, extra={"error": str(exc)})
            return None
        return login if isinstance(login, str) else ""

    def create_issue(self, bug: Bug) -> OpResult:
        """Open an issue for *bug* and record the link on it. The caller saves the bug."""
        payload: dict[str, object] = {"title": issue_title(bug), "body": issue_body(bug)}
        if self.auto_labels:
            payload["labels"] = issue_labels(bug, self.label_prefix)
        try:
            response = self._client.post(self.issues_url(), json=payload, headers=self._headers)
            response.raise_for_status()
            data = response.json()
            number = data["number"]
            html_url = data.get("html_url")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "GitHub issue creation failed for %s: %s",
                bug.id,
                exc,
                extra={"bug_id": bug.id, "error": str(exc)},
            )
            return OpResult(False, f"Could not create a GitHub issue for [{bug.id}]: {exc}")
        if not isinstance(number, int):
            return OpResult(False, f"GitHub returned an unexpected issue number: {number!r}")
        bug.github_issue_number = number
        bug.github_issue_url = html_url if isinstance(html_url, str) else None
        bug.github_issue_closed = False
        bug.last_synced = _now_iso()
        logger.info("Created GitHub issue #%s for %s", number, bug.id, extra={"bug_id": bug.id})
        return OpResult(True, f"Issue #{number}")

    def _set_state(self, bug: Bug, state: str) -> OpResult:
        if bug.github_issue_number is None:
            return OpResult(False, f"Bug [{bug.id}] is not linked to a GitHub issue.")
        number = bug.github_issue_number
        try:
            response = self._client.patch(self.issue_url(number), json={"state": state}, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "GitHub sync failed for %s (issue #%s): %s",
                bug.id,
                number,
                exc,
                extra={"bug_id": bug.id, "error": str(exc)},
            )
            return OpResult(False, f"GitHub issue #{number} could not be updated: {exc}")
        bug.github_issue_closed = state == "closed"
        bug.last_synced = _now_iso()
        verb = "closed" if state == "closed" else "reopened"
        logger.info("GitHub issue #%s %s for %s", number, verb, bug.id, extra={"bug_id": bug.id})
        return OpResult(True, f"GitHub issue #{number} {verb}.")

    def on_resolve(self, bug: Bug) -> OpResult:
        return self._set_state(bug, "closed")

    def on_reopen(self, bug: Bug) -> OpResult:
        return self._set_state(bug, "open")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GitHubIssueSync:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def push_bugs(store: BugStore, sync: GitHubIssueSync, bugs: Iterable[Bug]) -> list[tuple[Bug, OpResult]]:
    """Create an issue for each bug and save the link. One failure does not stop the rest."""
    results: list[tuple[Bug, OpResult]] = []
    for bug in bugs:
        result = sync.create_issue(bug)
        if result.success:
            try:
                store.save_bug(bug)
            except (OSError, ValueError) as exc:
                logger.error(
                    "Created issue #%s but failed to save %s: %s",
                    bug.github_issue_number,
                    bug.id,
                    exc,
                    extra={"bug_id": bug.id, "error": str(exc)},
                )
                result = OpResult(False, f"{result.message} created but the link was not saved: {exc}")
        results.append((bug, result))
    return results
