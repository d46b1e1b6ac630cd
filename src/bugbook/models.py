"""Record dataclasses: Bug and Comment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bugbook.types import BugDict, BugStatus, CommentDict, ISOTimestamp, Priority

DEFAULT_TAG = "General"


@dataclass
class Comment:
    text: str
    timestamp: str = ""
    author: str | None = None

    def to_dict(self) -> CommentDict:
        result = CommentDict(text=self.text, timestamp=ISOTimestamp(self.timestamp))
        if self.author is not None:
            result["author"] = self.author
        return result


@dataclass
class Bug:
    id: str
    timestamp: str = ""
    category: str = DEFAULT_TAG
    error: str = ""
    solution: str = ""
    status: BugStatus = "Open"
    priority: Priority | None = None
    files: list[str] | None = None
    due_date: str | None = None
    comments: list[Comment] | None = None
    author: str | None = None
    # GitHub sync metadata, stored and returned, never interpreted.
    github_issue_number: int | None = None
    github_issue_url: str | None = None
    github_issue_closed: bool | None = None
    last_synced: str | None = None
    # Keys written by other versions of the tool, preserved on save.
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_resolved(self) -> bool:
        return self.status == "Resolved"

    def to_dict(self) -> BugDict:
        result = BugDict(
            id=self.id,
            timestamp=ISOTimestamp(self.timestamp),
            category=self.category,
            error=self.error,
            solution=self.solution,
            status=self.status,
        )
        if self.priority is not None:
            result["priority"] = self.priority
        if self.files is not None:
            result["files"] = list(self.files)
        if self.due_date is not None:
            result["dueDate"] = self.due_date
        if self.comments is not None:
            result["comments"] = [c.to_dict() for c in self.comments]
        if self.author is not None:
            result["author"] = self.author
        if self.github_issue_number is not None:
            result["github_issue_number"] = self.github_issue_number
        if self.github_issue_url is not None:
            result["github_issue_url"] = self.github_issue_url
        if self.github_issue_closed is not None:
            result["github_issue_closed"] = self.github_issue_closed
        if self.last_synced is not None:
            result["last_synced"] = self.last_synced
        return result
