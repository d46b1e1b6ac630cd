"""Foundational types for bug records and their JSON shape."""

from __future__ import annotations

from typing import Literal, NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)

BugStatus = Literal["Open", "Resolved"]
Priority = Literal["Low", "Medium", "High"]
SortKey = Literal["priority", "date", "status", "dueDate", "id"]
SortOrder = Literal["asc", "desc"]

STATUSES: tuple[BugStatus, ...] = ("Open", "Resolved")
PRIORITIES: tuple[Priority, ...] = ("Low", "Medium", "High")
SORT_KEYS: tuple[SortKey, ...] = ("priority", "date", "status", "dueDate", "id")


class CommentDict(TypedDict, total=False):
    text: str
    timestamp: ISOTimestamp
    author: str


class _BugRequired(TypedDict):
    id: str
    timestamp: ISOTimestamp
    category: str
    error: str
    solution: str
    status: BugStatus


class BugDict(_BugRequired, total=False):
    """Shape of a ``bugs/BUG-<ID>.json`` record file."""

    priority: Priority
    files: list[str]
    dueDate: str
    comments: list[CommentDict]
    author: str
    github_issue_number: int
    github_issue_url: str
    github_issue_closed: bool
    last_synced: str
