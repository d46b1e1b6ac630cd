"""JSON codec for bug record files.

Decoding is forgiving: records written by older or newer versions of the
tool load as long as they carry an id. Unknown status values become
``Open``, unknown priorities are dropped, and unknown keys are kept in
``Bug.extra`` so a later save writes them back.
"""

from __future__ import annotations

import json
from typing import Any

from bugbook.models import DEFAULT_TAG, Bug, Comment
from bugbook.types import PRIORITIES, STATUSES

_KNOWN_KEYS = frozenset(
    {
        "id",
        "timestamp",
        "category",
        "error",
        "solution",
        "status",
        "priority",
        "files",
        "dueDate",
        "comments",
        "author",
        "github_issue_number",
        "github_issue_url",
        "github_issue_closed",
        "last_synced",
    }
)


class RecordDecodeError(ValueError):
    """A record file could not be turned into a Bug."""


def encode_bug(bug: Bug) -> bytes:
    payload: dict[str, Any] = {k: v for k, v in bug.extra.items() if k not in _KNOWN_KEYS}
    payload = {**bug.to_dict(), **payload}
    return (json.dumps(payload, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def decode_bug(data: bytes | str) -> Bug:
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"invalid JSON: {exc}"
        raise RecordDecodeError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"expected a JSON object, got {type(payload).__name__}"
        raise RecordDecodeError(msg)
    return bug_from_dict(payload)


def _text(value: object, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _optional_text(value: object) -> str | None:
    return None if value is None else _text(value)


def _comments(value: object) -> list[Comment] | None:
    if not isinstance(value, list):
        return None
    comments: list[Comment] = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            continue
        comments.append(
            Comment(
                text=item["text"],
                timestamp=_text(item.get("timestamp")),
                author=_optional_text(item.get("author")),
            )
        )
    return comments


def bug_from_dict(payload: dict[str, Any]) -> Bug:
    """Build a Bug from a decoded record mapping, normalizing enum fields."""
    bug_id = payload.get("id")
    if not isinstance(bug_id, str) or not bug_id.strip():
        msg = "record has no id"
        raise RecordDecodeError(msg)

    status = payload.get("status")
    priority = payload.get("priority")
    files = payload.get("files")

    return Bug(
        id=bug_id.strip(),
        timestamp=_text(payload.get("timestamp")),
        category=_text(payload.get("category"), DEFAULT_TAG),
        error=_text(payload.get("error")),
        solution=_text(payload.get("solution")),
        status=status if status in STATUSES else "Open",
        priority=priority if priority in PRIORITIES else None,
        files=[_text(f) for f in files] if isinstance(files, list) else None,
        due_date=_optional_text(payload.get("dueDate")),
        comments=_comments(payload.get("comments")),
        author=_optional_text(payload.get("author")),
        github_issue_number=payload.get("github_issue_number"),
        github_issue_url=payload.get("github_issue_url"),
        github_issue_closed=payload.get("github_issue_closed"),
        last_synced=payload.get("last_synced"),
        extra={k: v for k, v in payload.items() if k not in _KNOWN_KEYS},
    )
