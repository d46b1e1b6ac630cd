"""Parsers for the two legacy bugbook storage formats.

- Ledger (``bugs.md``): append-only markdown, one section per bug, sections
  separated by ``---`` lines, fields written as ``**Label:** value`` and an
  optional ``## [timestamp]`` heading.
- Array (``bugs.json``): a single JSON array holding every record.

Parsers never touch the filesystem and never raise on bad input; each entry
comes back as a record or a ParseFailure. Only ``bugbook.migrate`` uses them.
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any

from bugbook.codec import bug_from_dict
from bugbook.models import DEFAULT_TAG, Bug
from bugbook.types import PRIORITIES, STATUSES
from bugbook.validation import validate_bug_id

_SECTION_SPLIT_RE = re.compile(r"^[ \t]*---[ \t]*$", re.MULTILINE)
_HEADING_RE = re.compile(r"^##[ \t]*\[(.+?)\]", re.MULTILINE)

# Ledger label -> Bug attribute
LEDGER_LABELS: dict[str, str] = {
    "ID": "id",
    "Category": "category",
    "Error": "error",
    "Solution": "solution",
    "Status": "status",
    "Priority": "priority",
    "Author": "author",
}
_LABEL_RES = {label: re.compile(rf"\*\*{label}:\*\*[ \t]*(.*)") for label in LEDGER_LABELS}


@dataclass(frozen=True)
class LegacyLedgerRecord:
    index: int
    fields: dict[str, str]
    timestamp: str | None = None


@dataclass(frozen=True)
class LegacyArrayRecord:
    index: int
    payload: dict[str, Any]


@dataclass(frozen=True)
class ParseFailure:
    source: str
    reason: str
    index: int | None = None


def parse_ledger(text: str) -> list[LegacyLedgerRecord | ParseFailure]:
    results: list[LegacyLedgerRecord | ParseFailure] = []
    for index, section in enumerate(_SECTION_SPLIT_RE.split(text)):
        if not section.strip():
            continue
        fields: dict[str, str] = {}
        for label, attr in LEDGER_LABELS.items():
            match = _LABEL_RES[label].search(section)
            if match:
                fields[attr] = match.group(1).strip()
        heading = _HEADING_RE.search(section)
        if not fields and heading is None:
            results.append(ParseFailure("ledger", "no recognizable fields", index))
            continue
        results.append(LegacyLedgerRecord(index, fields, heading.group(1).strip() if heading else None))
    return results


def parse_array(text: str) -> list[LegacyArrayRecord | ParseFailure]:
    """Parse the array file. A whole-file failure is a single ParseFailure with no index."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return [ParseFailure("array", f"invalid JSON: {exc}")]
    if not isinstance(data, list):
        return [ParseFailure("array", f"expected a JSON array, got {type(data).__name__}")]
    results: list[LegacyArrayRecord | ParseFailure] = []
    for index, item in enumerate(data):
        if isinstance(item, dict):
            results.append(LegacyArrayRecord(index, item))
        else:
            results.append(ParseFailure("array", "entry is not an object", index))
    return results


def _usable_id(value: object) -> str | None:
    if isinstance(value, str) and validate_bug_id(value.strip()):
        return value.strip().upper()
    return None


def content_id(kind: str, index: int, content: object) -> str:
    """Derive an 8-hex-digit ID from a legacy entry's position and content.

    The same entry maps to the same ID on every run.
    """
    seed = json.dumps([kind, index, content], sort_keys=True, default=str)
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:8].upper()


def ledger_record_to_bug(record: LegacyLedgerRecord, now: str) -> Bug:
    fields = record.fields
    status = fields.get("status")
    priority = fields.get("priority")
    return Bug(
        id=_usable_id(fields.get("id")) or content_id("ledger", record.index, [record.timestamp, fields]),
        timestamp=record.timestamp or now,
        category=fields.get("category") or DEFAULT_TAG,
        error=fields.get("error", ""),
        solution=fields.get("solution", ""),
        status=status if status in STATUSES else "Open",
        priority=priority if priority in PRIORITIES else None,
        author=fields.get("author") or None,
    )


def array_record_to_bug(record: LegacyArrayRecord, now: str) -> Bug:
    payload = dict(record.payload)
    payload["id"] = _usable_id(payload.get("id")) or content_id("array", record.index, record.payload)
    if not payload.get("timestamp"):
        payload["timestamp"] = now
    return bug_from_dict(payload)
