"""Filtering, sorting and limiting over an in-memory list of bugs.

Everything here is a pure function of its inputs. Options arrive as raw
strings from the CLI; values outside the allowed sets are dropped rather
than rejected, so ``--priority Critical`` simply applies no priority filter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime

from bugbook.models import Bug
from bugbook.types import PRIORITIES, SORT_KEYS, STATUSES, BugStatus, Priority, SortKey, SortOrder

logger = logging.getLogger(__name__)

DEFAULT_LIST_COUNT = 5
PRIORITY_RANK: dict[str, int] = {"Low": 1, "Medium": 2, "High": 3}

# toLocaleString() output written by the oldest ledger format
_LEGACY_TIMESTAMP_FORMATS = ("%m/%d/%Y, %I:%M:%S %p", "%d/%m/%Y, %H:%M:%S", "%m/%d/%Y, %H:%M:%S")


@dataclass(frozen=True)
class ListOptions:
    status: BugStatus | None = None
    priority: Priority | None = None
    tagged: str | None = None
    author: str | None = None
    sort: SortKey | None = None
    order: SortOrder | None = None
    limit: int | None = None

    @classmethod
    def from_strings(
        cls,
        *,
        status: str | None = None,
        priority: str | None = None,
        tagged: str | None = None,
        author: str | None = None,
        sort: str | None = None,
        order: str | None = None,
        limit: str | int | None = None,
    ) -> ListOptions:
        """Build options from raw flag values, dropping anything unrecognized."""
        parsed_limit: int | None = None
        if limit is not None:
            try:
                parsed_limit = int(limit)
            except (TypeError, ValueError):
                logger.debug("Ignoring non-numeric limit %r", limit)
            if parsed_limit is not None and parsed_limit <= 0:
                parsed_limit = None
        return cls(
            status=status if status in STATUSES else None,  # type: ignore[arg-type]
            priority=priority if priority in PRIORITIES else None,  # type: ignore[arg-type]
            tagged=tagged.strip() if tagged and tagged.strip() else None,
            author=author.strip() if author and author.strip() else None,
            sort=sort if sort in SORT_KEYS else None,  # type: ignore[arg-type]
            order=order if order in ("asc", "desc") else None,  # type: ignore[arg-type]
            limit=parsed_limit,
        )

    @property
    def has_filters(self) -> bool:
        return any(v is not None for v in (self.status, self.priority, self.tagged, self.author))

    def describe_filters(self) -> str:
        parts = []
        if self.status:
            parts.append(f"status={self.status}")
        if self.priority:
            parts.append(f"priority={self.priority}")
        if self.tagged:
            parts.append(f"tagged={self.tagged}")
        if self.author:
            parts.append(f"author={self.author}")
        return ", ".join(parts)


def matches(bug: Bug, options: ListOptions) -> bool:
    if options.status is not None and bug.status != options.status:
        return False
    if options.priority is not None and bug.priority != options.priority:
        return False
    if options.tagged is not None and bug.category.lower() != options.tagged.lower():
        return False
    return options.author is None or (bug.author is not None and options.author.lower() in bug.author.lower())


def created_at(bug: Bug) -> float:
    """Creation time as a POSIX timestamp; unparseable timestamps sort oldest."""
    try:
        dt = datetime.fromisoformat(bug.timestamp)
    except ValueError:
        for fmt in _LEGACY_TIMESTAMP_FORMATS:
            try:
                dt = datetime.strptime(bug.timestamp, fmt)
                break
            except ValueError:
                continue
        else:
            return float("-inf")
    # Naive values are local time, which is what timestamp() assumes.
    return dt.timestamp()


def sort_bugs(bugs: Iterable[Bug], key: SortKey | None = None, order: SortOrder | None = None) -> list[Bug]:
    """Sort by *key*. Default key is creation date; default order is
    descending for every key except ``dueDate``, which is soonest first.
    Bugs without a due date always come after those with one.
    """
    items = list(bugs)
    if key == "dueDate":
        reverse = order == "desc"
        dated = sorted((b for b in items if b.due_date), key=lambda b: b.due_date or "", reverse=reverse)
        return dated + [b for b in items if not b.due_date]

    reverse = order != "asc"
    if key == "priority":
        return sorted(items, key=lambda b: PRIORITY_RANK.get(b.priority or "", 0), reverse=reverse)
    if key == "status":
        return sorted(items, key=lambda b: b.status, reverse=reverse)
    if key == "id":
        return sorted(items, key=lambda b: b.id, reverse=reverse)
    return sorted(items, key=created_at, reverse=reverse)


def query_bugs(bugs: Sequence[Bug], options: ListOptions) -> list[Bug]:
    """Filter, sort and limit.

    With a filter or explicit limit, every match is sorted and the limit (if
    any) applied. With neither, only the DEFAULT_LIST_COUNT most recent bugs
    are shown, ordered by the requested sort.
    """
    matched = [b for b in bugs if matches(b, options)]
    if options.has_filters or options.limit is not None:
        ordered = sort_bugs(matched, options.sort, options.order)
        return ordered[: options.limit] if options.limit is not None else ordered
    recent = sort_bugs(matched)[:DEFAULT_LIST_COUNT]
    return sort_bugs(recent, options.sort, options.order)


def is_overdue(bug: Bug, today: date | None = None) -> bool:
    """Unresolved and due strictly before *today* (local date)."""
    if not bug.due_date or bug.status == "Resolved":
        return False
    try:
        due = date.fromisoformat(bug.due_date)
    except ValueError:
        return False
    return due < (today or date.today())


def get_overdue(bugs: Iterable[Bug], today: date | None = None) -> list[Bug]:
    return [b for b in bugs if is_overdue(b, today)]
