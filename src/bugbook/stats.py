"""Aggregate counts for ``bugbook stats``."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from bugbook.models import Bug
from bugbook.query import is_overdue

UNCATEGORIZED = "Uncategorized"


@dataclass
class BugStats:
    total: int = 0
    open: int = 0
    resolved: int = 0
    overdue: int = 0
    # (category, count), most common first
    categories: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "open": self.open,
            "resolved": self.resolved,
            "overdue": self.overdue,
            "categories": dict(self.categories),
        }


def compute_stats(bugs: Iterable[Bug], today: date | None = None) -> BugStats:
    stats = BugStats()
    counts: Counter[str] = Counter()
    for bug in bugs:
        stats.total += 1
        if bug.status == "Resolved":
            stats.resolved += 1
        else:
            stats.open += 1
        if is_overdue(bug, today):
            stats.overdue += 1
        counts[bug.category or UNCATEGORIZED] += 1
    # Counter.most_common keeps first-seen order among ties
    stats.categories = counts.most_common()
    return stats
