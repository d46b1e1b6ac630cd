"""Bulk resolve: select bugs by id, category and status, then toggle each.

Toggling flips Open <-> Resolved. An optional IssueSync hook is told about
every flip; its failures never stop the batch. A sync that raises is
logged as a warning here. A sync that reports failure logs its own detail.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from bugbook.codec import RecordDecodeError
from bugbook.models import Bug
from bugbook.store_base import OpResult
from bugbook.types import STATUSES, BugStatus
from bugbook.validation import validate_bug_id

if TYPE_CHECKING:
    from bugbook.core import BugStore

logger = logging.getLogger(__name__)


class InvalidBugIdError(ValueError):
    """One or more ids are not 1-8 hex characters. Nothing was changed."""

    def __init__(self, ids: Sequence[str]) -> None:
        self.ids = list(ids)
        super().__init__(f"Invalid bug ID format: {', '.join(self.ids)}")


class IssueSync(Protocol):
    """Mirrors status changes to an external tracker."""

    def on_resolve(self, bug: Bug) -> OpResult: ...

    def on_reopen(self, bug: Bug) -> OpResult: ...


@dataclass
class ResolveOutcome:
    bug_id: str
    success: bool
    new_status: BugStatus
    error: str | None = None
    sync: OpResult | None = None


@dataclass
class ResolveReport:
    candidates: list[Bug] = field(default_factory=list)
    outcomes: list[ResolveOutcome] = field(default_factory=list)
    missing_ids: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> list[ResolveOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[ResolveOutcome]:
        return [o for o in self.outcomes if not o.success]


def toggle_status(status: str) -> BugStatus:
    return "Open" if status == "Resolved" else "Resolved"


def select_candidates(
    bugs: Iterable[Bug],
    *,
    ids: Sequence[str] = (),
    all_tagged: str | None = None,
    all_status: str | None = None,
) -> tuple[list[Bug], list[str]]:
    """Pick the bugs a bulk resolve would touch. Returns (selected, missing_ids).

    Explicit ids and the category match are unioned; the status filter then
    narrows that set, or the whole collection when neither was given.
    Unknown status values are ignored.
    """
    by_id = {b.id.upper(): b for b in bugs}
    status = all_status if all_status in STATUSES else None

    selected: dict[str, Bug] = {}
    missing: list[str] = []
    for raw in ids:
        bug = by_id.get(raw.upper())
        if bug is None:
            missing.append(raw)
        else:
            selected.setdefault(bug.id.upper(), bug)
    if all_tagged:
        tag = all_tagged.strip().lower()
        for key, bug in by_id.items():
            if bug.category.lower() == tag:
                selected.setdefault(key, bug)

    if not ids and not all_tagged:
        if status is None:
            return [], missing
        pool = list(by_id.values())
    else:
        pool = list(selected.values())
    if status is not None:
        pool = [b for b in pool if b.status == status]
    return pool, missing


def resolve_bug(store: BugStore, bug: Bug, sync: IssueSync | None = None) -> ResolveOutcome:
    """Toggle one bug, notify *sync* and save."""
    new_status = toggle_status(bug.status)
    bug.status = new_status
    sync_result: OpResult | None = None
    if sync is not None:
        try:
            sync_result = sync.on_resolve(bug) if new_status == "Resolved" else sync.on_reopen(bug)
        except Exception as exc:
            logger.warning("Issue sync failed for %s: %s", bug.id, exc, extra={"bug_id": bug.id, "error": str(exc)})
            sync_result = OpResult(False, str(exc))
        else:
            if not sync_result.success:
                logger.debug("Issue sync for %s: %s", bug.id, sync_result.message, extra={"bug_id": bug.id})
    try:
        store.save_bug(bug)
    except (OSError, ValueError) as exc:
        logger.error("Failed to save %s: %s", bug.id, exc, extra={"bug_id": bug.id, "error": str(exc)})
        return ResolveOutcome(bug.id, False, new_status, error=str(exc), sync=sync_result)
    logger.info("Bug %s is now %s", bug.id, new_status, extra={"bug_id": bug.id})
    return ResolveOutcome(bug.id, True, new_status, sync=sync_result)


def bulk_resolve(
    store: BugStore,
    *,
    ids: Sequence[str] = (),
    all_tagged: str | None = None,
    all_status: str | None = None,
    skip_confirm: bool = False,
    confirm: Callable[[list[Bug]], bool] | None = None,
    sync: IssueSync | None = None,
) -> ResolveReport:
    """Toggle every selected bug. Returns a report; raises only for bad ids.

    Every id is format-checked before anything is read. Selecting more than
    one bug needs ``confirm(candidates)`` to return True unless
    *skip_confirm* is set.
    """
    bad = [i for i in ids if not validate_bug_id(i)]
    if bad:
        raise InvalidBugIdError(bad)

    report = ResolveReport()
    if ids and not all_tagged and all_status is None:
        bugs = []
        for bug_id in ids:
            try:
                bug = store.get_bug(bug_id)
            except RecordDecodeError as exc:
                logger.warning("Skipping unreadable bug %s: %s", bug_id, exc, extra={"bug_id": bug_id})
                bug = None
            if bug is not None:
                bugs.append(bug)
    else:
        bugs = store.list_bugs()

    report.candidates, report.missing_ids = select_candidates(
        bugs, ids=ids, all_tagged=all_tagged, all_status=all_status
    )
    for bug_id in report.missing_ids:
        logger.warning("Bug %s not found", bug_id, extra={"bug_id": bug_id})

    if len(report.candidates) > 1 and not skip_confirm and (confirm is None or not confirm(report.candidates)):
        report.cancelled = True
        logger.info("Bulk resolve of %d bugs cancelled", len(report.candidates))
        return report

    for bug in report.candidates:
        report.outcomes.append(resolve_bug(store, bug, sync))
    return report
