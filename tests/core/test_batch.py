"""Tests for bulk resolve: selection, confirmation, per-item failures and sync hooks."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from bugbook.core import BugStore
from bugbook.models import Bug
from bugbook.resolve import (
    InvalidBugIdError,
    bulk_resolve,
    resolve_bug,
    select_candidates,
    toggle_status,
)
from bugbook.store_base import OpResult


class RecordingSync:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.resolved: list[str] = []
        self.reopened: list[str] = []

    def on_resolve(self, bug: Bug) -> OpResult:
        if self.fail:
            raise RuntimeError("tracker down")
        self.resolved.append(bug.id)
        return OpResult(True, "closed")

    def on_reopen(self, bug: Bug) -> OpResult:
        if self.fail:
            raise RuntimeError("tracker down")
        self.reopened.append(bug.id)
        return OpResult(True, "reopened")


def _status(store: BugStore, bug_id: str) -> str:
    bug = store.get_bug(bug_id)
    assert bug is not None
    return bug.status


class TestToggle:
    def test_toggle(self) -> None:
        assert toggle_status("Open") == "Resolved"
        assert toggle_status("Resolved") == "Open"


class TestSelectCandidates:
    def test_ids_and_tag_are_unioned(self, populated_store: BugStore) -> None:
        selected, missing = select_candidates(populated_store.list_bugs(), ids=["dddd0004"], all_tagged="backend")
        assert {b.id for b in selected} == {"AAAA0001", "CCCC0003", "DDDD0004"}
        assert missing == []

    def test_duplicate_ids_selected_once(self, populated_store: BugStore) -> None:
        selected, _ = select_candidates(populated_store.list_bugs(), ids=["AAAA0001", "aaaa0001"])
        assert [b.id for b in selected] == ["AAAA0001"]

    def test_status_narrows_selection(self, populated_store: BugStore) -> None:
        selected, _ = select_candidates(
            populated_store.list_bugs(), ids=["BBBB0002"], all_tagged="Backend", all_status="Open"
        )
        assert {b.id for b in selected} == {"AAAA0001", "CCCC0003"}

    def test_status_alone_applies_to_everything(self, populated_store: BugStore) -> None:
        selected, _ = select_candidates(populated_store.list_bugs(), all_status="Resolved")
        assert [b.id for b in selected] == ["BBBB0002"]

    def test_missing_ids_reported(self, populated_store: BugStore) -> None:
        selected, missing = select_candidates(populated_store.list_bugs(), ids=["AAAA0001", "FFFF9999"])
        assert [b.id for b in selected] == ["AAAA0001"]
        assert missing == ["FFFF9999"]

    def test_nothing_requested_selects_nothing(self, populated_store: BugStore) -> None:
        assert select_candidates(populated_store.list_bugs()) == ([], [])


class TestBulkResolve:
    def test_single_id_needs_no_confirmation(self, populated_store: BugStore) -> None:
        report = bulk_resolve(populated_store, ids=["AAAA0001"])
        assert not report.cancelled
        assert [o.new_status for o in report.succeeded] == ["Resolved"]
        assert _status(populated_store, "AAAA0001") == "Resolved"

    def test_toggle_back_to_open(self, populated_store: BugStore) -> None:
        bulk_resolve(populated_store, ids=["BBBB0002"])
        assert _status(populated_store, "BBBB0002") == "Open"

    def test_malformed_id_aborts_before_any_change(self, populated_store: BugStore) -> None:
        with pytest.raises(InvalidBugIdError) as exc_info:
            bulk_resolve(populated_store, ids=["AAAA0001", "not-an-id"], skip_confirm=True)
        assert exc_info.value.ids == ["not-an-id"]
        assert _status(populated_store, "AAAA0001") == "Open"

    def test_missing_id_does_not_stop_the_batch(self, populated_store: BugStore) -> None:
        report = bulk_resolve(populated_store, ids=["AAAA0001", "FFFF9999", "CCCC0003"], skip_confirm=True)
        assert report.missing_ids == ["FFFF9999"]
        assert {o.bug_id for o in report.succeeded} == {"AAAA0001", "CCCC0003"}
        assert _status(populated_store, "CCCC0003") == "Resolved"

    def test_multiple_candidates_without_confirm_cancel(self, populated_store: BugStore) -> None:
        report = bulk_resolve(populated_store, all_tagged="Backend")
        assert report.cancelled
        assert report.outcomes == []
        assert _status(populated_store, "AAAA0001") == "Open"

    def test_declined_confirmation_cancels(self, populated_store: BugStore) -> None:
        seen: list[int] = []

        def decline(candidates: list[Bug]) -> bool:
            seen.append(len(candidates))
            return False

        report = bulk_resolve(populated_store, all_tagged="Backend", confirm=decline)
        assert seen == [2]
        assert report.cancelled
        assert _status(populated_store, "CCCC0003") == "Open"

    def test_accepted_confirmation_proceeds(self, populated_store: BugStore) -> None:
        report = bulk_resolve(populated_store, all_status="Open", confirm=lambda _: True)
        assert len(report.succeeded) == 3
        assert all(b.status == "Resolved" for b in populated_store.list_bugs() if b.id != "BBBB0002")

    def test_skip_confirm(self, populated_store: BugStore) -> None:
        report = bulk_resolve(populated_store, all_tagged="backend", skip_confirm=True)
        assert len(report.succeeded) == 2

    def test_save_failure_is_per_item(self, populated_store: BugStore) -> None:
        original = populated_store.save_bug

        def flaky_save(bug: Bug) -> None:
            if bug.id == "AAAA0001":
                raise OSError("disk full")
            original(bug)

        with patch.object(populated_store, "save_bug", side_effect=flaky_save):
            report = bulk_resolve(populated_store, all_tagged="Backend", skip_confirm=True)
        assert [o.bug_id for o in report.failed] == ["AAAA0001"]
        assert report.failed[0].error == "disk full"
        assert [o.bug_id for o in report.succeeded] == ["CCCC0003"]


class TestSyncHook:
    def test_resolve_and_reopen_notify_sync(self, populated_store: BugStore) -> None:
        sync = RecordingSync()
        bulk_resolve(populated_store, ids=["AAAA0001", "BBBB0002"], skip_confirm=True, sync=sync)
        assert sync.resolved == ["AAAA0001"]
        assert sync.reopened == ["BBBB0002"]

    def test_sync_failure_still_saves(self, populated_store: BugStore) -> None:
        bug = populated_store.get_bug("AAAA0001")
        assert bug is not None
        outcome = resolve_bug(populated_store, bug, RecordingSync(fail=True))
        assert outcome.success
        assert outcome.sync is not None and not outcome.sync.success
        assert _status(populated_store, "AAAA0001") == "Resolved"


class TestLegacyRecords:
    def test_loose_due_date_does_not_block_resolve(self, store: BugStore) -> None:
        (store.bugs_dir / "BUG-ABCD1234.json").write_text(
            '{"id": "ABCD1234", "timestamp": "2024-01-01T00:00:00Z", "category": "General",'
            ' "error": "Old bug", "solution": "", "status": "Open", "dueDate": "2024/01/15"}',
            encoding="utf-8",
        )
        report = bulk_resolve(store, ids=["ABCD1234"])
        assert [o.new_status for o in report.succeeded] == ["Resolved"]
        assert report.failed == []
        bug = store.get_bug("ABCD1234")
        assert bug is not None
        assert bug.status == "Resolved"
        assert bug.due_date == "2024/01/15"
