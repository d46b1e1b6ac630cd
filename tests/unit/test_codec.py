"""Tests for the bug record JSON codec."""

from __future__ import annotations

import json

import pytest

from bugbook.codec import RecordDecodeError, decode_bug, encode_bug
from bugbook.models import Bug, Comment


class TestEncode:
    def test_omits_unset_optional_fields(self) -> None:
        payload = json.loads(encode_bug(Bug(id="ABC12345", timestamp="t", error="boom")))
        assert payload == {
            "id": "ABC12345",
            "timestamp": "t",
            "category": "General",
            "error": "boom",
            "solution": "",
            "status": "Open",
        }

    def test_due_date_uses_camel_case_key(self) -> None:
        payload = json.loads(encode_bug(Bug(id="1", due_date="2026-03-01")))
        assert payload["dueDate"] == "2026-03-01"
        assert "due_date" not in payload

    def test_non_ascii_is_written_verbatim(self) -> None:
        data = encode_bug(Bug(id="1", error="Fehler beim Öffnen"))
        assert "Öffnen".encode() in data

    def test_full_record_round_trips(self) -> None:
        bug = Bug(
            id="DEADBEEF",
            timestamp="2026-01-01T00:00:00+00:00",
            category="Backend",
            error="multi\nline",
            solution="fixed",
            status="Resolved",
            priority="High",
            files=["src/app.py"],
            due_date="2026-02-01",
            comments=[Comment(text="seen again", timestamp="2026-01-02T00:00:00+00:00", author="ada")],
            author="ada",
            github_issue_number=42,
            github_issue_url="https://github.com/o/r/issues/42",
            github_issue_closed=True,
            last_synced="2026-01-03T00:00:00+00:00",
        )
        assert decode_bug(encode_bug(bug)) == bug


class TestDecode:
    def test_unknown_status_becomes_open(self) -> None:
        bug = decode_bug(json.dumps({"id": "1", "status": "Closed"}))
        assert bug.status == "Open"

    def test_unknown_priority_is_dropped(self) -> None:
        bug = decode_bug(json.dumps({"id": "1", "priority": "Critical"}))
        assert bug.priority is None

    def test_missing_fields_get_defaults(self) -> None:
        bug = decode_bug(json.dumps({"id": "1"}))
        assert bug.category == "General"
        assert bug.error == ""
        assert bug.comments is None

    def test_malformed_comments_are_skipped(self) -> None:
        bug = decode_bug(json.dumps({"id": "1", "comments": [{"text": "ok"}, "junk", {"author": "x"}]}))
        assert bug.comments is not None
        assert [c.text for c in bug.comments] == ["ok"]

    def test_unknown_keys_survive_a_rewrite(self) -> None:
        bug = decode_bug(json.dumps({"id": "1", "severity": 3}))
        assert bug.extra == {"severity": 3}
        assert json.loads(encode_bug(bug))["severity"] == 3

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(RecordDecodeError, match="invalid JSON"):
            decode_bug(b"{not json")

    def test_non_object_raises(self) -> None:
        with pytest.raises(RecordDecodeError, match="JSON object"):
            decode_bug(b"[1, 2]")

    def test_missing_id_raises(self) -> None:
        with pytest.raises(RecordDecodeError, match="no id"):
            decode_bug(json.dumps({"error": "orphan"}))

    def test_decode_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            decode_bug(b"")
