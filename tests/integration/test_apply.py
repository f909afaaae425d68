"""Integration tests for the apply step and the JSON member store."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple
from unittest.mock import MagicMock, patch

import pytest

from memberlink.matching import assign
from memberlink.models import FolderRecord, MemberRecord
from memberlink.operations import (
    ApplyService,
    JsonMemberStore,
    MemberUpdater,
    build_update_fields,
    select_auto_apply,
    select_for_review,
)


class RecordingUpdater(MemberUpdater):
    """Updater that records calls and fails for chosen member ids."""

    def __init__(self, fail_ids=(), fail_times: int = 0) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_ids = set(fail_ids)
        self.fail_times = fail_times

    def update_member(self, member_id: str, fields: Dict[str, Any]) -> None:
        self.calls.append((member_id, fields))
        if member_id in self.fail_ids:
            raise ConnectionError("CRM unavailable")
        if self.fail_times > 0:
            self.fail_times -= 1
            raise TimeoutError("timed out")


@pytest.fixture
def linkage_result():
    """One auto-safe suggestion (1001) and one flagged suggestion (1002)."""
    folders = [
        FolderRecord(id="f1", raw_name="Smith, John ClientID: 1001", file_count=4, subfolder_count=1),
        FolderRecord(id="f2", raw_name="Jane Doe", file_count=2),
    ]
    members = [
        MemberRecord(member_id="1001", first_name="John", last_name="Smith"),
        MemberRecord(member_id="1002", first_name="Jane", last_name="Doe"),
    ]
    return assign(folders, members)


# =============================================================================
# Selection Helpers
# =============================================================================

@pytest.mark.integration
class TestSelection:
    """Tests for choosing which suggestions to commit."""

    def test_select_auto_apply(self, linkage_result):
        selected = select_auto_apply(linkage_result)
        assert [s.member.member_id for s in selected] == ["1001"]

    def test_select_for_review(self, linkage_result):
        flagged = select_for_review(linkage_result)
        assert [s.member.member_id for s in flagged] == ["1002"]

    def test_build_update_fields(self, linkage_result):
        synced_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        fields = build_update_fields(linkage_result.suggestions[0], synced_at)

        assert fields == {
            "linkedFolderId": "f1",
            "linkedFolderName": "Smith, John ClientID: 1001",
            "folderSyncStatus": "Matched",
            "folderSyncDate": "2024-05-01T12:00:00+00:00",
            "folderMatchConfidence": 100,
            "folderMatchType": "exact",
            "folderFileCount": 4,
            "folderSubfolderCount": 1,
        }


# =============================================================================
# ApplyService
# =============================================================================

@pytest.mark.integration
class TestApplyService:
    """Tests for committing suggestions."""

    def test_applies_each_suggestion(self, linkage_result):
        updater = RecordingUpdater()
        summary = ApplyService(updater).apply(linkage_result.suggestions)

        assert summary.attempted == 2
        assert summary.applied == 2
        assert summary.errors == 0
        assert [call[0] for call in updater.calls] == ["1001", "1002"]
        assert all(o.attempts == 1 for o in summary.outcomes)

    def test_failure_recorded_and_batch_continues(self, linkage_result):
        updater = RecordingUpdater(fail_ids={"1001"})
        summary = ApplyService(updater).apply(linkage_result.suggestions)

        assert summary.applied == 1
        assert summary.errors == 1
        failed = summary.outcomes[0]
        assert failed.status == "error"
        assert failed.reason == "ConnectionError: CRM unavailable"
        assert summary.outcomes[1].applied

    def test_retry_until_success(self, linkage_result):
        updater = RecordingUpdater(fail_times=1)
        summary = ApplyService(updater, max_attempts=2).apply(linkage_result.suggestions[:1])

        outcome = summary.outcomes[0]
        assert outcome.applied
        assert outcome.attempts == 2
        assert outcome.reason is None

    def test_retries_exhausted(self, linkage_result):
        updater = RecordingUpdater(fail_ids={"1001"})
        summary = ApplyService(updater, max_attempts=3).apply(linkage_result.suggestions[:1])

        assert summary.outcomes[0].attempts == 3
        assert len(updater.calls) == 3
        assert summary.errors == 1

    def test_dry_run_never_calls_updater(self, linkage_result):
        updater = RecordingUpdater()
        summary = ApplyService(updater, dry_run=True).apply(linkage_result.suggestions)

        assert updater.calls == []
        assert summary.dry_run
        assert summary.applied == 2

    def test_progress_callback(self, linkage_result):
        callback = MagicMock()
        ApplyService(RecordingUpdater(), progress_callback=callback).apply(linkage_result.suggestions)

        assert callback.call_count == 2
        completed, total, outcome = callback.call_args[0]
        assert (completed, total) == (2, 2)
        assert outcome.member_id == "1002"

    def test_empty_batch(self):
        summary = ApplyService(RecordingUpdater()).apply([])
        assert (summary.attempted, summary.applied, summary.errors) == (0, 0, 0)

    @pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"retry_delay": -1}])
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            ApplyService(RecordingUpdater(), **kwargs)

    def test_base_updater_not_implemented(self, linkage_result):
        summary = ApplyService(MemberUpdater()).apply(linkage_result.suggestions[:1])
        assert summary.outcomes[0].reason.startswith("NotImplementedError")


# =============================================================================
# JsonMemberStore
# =============================================================================

@pytest.mark.integration
class TestJsonMemberStore:
    """Tests for the file-backed member store."""

    def test_update_written_to_disk(self, members_json: Path):
        store = JsonMemberStore(members_json)
        store.update_member("1002", {"linkedFolderId": "f2"})

        document = json.loads(members_json.read_text())
        record = next(m for m in document["members"] if m["memberId"] == "1002")
        assert record["linkedFolderId"] == "f2"
        assert record["firstName"] == "Jane"

    def test_list_layout_preserved(self, temp_dir: Path):
        path = temp_dir / "members.json"
        path.write_text(json.dumps([{"memberId": "1", "firstName": "A", "lastName": "B"}]))

        JsonMemberStore(path).update_member("1", {"folderSyncStatus": "Matched"})

        document = json.loads(path.read_text())
        assert isinstance(document, list)
        assert document[0]["folderSyncStatus"] == "Matched"

    def test_unknown_member(self, members_json: Path):
        store = JsonMemberStore(members_json)
        with pytest.raises(KeyError):
            store.update_member("9999", {"x": 1})

    def test_get_member(self, members_json: Path):
        assert JsonMemberStore(members_json).get_member("1001")["lastName"] == "Smith"

    def test_requires_json(self, temp_dir: Path):
        path = temp_dir / "members.csv"
        path.write_text("memberId,firstName,lastName\n")
        with pytest.raises(ValueError):
            JsonMemberStore(path)

    def test_requires_member_list(self, temp_dir: Path):
        path = temp_dir / "members.json"
        path.write_text(json.dumps({"count": 0}))
        with pytest.raises(ValueError):
            JsonMemberStore(path)

    def test_no_temp_files_left(self, members_json: Path):
        JsonMemberStore(members_json).update_member("1001", {"x": 1})
        leftovers = [p for p in members_json.parent.iterdir() if p.name.startswith(".memberlink_")]
        assert leftovers == []

    def test_failed_write_not_committed_by_later_update(self, members_json: Path, linkage_result):
        store = JsonMemberStore(members_json)
        real_write = store._write
        calls = []

        def write_failing_once():
            calls.append(1)
            if len(calls) == 1:
                raise OSError("disk full")
            real_write()

        with patch.object(store, "_write", side_effect=write_failing_once):
            summary = ApplyService(store).apply(linkage_result.suggestions)

        assert [o.member_id for o in summary.outcomes if not o.applied] == ["1001"]
        assert summary.outcomes[0].reason == "OSError: disk full"
        document = json.loads(members_json.read_text())
        linked = {m["memberId"]: m.get("linkedFolderId") for m in document["members"]}
        assert linked["1001"] is None
        assert linked["1002"] == "f2"
        assert "linkedFolderId" not in store.get_member("1001")

    def test_apply_through_store(self, members_json: Path, linkage_result):
        summary = ApplyService(JsonMemberStore(members_json)).apply(linkage_result.suggestions)

        assert summary.applied == 2
        document = json.loads(members_json.read_text())
        linked = {m["memberId"]: m.get("linkedFolderId") for m in document["members"]}
        assert linked["1001"] == "f1"
        assert linked["1002"] == "f2"
        assert linked["4521"] is None
