"""
Tests for the Record Store — the durable store contract.

Validates:
- Insert assigns ids and column defaults
- Update by id (and failure on a missing id)
- Equality filters and created_after windows
- Column-name mapping for the reserved ``metadata`` column
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from team_consensus.store.service import RecordStore, StoreError


class TestRecordStore:
    """Insert / update / select over named collections."""

    def setup_method(self):
        self.store = RecordStore("sqlite://")
        self.store.initialize()

    def _session(self, name: str = "Test", **extra) -> dict:
        return self.store.insert("team_sessions", {
            "session_name": name,
            "coordinator_agent": "AICommander",
            **extra,
        })

    def test_insert_assigns_id_and_defaults(self):
        record = self._session()
        assert len(record["id"]) == 36
        assert record["status"] == "active"
        assert record["metadata"] == {}
        assert record["created_at"] is not None

    def test_metadata_column_round_trip(self):
        record = self._session(metadata={"created_with": "tests"})
        rows = self.store.select("team_sessions", {"id": record["id"]})
        assert rows[0]["metadata"] == {"created_with": "tests"}

    def test_update(self):
        record = self._session()
        self.store.update("team_sessions", record["id"], {"status": "completed"})
        rows = self.store.select("team_sessions", {"id": record["id"]})
        assert rows[0]["status"] == "completed"

    def test_update_missing_record_fails(self):
        with pytest.raises(StoreError):
            self.store.update("team_sessions", "missing", {"status": "completed"})

    def test_select_filters(self):
        first = self._session("one")
        self._session("two")
        rows = self.store.select("team_sessions", {"session_name": "one"})
        assert [r["id"] for r in rows] == [first["id"]]

    def test_select_no_match_is_empty(self):
        assert self.store.select("agent_contributions", {"team_session_id": "nope"}) == []

    def test_select_created_after(self):
        old = datetime.now(timezone.utc) - timedelta(days=10)
        self._session("old", created_at=old)
        recent = self._session("recent")

        rows = self.store.select(
            "team_sessions",
            created_after=datetime.now(timezone.utc) - timedelta(days=7),
        )
        assert [r["id"] for r in rows] == [recent["id"]]

    def test_unknown_collection(self):
        with pytest.raises(StoreError):
            self.store.insert("votes", {"x": 1})

    def test_unknown_field(self):
        with pytest.raises(StoreError):
            self._session(unexpected="value")
