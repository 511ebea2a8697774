"""
Tests for the Analytics Aggregator.

Validates:
- Pure reducers (consensus rate, average time, participation)
- Windowed reads over sessions and consensus records
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from team_consensus.coordination.analytics import (
    AnalyticsAggregator,
    calculate_agent_participation,
    calculate_average_consensus_time,
    calculate_consensus_rate,
    window_start,
)
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore


class TestReducers:

    def test_consensus_rate(self):
        records = [
            {"consensus_reached": True},
            {"consensus_reached": True},
            {"consensus_reached": False},
        ]
        assert calculate_consensus_rate(records) == "66.7"

    def test_consensus_rate_without_records(self):
        assert calculate_consensus_rate([]) == "0.0"

    def test_consensus_rate_all_reached(self):
        assert calculate_consensus_rate([{"consensus_reached": True}]) == "100.0"

    def test_average_time(self):
        records = [{"consensus_time_ms": 100}, {"consensus_time_ms": 201}]
        assert calculate_average_consensus_time(records) == 151

    def test_average_time_keeps_zero_and_skips_missing(self):
        records = [
            {"consensus_time_ms": 0},
            {"consensus_time_ms": 30},
            {"consensus_time_ms": None},
            {},
        ]
        assert calculate_average_consensus_time(records) == 15

    def test_average_time_without_records(self):
        assert calculate_average_consensus_time([]) == 0

    def test_participation(self):
        sessions = [
            {"participants": ["SystemAnalyst", "Development"]},
            {"participants": ["SystemAnalyst"]},
            {"participants": []},
        ]
        assert calculate_agent_participation(sessions) == {
            "SystemAnalyst": 2,
            "Development": 1,
        }

    @pytest.mark.parametrize("time_range,days", [("7d", 7), ("30d", 30)])
    def test_window_start(self, time_range, days):
        now = datetime(2026, 1, 31, tzinfo=timezone.utc)
        assert window_start(time_range, now) == now - timedelta(days=days)

    def test_unknown_window_is_unbounded(self):
        assert window_start("all") is None


class TestAnalyticsAggregator:

    def setup_method(self):
        self.store = RecordStore("sqlite://")
        self.store.initialize()
        self.registry = SessionRegistry(self.store)
        self.aggregator = AnalyticsAggregator(self.store)

    def _consensus(self, session_id, reached, elapsed_ms, **extra):
        return self.store.insert("team_consensus", {
            "team_session_id": session_id,
            "decision_topic": "Topic",
            "decision_category": "MAJOR",
            "required_votes": 3,
            "consensus_reached": reached,
            "consensus_time_ms": elapsed_ms,
            **extra,
        })

    def test_empty_store(self):
        analytics = self.aggregator.team_analytics()
        assert analytics.time_range == "7d"
        assert analytics.total_sessions == 0
        assert analytics.consensus_rate == "0.0"
        assert analytics.average_consensus_time == 0
        assert analytics.agent_participation == {}

    def test_rollup(self):
        first = self.registry.create("One")
        second = self.registry.create("Two")
        self.registry.complete(first.id)
        self._consensus(first.id, True, 120)
        self._consensus(first.id, True, 80)
        self._consensus(second.id, False, 100)

        analytics = self.aggregator.team_analytics("7d")
        assert analytics.total_sessions == 2
        assert analytics.completed_sessions == 1
        assert analytics.completion_rate == 50.0
        assert analytics.consensus_rate == "66.7"
        assert analytics.average_consensus_time == 100
        assert analytics.agent_participation["Security"] == 2

    def test_window_excludes_old_records(self):
        session = self.registry.create("Recent")
        old = self.store.insert("team_sessions", {
            "session_name": "Old",
            "coordinator_agent": "AICommander",
            "participants": ["Security"],
            "created_at": datetime.now(timezone.utc) - timedelta(days=10),
        })
        self._consensus(old["id"], False, 999,
                        created_at=datetime.now(timezone.utc) - timedelta(days=10))
        self._consensus(session.id, True, 10)

        weekly = self.aggregator.team_analytics("7d")
        assert weekly.total_sessions == 1
        assert weekly.consensus_rate == "100.0"
        assert weekly.average_consensus_time == 10

        monthly = self.aggregator.team_analytics("30d")
        assert monthly.total_sessions == 2
        assert monthly.consensus_rate == "50.0"
