"""
Tests for the Team Coordination Service — the public operation boundary.

Validates:
- Every operation returns an OperationResult (no taxonomy error escapes)
- Failure variants map to validation / not found / persistence kinds
- The ``{success, ...}`` wire shape
- A complete development workflow
"""

from __future__ import annotations

from team_consensus.coordination.errors import NotFoundError, ValidationError
from team_consensus.coordination.results import ErrorKind, OperationResult, classify
from team_consensus.coordination.service import TeamCoordinationService
from team_consensus.store.service import RecordStore, StoreError


class BrokenStore(RecordStore):
    """Store whose reads and writes all fail."""

    def insert(self, collection, record):
        raise StoreError("connection refused")

    def select(self, collection, filters=None, created_after=None):
        raise StoreError("connection refused")


class TestOperationResult:

    def test_ok_shape(self):
        result = OperationResult.ok(session_id="s-1")
        assert result.to_dict() == {"success": True, "session_id": "s-1"}

    def test_failure_shape(self):
        result = OperationResult.failure(NotFoundError("Team session not found", session_id="s-1"))
        assert result.to_dict() == {
            "success": False,
            "error": "Team session not found",
            "error_kind": "not_found",
            "session_id": "s-1",
        }

    def test_classify(self):
        assert classify(ValidationError("bad")) == ErrorKind.VALIDATION
        assert classify(NotFoundError("missing")) == ErrorKind.NOT_FOUND


class TestTeamCoordinationService:

    def setup_method(self):
        self.store = RecordStore("sqlite://")
        self.store.initialize()
        self.service = TeamCoordinationService(self.store)

    def _session(self, name="TVRF Platform Deployment"):
        return self.service.create_team_session(name).data["session_id"]

    def test_development_workflow(self):
        session_id = self._session()

        contribution_ids = {}
        for role in ("Strategy", "SystemAnalyst", "Development", "Security", "Monitoring"):
            added = self.service.add_agent_contribution(
                session_id, f"{role}Agent_001", role, "analysis", {"role": role}, 0.9
            )
            assert added.success
            contribution_ids[role] = added.data["contribution"]["id"]

        recommendations = [
            {"agentType": "Strategy", "recommendation": "APPROVE",
             "contributionId": contribution_ids["Strategy"]},
            {"agentType": "SystemAnalyst", "recommendation": "APPROVE",
             "contributionId": contribution_ids["SystemAnalyst"]},
            {"agentType": "Development", "recommendation": "CONDITIONAL_APPROVE",
             "support": False},
            {"agentType": "Security", "recommendation": "CONDITIONAL_APPROVE", "support": False},
            {"agentType": "Monitoring", "recommendation": "APPROVE",
             "contributionId": contribution_ids["Monitoring"]},
        ]
        consensus = self.service.build_consensus(
            session_id, "Production deployment", "CRITICAL", recommendations
        )
        assert consensus.success
        assert consensus.data["consensus"] is True
        assert consensus.data["votes"] == 5
        assert consensus.data["required"] == 4
        assert consensus.data["decision"]["status"] == "approved"
        assert consensus.data["decision"]["support_percentage"] == "65.0"
        assert consensus.data["resolution_method"] == "unanimous_support"

        message = self.service.send_agent_message(
            session_id, "AICommander", None, "INFO", {"text": "approved"}
        )
        assert message.success
        assert message.data["message"]["is_broadcast"] is True

        metric = self.service.track_agent_performance(
            "StrategyAgent_001", session_id, "response_time_ms", 250
        )
        assert metric.success

        completed = self.service.complete_team_session(session_id, {"shipped": True})
        assert completed.data["session"]["status"] == "completed"

        snapshot = self.service.get_team_session(session_id)
        assert snapshot.success
        assert snapshot.data["session"]["status"] == "completed"
        assert len(snapshot.data["contributions"]) == 5
        assert len(snapshot.data["consensus"]) == 1
        assert len(snapshot.data["communications"]) == 1
        approved = {c["agent_type"]: c["is_approved"] for c in snapshot.data["contributions"]}
        assert approved["Strategy"] and not approved["Security"]

        analytics = self.service.get_team_analytics("7d")
        assert analytics.data["analytics"]["total_sessions"] == 1
        assert analytics.data["analytics"]["consensus_rate"] == "100.0"

    def test_emergency_response(self):
        result = self.service.create_emergency_response(
            "SYSTEM_FAILURE", {"component": "database", "severity": "CRITICAL"}
        )
        assert result.success
        assert result.data["emergency_session"]["session_type"] == "emergency"
        assert result.data["emergency_session"]["consensus_threshold"] == 0.8
        assert result.data["alert"]["priority"] == "CRITICAL"
        assert result.data["alert"]["team_session_id"] == result.data["session_id"]

    def test_missing_session_is_not_found(self):
        result = self.service.get_team_session("does-not-exist")
        assert not result.success
        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.data == {"session_id": "does-not-exist"}

    def test_invalid_category_is_validation(self):
        session_id = self._session()
        result = self.service.build_consensus(session_id, "Topic", "BLOCKER", [])
        assert result.error_kind == ErrorKind.VALIDATION

    def test_malformed_recommendation_is_validation(self):
        session_id = self._session()
        result = self.service.build_consensus(
            session_id, "Topic", "MAJOR", [{"recommendation": "APPROVE"}]
        )
        assert result.error_kind == ErrorKind.VALIDATION

    def test_second_completion_is_validation(self):
        session_id = self._session()
        assert self.service.complete_team_session(session_id).success
        result = self.service.complete_team_session(session_id)
        assert result.error_kind == ErrorKind.VALIDATION

    def test_non_numeric_confidence_is_validation(self):
        session_id = self._session()
        result = self.service.add_agent_contribution(
            session_id, "StrategyAgent_001", "Strategy", "analysis", {}, "high"
        )
        assert not result.success
        assert result.error_kind == ErrorKind.VALIDATION

    def test_missing_session_name_is_validation(self):
        result = self.service.create_team_session(None)
        assert result.error_kind == ErrorKind.VALIDATION

    def test_invalid_priority_is_validation(self):
        session_id = self._session()
        result = self.service.send_agent_message(
            session_id, "AICommander", None, "INFO", {}, "URGENT"
        )
        assert result.error_kind == ErrorKind.VALIDATION

    def test_store_failure_is_persistence(self):
        service = TeamCoordinationService(BrokenStore("sqlite://"))
        assert service.create_team_session("Test").error_kind == ErrorKind.PERSISTENCE
        assert service.get_team_analytics().error_kind == ErrorKind.PERSISTENCE

    def test_coordinator_override(self):
        service = TeamCoordinationService(self.store, coordinator_agent="OnCallLead")
        result = service.create_emergency_response("DISK_FULL")
        assert result.data["alert"]["sender_agent"] == "OnCallLead"
