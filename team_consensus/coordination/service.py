"""
Team Coordination Service — the public operation boundary.

Wires the Session Registry, Contribution Ledger, Consensus Engine,
Messaging Channel, Performance Tracker and Analytics Aggregator over one
record store, and exposes each public operation as a function returning
an ``OperationResult``. Taxonomy errors never escape this surface.

Usage:
    service = TeamCoordinationService.from_url("sqlite:///./team_consensus.db")
    created = service.create_team_session("Production rollout")
    session_id = created.data["session_id"]

    service.add_agent_contribution(
        session_id, "StrategyAgent_001", "Strategy", "analysis",
        {"business_impact": "High"}, 0.95,
    )
    result = service.build_consensus(
        session_id, "Production rollout", "CRITICAL",
        [{"agentType": "Strategy", "recommendation": "APPROVE"}],
    )
"""

from __future__ import annotations

from typing import Any, Iterable

from team_consensus.config import settings
from team_consensus.coordination.analytics import AnalyticsAggregator
from team_consensus.coordination.consensus import ConsensusEngine, RecommendationInput
from team_consensus.coordination.contributions import DEFAULT_CONFIDENCE, ContributionLedger
from team_consensus.coordination.messaging import MessagingChannel
from team_consensus.coordination.performance import PerformanceTracker
from team_consensus.coordination.results import OperationResult, operation
from team_consensus.coordination.schema import (
    AgentRole,
    DecisionCategory,
    MessagePriority,
    SessionType,
)
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore


class TeamCoordinationService:
    """Facade over the coordination components."""

    def __init__(
        self,
        store: RecordStore,
        coordinator_agent: str = "AICommander",
        response_deadline_minutes: int = 5,
        default_alert_severity: str = "HIGH",
    ) -> None:
        self.store = store
        self.sessions = SessionRegistry(store, coordinator_agent=coordinator_agent)
        self.contributions = ContributionLedger(store, self.sessions)
        self.consensus = ConsensusEngine(store, self.sessions, self.contributions)
        self.messaging = MessagingChannel(
            store,
            self.sessions,
            response_deadline_minutes=response_deadline_minutes,
            default_alert_severity=default_alert_severity,
        )
        self.performance = PerformanceTracker(store, self.sessions)
        self.analytics = AnalyticsAggregator(store)

    @classmethod
    def from_url(cls, database_url: str | None = None) -> TeamCoordinationService:
        """Build a service on a freshly initialized store, using global settings."""
        store = RecordStore(database_url or settings.database_url, echo=settings.database_echo)
        store.initialize()
        return cls(
            store,
            coordinator_agent=settings.coordinator_agent,
            response_deadline_minutes=settings.response_deadline_minutes,
            default_alert_severity=settings.default_alert_severity,
        )

    # ── Sessions ────────────────────────────────────────────────

    @operation("create_team_session")
    def create_team_session(
        self,
        session_name: str,
        session_type: SessionType | str = SessionType.DEVELOPMENT,
        coordinator_agent: str | None = None,
    ) -> OperationResult:
        session = self.sessions.create(
            session_name, session_type or SessionType.DEVELOPMENT, coordinator_agent
        )
        return OperationResult.ok(
            session_id=session.id,
            session=session.model_dump(mode="json"),
        )

    @operation("get_team_session")
    def get_team_session(self, session_id: str) -> OperationResult:
        snapshot = self.sessions.get(session_id)
        return OperationResult.ok(**snapshot.model_dump(mode="json"))

    @operation("complete_team_session")
    def complete_team_session(
        self,
        session_id: str,
        results: dict[str, Any] | None = None,
    ) -> OperationResult:
        session = self.sessions.complete(session_id, results)
        return OperationResult.ok(session=session.model_dump(mode="json"))

    # ── Contributions & consensus ───────────────────────────────

    @operation("add_agent_contribution")
    def add_agent_contribution(
        self,
        session_id: str,
        agent_id: str,
        agent_type: AgentRole | str,
        contribution_type: str,
        content: Any,
        confidence_score: float = DEFAULT_CONFIDENCE,
    ) -> OperationResult:
        contribution = self.contributions.submit(
            session_id, agent_id, agent_type, contribution_type, content, confidence_score
        )
        return OperationResult.ok(contribution=contribution.model_dump(mode="json"))

    @operation("build_consensus")
    def build_consensus(
        self,
        session_id: str,
        decision_topic: str,
        decision_category: DecisionCategory | str,
        agent_recommendations: RecommendationInput | Iterable[RecommendationInput] | None,
    ) -> OperationResult:
        outcome = self.consensus.build_consensus(
            session_id, decision_topic, decision_category, agent_recommendations
        )
        return OperationResult.ok(**outcome.model_dump(mode="json"))

    # ── Messaging ───────────────────────────────────────────────

    @operation("send_agent_message")
    def send_agent_message(
        self,
        session_id: str,
        sender_agent: str,
        receiver_agent: str | None,
        message_type: str,
        content: Any,
        priority: MessagePriority | str = MessagePriority.MEDIUM,
        requires_response: bool = False,
    ) -> OperationResult:
        message = self.messaging.send(
            session_id, sender_agent, receiver_agent, message_type,
            content, priority, requires_response,
        )
        return OperationResult.ok(
            message_id=message.id,
            message=message.model_dump(mode="json"),
        )

    @operation("create_emergency_response")
    def create_emergency_response(
        self,
        alert_type: str,
        alert_data: dict[str, Any] | None = None,
    ) -> OperationResult:
        session, message = self.messaging.emergency_broadcast(alert_type, alert_data)
        return OperationResult.ok(
            session_id=session.id,
            emergency_session=session.model_dump(mode="json"),
            alert=message.model_dump(mode="json"),
        )

    # ── Performance & analytics ─────────────────────────────────

    @operation("track_agent_performance")
    def track_agent_performance(
        self,
        agent_id: str,
        session_id: str,
        metric_type: str,
        metric_value: float,
        context: str = "",
    ) -> OperationResult:
        metric = self.performance.track(agent_id, session_id, metric_type, metric_value, context)
        return OperationResult.ok(metric=metric.model_dump(mode="json"))

    @operation("get_team_analytics")
    def get_team_analytics(self, time_range: str = "7d") -> OperationResult:
        analytics = self.analytics.team_analytics(time_range or "7d")
        return OperationResult.ok(analytics=analytics.model_dump(mode="json"))
