"""Performance Tracker — per-agent measurements recorded against a session."""

from __future__ import annotations

import logging

from team_consensus.coordination.errors import ValidationError, store_errors
from team_consensus.coordination.schema import PerformanceMetric
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore

logger = logging.getLogger(__name__)

PERFORMANCE = "agent_performance"


class PerformanceTracker:
    """Appends agent performance metrics."""

    def __init__(self, store: RecordStore, registry: SessionRegistry) -> None:
        self.store = store
        self.registry = registry

    def track(
        self,
        agent_id: str,
        session_id: str,
        metric_type: str,
        metric_value: float,
        context: str = "",
    ) -> PerformanceMetric:
        """Record one metric value (e.g. ``response_time_ms``) for an agent."""
        if not agent_id:
            raise ValidationError("agent_id is required")
        if not metric_type:
            raise ValidationError("metric_type is required")
        try:
            value = float(metric_value)
        except (TypeError, ValueError):
            raise ValidationError(f"metric_value must be numeric, got {metric_value!r}") from None

        self.registry.require(session_id)

        with store_errors("Track agent performance"):
            record = self.store.insert(PERFORMANCE, {
                "agent_id": agent_id,
                "team_session_id": session_id,
                "metric_type": metric_type,
                "metric_value": value,
                "measurement_context": context or "",
            })

        logger.debug(
            "Metric tracked: agent=%s session=%s %s=%s", agent_id, session_id, metric_type, value
        )
        return PerformanceMetric.model_validate(record)

    def list_for_session(self, session_id: str) -> list[PerformanceMetric]:
        with store_errors("List performance metrics"):
            rows = self.store.select(PERFORMANCE, {"team_session_id": session_id})
        return [PerformanceMetric.model_validate(r) for r in rows]
