"""
Analytics Aggregator — read-only rollups over historical records.

The reducers below are pure functions over lists of stored records;
``AnalyticsAggregator`` only adds the windowed reads that feed them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from team_consensus.coordination.errors import store_errors
from team_consensus.coordination.schema import SessionStatus, TeamAnalytics
from team_consensus.store.service import RecordStore

logger = logging.getLogger(__name__)

TIME_WINDOWS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def window_start(time_range: str, now: datetime | None = None) -> datetime | None:
    """Start of the analytics window; None (unfiltered) for unknown ranges."""
    span = TIME_WINDOWS.get(time_range)
    if span is None:
        return None
    return (now or datetime.now(timezone.utc)) - span


def calculate_consensus_rate(consensus_records: list[dict[str, Any]]) -> str:
    """Percentage of rounds that reached consensus, one decimal ("0.0" if none)."""
    if not consensus_records:
        return "0.0"
    reached = sum(1 for c in consensus_records if c.get("consensus_reached"))
    rate = Decimal(reached * 100) / Decimal(len(consensus_records))
    return str(rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def calculate_average_consensus_time(consensus_records: list[dict[str, Any]]) -> int:
    """Mean consensus time over records that carry one, rounded half up."""
    times = [
        c["consensus_time_ms"] for c in consensus_records
        if c.get("consensus_time_ms") is not None
    ]
    if not times:
        return 0
    mean = Decimal(sum(times)) / Decimal(len(times))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_agent_participation(sessions: Iterable[dict[str, Any]]) -> dict[str, int]:
    """Number of sessions listing each role as a participant."""
    participation: dict[str, int] = {}
    for session in sessions:
        for agent in session.get("participants") or []:
            participation[agent] = participation.get(agent, 0) + 1
    return participation


class AnalyticsAggregator:
    """Windowed, side-effect-free team analytics."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def team_analytics(self, time_range: str = "7d") -> TeamAnalytics:
        """
        Roll up sessions and consensus rounds for ``7d``, ``30d`` or all time.

        Raises:
            PersistenceError: A store read failed.
        """
        since = window_start(time_range)
        with store_errors("Get team analytics"):
            sessions = self.store.select("team_sessions", created_after=since)
            consensus = self.store.select("team_consensus", created_after=since)

        analytics = TeamAnalytics(
            time_range=time_range,
            total_sessions=len(sessions),
            completed_sessions=sum(
                1 for s in sessions if s.get("status") == SessionStatus.COMPLETED.value
            ),
            consensus_rate=calculate_consensus_rate(consensus),
            average_consensus_time=calculate_average_consensus_time(consensus),
            agent_participation=calculate_agent_participation(sessions),
        )
        logger.debug(
            "Analytics computed: range=%s sessions=%d rounds=%d",
            time_range, len(sessions), len(consensus),
        )
        return analytics
