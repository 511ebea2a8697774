"""
Durable Store — SQLAlchemy models for the team coordination collections.

One table per record collection. Every child table references
``team_sessions`` by ``team_session_id``. Structured payloads are stored
as JSON (JSONB on PostgreSQL).

Collections:
    team_sessions        — coordination sessions (root aggregate)
    agent_contributions  — per-agent inputs and approval state
    team_consensus       — one row per consensus round, written once
    team_communications  — inter-agent messages and broadcasts
    agent_performance    — per-agent performance measurements
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all coordination models."""
    pass


class TeamSessionDB(Base):
    """
    Coordination sessions.

    Status moves only from ``active`` to ``completed``. Completion stamps
    ``completed_at`` and replaces ``metadata`` with the caller's results.
    """

    __tablename__ = "team_sessions"

    id = Column(String(36), primary_key=True, default=_new_id)
    session_name = Column(Text, nullable=False)
    session_type = Column(
        String(20), nullable=False, default="development",
        comment="development or emergency",
    )
    status = Column(
        String(20), nullable=False, default="active",
        comment="active or completed",
    )
    consensus_threshold = Column(Float, nullable=False, default=0.6)
    participants = Column(JSONType, nullable=False, default=list)
    coordinator_agent = Column(String(100), nullable=False)
    # "metadata" is reserved on declarative classes
    session_metadata = Column("metadata", JSONType, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_team_sessions_status", "status"),
        Index("ix_team_sessions_created_at", "created_at"),
    )


class AgentContributionDB(Base):
    """Agent contributions. Never deleted; only approval fields change."""

    __tablename__ = "agent_contributions"

    id = Column(String(36), primary_key=True, default=_new_id)
    team_session_id = Column(
        String(36), ForeignKey("team_sessions.id"), nullable=False, index=True,
    )
    agent_id = Column(String(100), nullable=False)
    agent_type = Column(String(50), nullable=False)
    contribution_type = Column(String(100), nullable=False)
    content = Column(JSONType, nullable=True)
    confidence_score = Column(Float, nullable=False, default=0.8)
    is_approved = Column(Boolean, nullable=False, default=False)
    approval_votes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class TeamConsensusDB(Base):
    """Consensus rounds, each persisted once with its final result."""

    __tablename__ = "team_consensus"

    id = Column(String(36), primary_key=True, default=_new_id)
    team_session_id = Column(
        String(36), ForeignKey("team_sessions.id"), nullable=False, index=True,
    )
    decision_topic = Column(Text, nullable=False)
    decision_category = Column(
        String(20), nullable=False,
        comment="CRITICAL, MAJOR or MINOR",
    )
    required_votes = Column(Integer, nullable=False)
    conflicting_opinions = Column(JSONType, nullable=False, default=list)
    consensus_reached = Column(Boolean, nullable=False, default=False)
    actual_votes = Column(Integer, nullable=False, default=0)
    final_decision = Column(JSONType, nullable=True)
    consensus_time_ms = Column(Integer, nullable=True)
    resolution_method = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_team_consensus_created_at", "created_at"),
    )


class TeamCommunicationDB(Base):
    """Inter-agent messages. A null receiver denotes a broadcast."""

    __tablename__ = "team_communications"

    id = Column(String(36), primary_key=True, default=_new_id)
    team_session_id = Column(
        String(36), ForeignKey("team_sessions.id"), nullable=False, index=True,
    )
    sender_agent = Column(String(100), nullable=False)
    receiver_agent = Column(String(100), nullable=True)
    message_type = Column(String(50), nullable=False)
    priority = Column(String(20), nullable=False, default="MEDIUM")
    content = Column(JSONType, nullable=True)
    requires_response = Column(Boolean, nullable=False, default=False)
    response_deadline = Column(
        DateTime(timezone=True), nullable=True,
        comment="Informational deadline; not enforced",
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class AgentPerformanceDB(Base):
    """Per-agent performance measurements within a session."""

    __tablename__ = "agent_performance"

    id = Column(String(36), primary_key=True, default=_new_id)
    agent_id = Column(String(100), nullable=False, index=True)
    team_session_id = Column(
        String(36), ForeignKey("team_sessions.id"), nullable=False, index=True,
    )
    metric_type = Column(String(100), nullable=False)
    metric_value = Column(Float, nullable=False)
    measurement_context = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


COLLECTIONS: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (
        TeamSessionDB,
        AgentContributionDB,
        TeamConsensusDB,
        TeamCommunicationDB,
        AgentPerformanceDB,
    )
}
