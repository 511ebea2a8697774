"""
Coordination Schema — Pydantic models for sessions, contributions and consensus.

These models are the canonical shapes of every record the coordination
services read from and write to the durable store, plus the transient
inputs (agent recommendations) and outputs (consensus outcomes,
analytics rollups) of the public operations.

The agent role set is closed. Role weights are static configuration held
in a read-only mapping; they are never derived or adjusted at runtime.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class AgentRole(str, enum.Enum):
    """The fixed set of agent roles taking part in team coordination."""

    SYSTEM_ANALYST = "SystemAnalyst"
    DEVELOPMENT = "Development"
    MONITORING = "Monitoring"
    STRATEGY = "Strategy"
    SECURITY = "Security"


class SessionType(str, enum.Enum):
    """Session types. The type fixes the session's consensus threshold."""

    DEVELOPMENT = "development"
    EMERGENCY = "emergency"


class SessionStatus(str, enum.Enum):
    """Session lifecycle. Only ACTIVE → COMPLETED is allowed."""

    ACTIVE = "active"
    COMPLETED = "completed"


class DecisionCategory(str, enum.Enum):
    """Decision categories for a consensus round."""

    CRITICAL = "CRITICAL"  # 4/5 agents
    MAJOR = "MAJOR"  # 3/5 agents
    MINOR = "MINOR"  # 2/5 agents


class ResolutionMethod(str, enum.Enum):
    """How a consensus round was resolved."""

    UNANIMOUS_SUPPORT = "unanimous_support"
    MAJORITY_SUPPORT = "majority_support"
    INSUFFICIENT_SUPPORT = "insufficient_support"


class DecisionStatus(str, enum.Enum):
    """Status carried by the decision object of a consensus round."""

    APPROVED = "approved"
    CONDITIONAL_APPROVAL = "conditional_approval"
    REJECTED = "rejected"


class MessagePriority(str, enum.Enum):
    """Priority of an inter-agent message."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# ════════════════════════════════════════════════════════════════
# Static configuration
# ════════════════════════════════════════════════════════════════

ROLE_WEIGHTS: Mapping[AgentRole, Decimal] = MappingProxyType({
    AgentRole.SYSTEM_ANALYST: Decimal("0.25"),
    AgentRole.DEVELOPMENT: Decimal("0.25"),
    AgentRole.MONITORING: Decimal("0.20"),
    AgentRole.STRATEGY: Decimal("0.20"),
    AgentRole.SECURITY: Decimal("0.10"),
})

# Weight for a role string outside AgentRole. Candidate for stricter validation.
DEFAULT_ROLE_WEIGHT = Decimal("0.2")

SESSION_THRESHOLDS: Mapping[SessionType, float] = MappingProxyType({
    SessionType.DEVELOPMENT: 0.6,
    SessionType.EMERGENCY: 0.8,
})

CATEGORY_FRACTIONS: Mapping[DecisionCategory, Decimal] = MappingProxyType({
    DecisionCategory.CRITICAL: Decimal("0.8"),
    DecisionCategory.MAJOR: Decimal("0.6"),
    DecisionCategory.MINOR: Decimal("0.4"),
})

# Ratio classification bounds, independent of category and session threshold
APPROVAL_RATIO = Decimal("0.6")
CONDITIONAL_RATIO = Decimal("0.4")

APPROVE_LABEL = "APPROVE"
ALERT_MESSAGE_TYPE = "ALERT"


def parse_role(value: AgentRole | str) -> AgentRole | str:
    """Return the AgentRole for ``value``, or the raw string if it is not one."""
    if isinstance(value, AgentRole):
        return value
    try:
        return AgentRole(value)
    except ValueError:
        return value


def role_weight(role: AgentRole | str) -> Decimal:
    """Static weight of a role; unknown roles get DEFAULT_ROLE_WEIGHT."""
    resolved = parse_role(role)
    if isinstance(resolved, AgentRole):
        return ROLE_WEIGHTS[resolved]
    return DEFAULT_ROLE_WEIGHT


def role_label(role: AgentRole | str) -> str:
    return role.value if isinstance(role, AgentRole) else str(role)


# ════════════════════════════════════════════════════════════════
# Stored records
# ════════════════════════════════════════════════════════════════


class TeamSession(BaseModel):
    """
    A coordination session — the root aggregate every other record references.

    Created once by the Session Registry and mutated only by completion.
    """

    id: str
    session_name: str
    session_type: SessionType = SessionType.DEVELOPMENT
    status: SessionStatus = SessionStatus.ACTIVE
    consensus_threshold: float = Field(
        description="Stored per-type threshold; not read by ratio classification"
    )
    participants: list[AgentRole] = Field(default_factory=lambda: list(AgentRole))
    coordinator_agent: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @computed_field
    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE


class AgentContribution(BaseModel):
    """One agent's stored input to a session."""

    id: str
    team_session_id: str
    agent_id: str
    agent_type: AgentRole
    contribution_type: str
    content: Any = Field(description="Arbitrary structured payload, stored verbatim")
    confidence_score: float = Field(default=0.8, ge=0.0, le=1.0)
    is_approved: bool = False
    approval_votes: int = 0
    created_at: datetime | None = None


class ConflictCluster(BaseModel):
    """A group of agents sharing the same (recommendation, support) position."""

    position: str
    support: bool | None = None
    agents: list[str] = Field(default_factory=list)


class ConsensusDecision(BaseModel):
    """Decision object stored with every consensus record."""

    status: DecisionStatus
    supporting_agents: list[str] = Field(default_factory=list)
    opposing_agents: list[str] = Field(default_factory=list)
    support_percentage: str = Field(description="Weighted support × 100, one decimal")


class ConsensusRecord(BaseModel):
    """One decision request within a session, written exactly once."""

    id: str
    team_session_id: str
    decision_topic: str
    decision_category: DecisionCategory
    required_votes: int
    conflicting_opinions: list[ConflictCluster] = Field(default_factory=list)
    consensus_reached: bool = False
    actual_votes: int = 0
    final_decision: ConsensusDecision | None = None
    consensus_time_ms: int | None = None
    resolution_method: ResolutionMethod | None = None
    created_at: datetime | None = None


class TeamMessage(BaseModel):
    """An inter-agent notification. ``receiver_agent`` None means broadcast."""

    id: str
    team_session_id: str
    sender_agent: str
    receiver_agent: str | None = None
    message_type: str
    priority: MessagePriority = MessagePriority.MEDIUM
    content: Any = None
    requires_response: bool = False
    response_deadline: datetime | None = Field(
        default=None, description="Metadata only; never enforced"
    )
    created_at: datetime | None = None

    @computed_field
    @property
    def is_broadcast(self) -> bool:
        return self.receiver_agent is None


class PerformanceMetric(BaseModel):
    """A single measurement of an agent's performance within a session."""

    id: str
    agent_id: str
    team_session_id: str
    metric_type: str
    metric_value: float
    measurement_context: str = ""
    created_at: datetime | None = None


# ════════════════════════════════════════════════════════════════
# Inputs and computed outputs
# ════════════════════════════════════════════════════════════════


class AgentRecommendation(BaseModel):
    """
    A single vote handed to the Consensus Engine.

    ``APPROVE`` as the label or an explicit ``support=True`` both count as
    support. Role strings outside AgentRole are kept verbatim and weighted
    with DEFAULT_ROLE_WEIGHT.
    """

    model_config = ConfigDict(populate_by_name=True)

    agent_type: AgentRole | str = Field(alias="agentType")
    recommendation: str = ""
    support: bool | None = None
    reasoning: str = ""
    contribution_id: str | None = Field(default=None, alias="contributionId")

    @property
    def role(self) -> AgentRole | str:
        return parse_role(self.agent_type)

    @property
    def role_name(self) -> str:
        return role_label(self.role)

    @property
    def weight(self) -> Decimal:
        return role_weight(self.agent_type)

    @property
    def is_supporting(self) -> bool:
        return self.recommendation == APPROVE_LABEL or self.support is True


class ConsensusTally(BaseModel):
    """Pure result of the weighted tally (no persistence involved)."""

    consensus: bool
    total_weight: float
    supporting_weight: float
    ratio: float
    total_votes: int
    decision: ConsensusDecision
    resolution_method: ResolutionMethod
    winning_agents: list[str] = Field(default_factory=list)


class ConsensusOutcome(BaseModel):
    """What ``build_consensus`` hands back to callers."""

    consensus_id: str
    consensus: bool
    votes: int = Field(description="Recommendations received")
    required: int = Field(description="Votes required by the decision category")
    decision: ConsensusDecision
    resolution_method: ResolutionMethod
    conflicts: list[ConflictCluster] = Field(default_factory=list)
    consensus_time_ms: int
    session_threshold: float = Field(
        description="The session's stored threshold, reported alongside the fixed ratio bounds"
    )
    approval_failures: list[str] = Field(
        default_factory=list,
        description="Contribution IDs whose approval write failed",
    )


class SessionSnapshot(BaseModel):
    """Denormalised read of a session and its child records."""

    session: TeamSession
    contributions: list[AgentContribution] = Field(default_factory=list)
    consensus: list[ConsensusRecord] = Field(default_factory=list)
    communications: list[TeamMessage] = Field(default_factory=list)


class TeamAnalytics(BaseModel):
    """Read-only rollup over a window of sessions and consensus records."""

    time_range: str
    total_sessions: int = 0
    completed_sessions: int = 0
    consensus_rate: str = "0.0"
    average_consensus_time: int = 0
    agent_participation: dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def completion_rate(self) -> float:
        if self.total_sessions == 0:
            return 0.0
        return round(self.completed_sessions / self.total_sessions * 100, 1)
