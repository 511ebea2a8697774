"""
Contribution Ledger — records each agent's input to a session.

Contributions are append-only: an agent may submit any number of
contributions of the same type and all are kept. The only later mutation
is approval marking, done by the Consensus Engine for winning roles.
"""

from __future__ import annotations

import logging
from typing import Any

from team_consensus.coordination.errors import (
    NotFoundError,
    ValidationError,
    store_errors,
)
from team_consensus.coordination.schema import AgentContribution, AgentRole
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore

logger = logging.getLogger(__name__)

CONTRIBUTIONS = "agent_contributions"
DEFAULT_CONFIDENCE = 0.8


class ContributionLedger:
    """Appends contributions and tracks their approval votes."""

    def __init__(self, store: RecordStore, registry: SessionRegistry) -> None:
        self.store = store
        self.registry = registry

    def submit(
        self,
        session_id: str,
        agent_id: str,
        agent_type: AgentRole | str,
        contribution_type: str,
        content: Any,
        confidence_score: float = DEFAULT_CONFIDENCE,
    ) -> AgentContribution:
        """
        Record an agent contribution with approval false and zero votes.

        Args:
            session_id: Session the contribution belongs to.
            agent_id: Identifier of the contributing agent.
            agent_type: The agent's role.
            contribution_type: Free-form label (e.g. ``analysis``).
            content: Structured payload, stored verbatim.
            confidence_score: Caller-supplied confidence in [0, 1].

        Raises:
            ValidationError: Missing field, unknown role, or confidence not a
                number in [0, 1].
            NotFoundError: The session does not exist.
            PersistenceError: The store write failed.
        """
        if not agent_id:
            raise ValidationError("agent_id is required")
        if not contribution_type:
            raise ValidationError("contribution_type is required")
        try:
            role = AgentRole(agent_type)
        except ValueError:
            raise ValidationError(f"Unknown agent role: {agent_type!r}") from None
        if confidence_score is None:
            confidence_score = DEFAULT_CONFIDENCE
        try:
            confidence_score = float(confidence_score)
        except (TypeError, ValueError):
            raise ValidationError(
                f"confidence_score must be numeric, got {confidence_score!r}"
            ) from None
        if not 0.0 <= confidence_score <= 1.0:
            raise ValidationError(
                f"confidence_score must be within [0, 1], got {confidence_score}"
            )

        self.registry.require(session_id)

        with store_errors("Add agent contribution"):
            record = self.store.insert(CONTRIBUTIONS, {
                "team_session_id": session_id,
                "agent_id": agent_id,
                "agent_type": role.value,
                "contribution_type": contribution_type,
                "content": content,
                "confidence_score": confidence_score,
                "is_approved": False,
                "approval_votes": 0,
            })

        logger.info(
            "Contribution recorded: session=%s agent=%s role=%s type=%s confidence=%.2f",
            session_id, agent_id, role.value, contribution_type, confidence_score,
        )
        return AgentContribution.model_validate(record)

    def get(self, contribution_id: str) -> AgentContribution:
        """Retrieve a single contribution by ID."""
        with store_errors("Load contribution"):
            rows = self.store.select(CONTRIBUTIONS, {"id": contribution_id})
        if not rows:
            raise NotFoundError(
                f"Contribution {contribution_id} not found",
                contribution_id=contribution_id,
            )
        return AgentContribution.model_validate(rows[0])

    def mark_approved(self, contribution_id: str, delta: int = 1) -> AgentContribution:
        """
        Add ``delta`` approval votes and flag the contribution approved.

        Read-modify-write without locking: concurrent approvals of the same
        contribution are last-write-wins at the store.
        """
        contribution = self.get(contribution_id)
        votes = contribution.approval_votes + delta

        with store_errors("Approve contribution"):
            self.store.update(CONTRIBUTIONS, contribution_id, {
                "is_approved": True,
                "approval_votes": votes,
            })

        logger.info("Contribution approved: id=%s votes=%d", contribution_id, votes)
        return contribution.model_copy(update={"is_approved": True, "approval_votes": votes})

    def list_for_session(self, session_id: str) -> list[AgentContribution]:
        """All contributions of a session, oldest first."""
        with store_errors("List contributions"):
            rows = self.store.select(CONTRIBUTIONS, {"team_session_id": session_id})
        return [AgentContribution.model_validate(r) for r in rows]
