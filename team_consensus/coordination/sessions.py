"""
Session Registry — creation, retrieval and completion of coordination sessions.

A session is the root aggregate: contributions, consensus rounds, messages
and performance metrics all reference it by ``team_session_id``. Its
status moves one way only:

    ACTIVE → COMPLETED

Completing a session does not close it to further contributions or
consensus rounds; it only stamps the status, completion time and the
caller's result metadata.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from team_consensus.coordination.errors import (
    NotFoundError,
    SessionClosedError,
    ValidationError,
    store_errors,
)
from team_consensus.coordination.schema import (
    SESSION_THRESHOLDS,
    AgentContribution,
    AgentRole,
    ConsensusRecord,
    SessionSnapshot,
    SessionStatus,
    SessionType,
    TeamMessage,
    TeamSession,
)
from team_consensus.store.service import RecordStore

logger = logging.getLogger(__name__)

SESSIONS = "team_sessions"
REGISTRY_VERSION = "1.0"


class SessionRegistry:
    """
    Creates, retrieves and completes team sessions.

    A session name must be given, but its content is not validated; an
    empty name is the caller's responsibility.
    """

    def __init__(self, store: RecordStore, coordinator_agent: str = "AICommander") -> None:
        """
        Args:
            store: Durable record store.
            coordinator_agent: Coordinator used when the caller names none.
        """
        self.store = store
        self.coordinator_agent = coordinator_agent

    def create(
        self,
        name: str,
        session_type: SessionType | str = SessionType.DEVELOPMENT,
        coordinator: str | None = None,
    ) -> TeamSession:
        """
        Open a new active session with all five roles participating.

        The consensus threshold is derived from the type: 0.8 for emergency
        sessions, 0.6 otherwise.

        Raises:
            ValidationError: Missing name or unknown session type.
            PersistenceError: The store write failed.
        """
        if name is None:
            raise ValidationError("session_name is required")
        kind = parse_session_type(session_type)

        with store_errors("Create team session"):
            record = self.store.insert(SESSIONS, {
                "session_name": name,
                "session_type": kind.value,
                "status": SessionStatus.ACTIVE.value,
                "consensus_threshold": SESSION_THRESHOLDS[kind],
                "participants": [role.value for role in AgentRole],
                "coordinator_agent": coordinator or self.coordinator_agent,
                "metadata": {
                    "created_with": type(self).__name__,
                    "version": REGISTRY_VERSION,
                },
            })

        session = TeamSession.model_validate(record)
        logger.info(
            "Session created: id=%s type=%s threshold=%.1f name='%s'",
            session.id, kind.value, session.consensus_threshold, name[:80],
        )
        return session

    def require(self, session_id: str) -> TeamSession:
        """
        Return the session record, or fail if it does not exist.

        Raises:
            ValidationError: Empty session id.
            NotFoundError: No such session.
            PersistenceError: The store read failed.
        """
        if not session_id:
            raise ValidationError("session_id is required")

        with store_errors("Load team session"):
            rows = self.store.select(SESSIONS, {"id": session_id})

        if not rows:
            raise NotFoundError("Team session not found", session_id=session_id)
        return TeamSession.model_validate(rows[0])

    def get(self, session_id: str) -> SessionSnapshot:
        """
        Return the session with its contributions, consensus records and messages.

        Four independent lookups keyed by session id. Missing child records
        yield empty lists.
        """
        session = self.require(session_id)
        filters = {"team_session_id": session_id}

        with store_errors("Load team session records"):
            contributions = self.store.select("agent_contributions", filters)
            consensus = self.store.select("team_consensus", filters)
            communications = self.store.select("team_communications", filters)

        return SessionSnapshot(
            session=session,
            contributions=[AgentContribution.model_validate(r) for r in contributions],
            consensus=[ConsensusRecord.model_validate(r) for r in consensus],
            communications=[TeamMessage.model_validate(r) for r in communications],
        )

    def complete(
        self,
        session_id: str,
        results: dict[str, Any] | None = None,
    ) -> TeamSession:
        """
        Mark a session completed and store the caller's results verbatim.

        Raises:
            NotFoundError: No such session.
            SessionClosedError: The session is already completed.
            PersistenceError: The store write failed.
        """
        session = self.require(session_id)
        if session.status == SessionStatus.COMPLETED:
            raise SessionClosedError(
                f"Team session {session_id} is already completed",
                session_id=session_id,
            )

        completed_at = datetime.now(timezone.utc)
        metadata = dict(results or {})
        with store_errors("Complete team session"):
            self.store.update(SESSIONS, session_id, {
                "status": SessionStatus.COMPLETED.value,
                "completed_at": completed_at,
                "metadata": metadata,
            })

        logger.info("Session completed: id=%s", session_id)
        return session.model_copy(update={
            "status": SessionStatus.COMPLETED,
            "completed_at": completed_at,
            "metadata": metadata,
        })


def parse_session_type(value: SessionType | str) -> SessionType:
    try:
        return SessionType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown session type {value!r}; expected one of "
            f"{', '.join(t.value for t in SessionType)}"
        ) from None
