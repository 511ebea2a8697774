"""
Messaging Channel — inter-agent notifications and emergency broadcasts.

A message with no receiver is a broadcast to every agent of the session.
When a response is required the message carries a response deadline
(five minutes ahead by default). The deadline is metadata only: nothing
schedules or enforces it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from team_consensus.coordination.errors import (
    EmergencyBroadcastError,
    PersistenceError,
    ValidationError,
    store_errors,
)
from team_consensus.coordination.schema import (
    ALERT_MESSAGE_TYPE,
    MessagePriority,
    SessionType,
    TeamMessage,
    TeamSession,
)
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore

logger = logging.getLogger(__name__)

COMMUNICATIONS = "team_communications"
DEFAULT_RESPONSE_DEADLINE_MINUTES = 5


class MessagingChannel:
    """Records messages between agents and originates emergency broadcasts."""

    def __init__(
        self,
        store: RecordStore,
        registry: SessionRegistry,
        response_deadline_minutes: int = DEFAULT_RESPONSE_DEADLINE_MINUTES,
        default_alert_severity: str = "HIGH",
    ) -> None:
        self.store = store
        self.registry = registry
        self.response_deadline = timedelta(minutes=response_deadline_minutes)
        self.default_alert_severity = default_alert_severity

    def send(
        self,
        session_id: str,
        sender_agent: str,
        receiver_agent: str | None,
        message_type: str,
        content: Any,
        priority: MessagePriority | str = MessagePriority.MEDIUM,
        requires_response: bool = False,
    ) -> TeamMessage:
        """
        Persist one message. ``receiver_agent=None`` broadcasts it.

        Raises:
            ValidationError: Missing sender or type, or unknown priority.
            NotFoundError: The session does not exist.
            PersistenceError: The store write failed.
        """
        if not sender_agent:
            raise ValidationError("sender_agent is required")
        if not message_type:
            raise ValidationError("message_type is required")
        try:
            level = MessagePriority(priority or MessagePriority.MEDIUM)
        except ValueError:
            raise ValidationError(f"Unknown message priority: {priority!r}") from None

        self.registry.require(session_id)

        deadline = None
        if requires_response:
            deadline = datetime.now(timezone.utc) + self.response_deadline

        with store_errors("Send agent message"):
            record = self.store.insert(COMMUNICATIONS, {
                "team_session_id": session_id,
                "sender_agent": sender_agent,
                "receiver_agent": receiver_agent or None,
                "message_type": message_type,
                "priority": level.value,
                "content": content,
                "requires_response": bool(requires_response),
                "response_deadline": deadline,
            })

        message = TeamMessage.model_validate(record)
        logger.info(
            "Message sent: session=%s from=%s to=%s type=%s priority=%s",
            session_id, sender_agent, receiver_agent or "*broadcast*",
            message_type, level.value,
        )
        return message

    def emergency_broadcast(
        self,
        alert_type: str,
        alert_data: dict[str, Any] | None = None,
    ) -> tuple[TeamSession, TeamMessage]:
        """
        Open an emergency session and broadcast a CRITICAL alert to all agents.

        If session creation fails nothing is written. If the broadcast fails
        after the session exists, the session is left in place and the
        failure is raised as EmergencyBroadcastError carrying its id.
        """
        if not alert_type:
            raise ValidationError("alert_type is required")
        alert_data = dict(alert_data or {})

        session = self.registry.create(
            f"Emergency Response - {alert_type}",
            SessionType.EMERGENCY,
            self.registry.coordinator_agent,
        )

        alert = {
            "alert_type": alert_type,
            "severity": alert_data.get("severity") or self.default_alert_severity,
            "data": alert_data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        try:
            message = self.send(
                session.id,
                self.registry.coordinator_agent,
                None,
                ALERT_MESSAGE_TYPE,
                alert,
                MessagePriority.CRITICAL,
                True,
            )
        except PersistenceError as exc:
            logger.error(
                "Emergency alert not broadcast; session %s left without alert: %s",
                session.id, exc.message,
            )
            raise EmergencyBroadcastError(
                f"Emergency session created but alert broadcast failed: {exc.message}",
                session_id=session.id,
            ) from exc

        logger.critical(
            "EMERGENCY BROADCAST: type=%s severity=%s session=%s",
            alert_type, alert["severity"], session.id,
        )
        return session, message
