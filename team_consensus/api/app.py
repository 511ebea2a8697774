"""
Team Consensus — HTTP API.

FastAPI application exposing the public coordination operations:
- Team sessions (create, inspect, complete)
- Agent contributions and performance metrics
- Consensus rounds
- Inter-agent messages and emergency broadcasts
- Team analytics

Every route forwards to ``TeamCoordinationService`` and maps the returned
``OperationResult`` to a status code; the routes hold no decision logic.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from team_consensus.config import settings
from team_consensus.coordination.results import ErrorKind, OperationResult
from team_consensus.coordination.schema import AgentRecommendation

logger = logging.getLogger(__name__)

FAILURE_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERSISTENCE: 500,
}


# ── Pydantic request models ────────────────────────────────────


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SessionRequest(_CamelRequest):
    session_name: str = Field(alias="sessionName")
    session_type: str = Field(default="development", alias="sessionType")
    coordinator_agent: str | None = Field(default=None, alias="coordinatorAgent")


class ContributionRequest(_CamelRequest):
    agent_id: str = Field(alias="agentId")
    agent_type: str = Field(alias="agentType")
    contribution_type: str = Field(alias="contributionType")
    content: Any = None
    confidence_score: float = Field(default=0.8, alias="confidenceScore")


class ConsensusRequest(_CamelRequest):
    decision_topic: str = Field(alias="decisionTopic")
    decision_category: str = Field(alias="decisionCategory")
    agent_recommendations: list[AgentRecommendation] = Field(
        default_factory=list, alias="agentRecommendations"
    )


class MessageRequest(_CamelRequest):
    sender_agent: str = Field(alias="senderAgent")
    receiver_agent: str | None = Field(default=None, alias="receiverAgent")
    message_type: str = Field(alias="messageType")
    content: Any = None
    priority: str = "MEDIUM"
    requires_response: bool = Field(default=False, alias="requiresResponse")


class PerformanceRequest(_CamelRequest):
    agent_id: str = Field(alias="agentId")
    metric_type: str = Field(alias="metricType")
    metric_value: float = Field(alias="metricValue")
    context: str = ""


class CompletionRequest(_CamelRequest):
    results: dict[str, Any] = Field(default_factory=dict)


class EmergencyRequest(_CamelRequest):
    alert_type: str = Field(alias="alertType")
    alert_data: dict[str, Any] = Field(default_factory=dict, alias="alertData")


class ApiState:
    """Mutable application state injected at startup."""

    def __init__(self) -> None:
        self.coordination: Any = None
        self.startup_time: datetime = datetime.now(timezone.utc)


state = ApiState()


# ── Application lifecycle ──────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup lifecycle — connect the coordination service to the store."""
    if state.coordination is None:
        from team_consensus.coordination.service import TeamCoordinationService

        state.coordination = TeamCoordinationService.from_url(settings.database_url)
        logger.info("API connected to record store")
    yield
    logger.info("Team Consensus API shut down")


app = FastAPI(
    title="Team Consensus",
    description="Multi-agent session coordination and weighted consensus",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are validation failures like any other."""
    return JSONResponse(
        status_code=FAILURE_STATUS[ErrorKind.VALIDATION],
        content={
            "success": False,
            "error": "Invalid request",
            "error_kind": ErrorKind.VALIDATION.value,
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def _respond(result: OperationResult, success_status: int = 200) -> JSONResponse:
    if result.success:
        status = success_status
    else:
        status = FAILURE_STATUS.get(result.error_kind, 500)
    return JSONResponse(status_code=status, content=result.to_dict())


def _service() -> Any:
    if state.coordination is None:
        raise RuntimeError("Coordination service not initialized")
    return state.coordination


# ── Team coordination routes ───────────────────────────────────


@app.post("/team/sessions")
async def api_create_session(req: SessionRequest):
    result = _service().create_team_session(
        req.session_name, req.session_type, req.coordinator_agent
    )
    return _respond(result, 201)


@app.get("/team/sessions/{session_id}")
async def api_get_session(session_id: str):
    return _respond(_service().get_team_session(session_id))


@app.post("/team/sessions/{session_id}/contributions")
async def api_add_contribution(session_id: str, req: ContributionRequest):
    result = _service().add_agent_contribution(
        session_id,
        req.agent_id,
        req.agent_type,
        req.contribution_type,
        req.content,
        req.confidence_score,
    )
    return _respond(result, 201)


@app.post("/team/sessions/{session_id}/consensus")
async def api_build_consensus(session_id: str, req: ConsensusRequest):
    result = _service().build_consensus(
        session_id,
        req.decision_topic,
        req.decision_category,
        req.agent_recommendations,
    )
    return _respond(result)


@app.post("/team/sessions/{session_id}/messages")
async def api_send_message(session_id: str, req: MessageRequest):
    result = _service().send_agent_message(
        session_id,
        req.sender_agent,
        req.receiver_agent,
        req.message_type,
        req.content,
        req.priority,
        req.requires_response,
    )
    return _respond(result, 201)


@app.post("/team/sessions/{session_id}/performance")
async def api_track_performance(session_id: str, req: PerformanceRequest):
    result = _service().track_agent_performance(
        req.agent_id, session_id, req.metric_type, req.metric_value, req.context
    )
    return _respond(result, 201)


@app.post("/team/sessions/{session_id}/complete")
async def api_complete_session(session_id: str, req: CompletionRequest):
    return _respond(_service().complete_team_session(session_id, req.results))


@app.post("/team/emergency")
async def api_emergency(req: EmergencyRequest):
    result = _service().create_emergency_response(req.alert_type, req.alert_data)
    return _respond(result, 201)


@app.get("/team/analytics")
async def api_analytics(time_range: str = "7d"):
    return _respond(_service().get_team_analytics(time_range))


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Team Consensus",
        "uptime_seconds": (datetime.now(timezone.utc) - state.startup_time).total_seconds(),
    }
