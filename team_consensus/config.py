"""Team Consensus — Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class CouncilSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # ── Durable store ──────────────────────────────────────────
    database_url: str = "sqlite:///./team_consensus.db"
    database_echo: bool = False

    # ── Coordination ───────────────────────────────────────────
    coordinator_agent: str = "AICommander"
    response_deadline_minutes: int = 5
    default_alert_severity: str = "HIGH"

    # ── HTTP API ───────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = CouncilSettings()
