"""
Team Consensus — service entrypoint.

1. Configures structured logging
2. Initializes the record store and coordination service
3. Serves the HTTP API
"""

from __future__ import annotations

import logging
import sys

import structlog
import uvicorn

from team_consensus.config import settings


def _render_processors() -> list:
    """Final processors for ``settings.log_format``: JSON lines or console."""
    if settings.log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def configure_logging() -> None:
    """
    Send structlog events and the coordination modules' stdlib records
    through one handler and one renderer.
    """
    level = logging.getLevelName(settings.log_level.upper())
    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_processors(),
            ],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service="team_consensus")


def main() -> None:
    """Start the coordination API."""
    configure_logging()
    log = structlog.get_logger()

    log.info(
        "team_consensus.starting",
        database_url=settings.database_url.split("@")[-1],
        coordinator=settings.coordinator_agent,
    )

    from team_consensus.api.app import app, state
    from team_consensus.coordination.service import TeamCoordinationService

    try:
        state.coordination = TeamCoordinationService.from_url(settings.database_url)
    except Exception as e:
        log.exception("team_consensus.store_init_failed", error=str(e))
        sys.exit(1)
    log.info("team_consensus.store_ready")

    # log_config=None keeps uvicorn on the root handler configured above
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    log.info("team_consensus.shutdown")


if __name__ == "__main__":
    main()
