"""
Tests for the service entrypoint's logging setup.

Validates:
- stdlib records from coordination modules render through structlog
- JSON and console renderers follow ``log_format``
"""

from __future__ import annotations

import json
import logging

import structlog

from team_consensus.config import settings
from team_consensus.main import configure_logging


class TestConfigureLogging:

    def setup_method(self):
        root = logging.getLogger()
        self.saved_handlers = root.handlers[:]
        self.saved_level = root.level
        self.saved_format = settings.log_format

    def teardown_method(self):
        root = logging.getLogger()
        root.handlers[:] = self.saved_handlers
        root.setLevel(self.saved_level)
        settings.log_format = self.saved_format
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()

    def test_stdlib_record_rendered_as_json(self, capsys):
        settings.log_format = "json"
        configure_logging()

        logging.getLogger("team_consensus.coordination.sessions").info(
            "Session created: id=%s", "s-1"
        )

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Session created: id=s-1"
        assert event["logger"] == "team_consensus.coordination.sessions"
        assert event["level"] == "info"
        assert event["service"] == "team_consensus"
        assert "timestamp" in event

    def test_console_renderer(self, capsys):
        settings.log_format = "console"
        configure_logging()

        logging.getLogger("team_consensus.coordination.messaging").warning("Alert pending")

        out = capsys.readouterr().out
        assert "Alert pending" in out
        assert not out.lstrip().startswith("{")
