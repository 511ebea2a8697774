"""
Tests for the Contribution Ledger.

Validates:
- Submission defaults and validation
- Duplicate contributions are retained
- Approval marking increments the vote counter
"""

from __future__ import annotations

import pytest

from team_consensus.coordination.contributions import ContributionLedger
from team_consensus.coordination.errors import NotFoundError, ValidationError
from team_consensus.coordination.schema import AgentRole
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore


class TestContributionLedger:

    def setup_method(self):
        self.store = RecordStore("sqlite://")
        self.store.initialize()
        self.registry = SessionRegistry(self.store)
        self.ledger = ContributionLedger(self.store, self.registry)
        self.session = self.registry.create("Test")

    def test_submit_defaults(self):
        contribution = self.ledger.submit(
            self.session.id, "SystemAnalyst_001", "SystemAnalyst", "architecture",
            {"database": "PostgreSQL"},
        )
        assert contribution.agent_type == AgentRole.SYSTEM_ANALYST
        assert contribution.confidence_score == 0.8
        assert contribution.is_approved is False
        assert contribution.approval_votes == 0
        assert contribution.content == {"database": "PostgreSQL"}

    def test_duplicates_retained(self):
        for _ in range(2):
            self.ledger.submit(self.session.id, "Dev_001", "Development", "plan", {})
        assert len(self.ledger.list_for_session(self.session.id)) == 2

    @pytest.mark.parametrize("confidence", [-0.1, 1.5, "high", [0.5]])
    def test_confidence_out_of_range(self, confidence):
        with pytest.raises(ValidationError):
            self.ledger.submit(self.session.id, "Dev_001", "Development", "plan", {}, confidence)

    def test_numeric_string_confidence_coerced(self):
        contribution = self.ledger.submit(
            self.session.id, "Dev_001", "Development", "plan", {}, "0.75"
        )
        assert contribution.confidence_score == 0.75

    def test_confidence_bounds_accepted(self):
        low = self.ledger.submit(self.session.id, "Dev_001", "Development", "plan", {}, 0.0)
        high = self.ledger.submit(self.session.id, "Dev_001", "Development", "plan", {}, 1.0)
        assert (low.confidence_score, high.confidence_score) == (0.0, 1.0)

    def test_unknown_role(self):
        with pytest.raises(ValidationError):
            self.ledger.submit(self.session.id, "QA_001", "QualityAssurance", "plan", {})

    def test_missing_agent_id(self):
        with pytest.raises(ValidationError):
            self.ledger.submit(self.session.id, "", "Development", "plan", {})

    def test_missing_session(self):
        with pytest.raises(NotFoundError):
            self.ledger.submit("nope", "Dev_001", "Development", "plan", {})

    def test_mark_approved_increments(self):
        contribution = self.ledger.submit(self.session.id, "Dev_001", "Development", "plan", {})

        self.ledger.mark_approved(contribution.id)
        approved = self.ledger.mark_approved(contribution.id, delta=2)

        assert approved.is_approved is True
        assert approved.approval_votes == 3
        assert self.ledger.get(contribution.id).approval_votes == 3

    def test_mark_approved_missing(self):
        with pytest.raises(NotFoundError):
            self.ledger.mark_approved("nope")
