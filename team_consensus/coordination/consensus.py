"""
Consensus Engine — weighted aggregation of agent recommendations.

A consensus round runs in eight steps:

1. REQUIRED VOTES — ceil(|roles| × category fraction)
2. CONFLICTS      — group recommendations by (label, support); report
                    groups of two or more agents
3. TALLY          — accumulate static role weights, split into supporting
                    and opposing
4. RATIO          — supporting / total weight actually present
5. CLASSIFY       — ≥ 0.6 approved; > 0.4 conditional; otherwise rejected
6. TIME           — wall-clock time for steps 1–5
7. PERSIST        — one consensus record, written once
8. APPROVE        — on consensus, mark referenced contributions of
                    supporting agents approved

The category's required-vote count and the ratio classification are two
separate axes: the required count is recorded but never gates the outcome.
Neither reads the session's stored ``consensus_threshold``.

Steps 7 and 8 are not atomic. If step 7 fails the computed tally is lost.
Step 8 is best-effort: a failed approval is logged, reported in the outcome,
and does not stop the remaining approvals or undo the record.
"""

from __future__ import annotations

import logging
import math
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from pydantic import ValidationError as ModelValidationError

from team_consensus.coordination.contributions import ContributionLedger
from team_consensus.coordination.errors import (
    CoordinationError,
    InvalidCategoryError,
    ValidationError,
    store_errors,
)
from team_consensus.coordination.schema import (
    APPROVAL_RATIO,
    CATEGORY_FRACTIONS,
    CONDITIONAL_RATIO,
    AgentRecommendation,
    AgentRole,
    ConflictCluster,
    ConsensusDecision,
    ConsensusOutcome,
    ConsensusTally,
    DecisionCategory,
    DecisionStatus,
    ResolutionMethod,
)
from team_consensus.coordination.sessions import SessionRegistry
from team_consensus.store.service import RecordStore

logger = logging.getLogger(__name__)

CONSENSUS = "team_consensus"

RecommendationInput = AgentRecommendation | dict[str, Any]


def parse_category(category: DecisionCategory | str) -> DecisionCategory:
    """Resolve a decision category or fail with InvalidCategoryError."""
    try:
        return DecisionCategory(category)
    except ValueError:
        raise InvalidCategoryError(
            f"Unknown decision category {category!r}; expected one of "
            f"{', '.join(c.value for c in DecisionCategory)}"
        ) from None


def required_votes(category: DecisionCategory | str) -> int:
    """Votes required for a category: ceil(5 × fraction) → 4 / 3 / 2."""
    fraction = CATEGORY_FRACTIONS[parse_category(category)]
    return math.ceil(len(AgentRole) * fraction)


def normalize_recommendations(
    recommendations: RecommendationInput | Iterable[RecommendationInput] | None,
) -> list[AgentRecommendation]:
    """Accept one recommendation or many, as models or plain dicts."""
    if recommendations is None:
        return []
    if isinstance(recommendations, (AgentRecommendation, dict)):
        recommendations = [recommendations]
    try:
        return [
            rec if isinstance(rec, AgentRecommendation)
            else AgentRecommendation.model_validate(rec)
            for rec in recommendations
        ]
    except ModelValidationError as exc:
        raise ValidationError(
            f"Invalid agent recommendation: {exc.error_count()} error(s)"
        ) from exc


def identify_conflicts(recommendations: Iterable[AgentRecommendation]) -> list[ConflictCluster]:
    """
    Group agents sharing the same (label, support) pair.

    Only groups with more than one agent are returned, in first-seen order.
    This is informational and never blocks the computation.
    """
    groups: dict[tuple[str, bool | None], list[str]] = {}
    for rec in recommendations:
        groups.setdefault((rec.recommendation, rec.support), []).append(rec.role_name)

    return [
        ConflictCluster(position=label, support=support, agents=agents)
        for (label, support), agents in groups.items()
        if len(agents) > 1
    ]


def _percentage(ratio: Decimal) -> str:
    return str((ratio * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def calculate_weighted_consensus(
    recommendations: Iterable[AgentRecommendation],
) -> ConsensusTally:
    """
    Tally weighted support and classify the outcome.

    The ratio is normalised against the weights actually present. With no
    recommendations the total weight is zero: ratio 0, no consensus.
    """
    total_weight = Decimal("0")
    supporting_weight = Decimal("0")
    total_votes = 0
    supporting: list[str] = []
    opposing: list[str] = []

    for rec in recommendations:
        if not isinstance(rec.role, AgentRole):
            logger.warning(
                "Unknown agent role %r weighted at default %s", rec.agent_type, rec.weight
            )
        total_weight += rec.weight
        total_votes += 1
        if rec.is_supporting:
            supporting_weight += rec.weight
            supporting.append(rec.role_name)
        else:
            opposing.append(rec.role_name)

    ratio = supporting_weight / total_weight if total_weight > 0 else Decimal("0")

    if ratio >= APPROVAL_RATIO:
        consensus = True
        method = ResolutionMethod.UNANIMOUS_SUPPORT
        status = DecisionStatus.APPROVED
    elif ratio > CONDITIONAL_RATIO:
        consensus = False
        method = ResolutionMethod.MAJORITY_SUPPORT
        status = DecisionStatus.CONDITIONAL_APPROVAL
    else:
        consensus = False
        method = ResolutionMethod.INSUFFICIENT_SUPPORT
        status = DecisionStatus.REJECTED

    return ConsensusTally(
        consensus=consensus,
        total_weight=float(total_weight),
        supporting_weight=float(supporting_weight),
        ratio=float(ratio),
        total_votes=total_votes,
        decision=ConsensusDecision(
            status=status,
            supporting_agents=supporting,
            opposing_agents=opposing,
            support_percentage=_percentage(ratio),
        ),
        resolution_method=method,
        winning_agents=list(supporting),
    )


class ConsensusEngine:
    """
    Runs consensus rounds for a session and records their outcome.

    Usage:
        engine = ConsensusEngine(store, registry, ledger)
        outcome = engine.build_consensus(
            session_id,
            "Production deployment",
            "CRITICAL",
            [
                {"agentType": "Strategy", "recommendation": "APPROVE",
                 "contributionId": strategy_contribution.id},
                {"agentType": "Security", "recommendation": "CONDITIONAL_APPROVE"},
            ],
        )
    """

    def __init__(
        self,
        store: RecordStore,
        registry: SessionRegistry,
        ledger: ContributionLedger,
    ) -> None:
        self.store = store
        self.registry = registry
        self.ledger = ledger

    def build_consensus(
        self,
        session_id: str,
        decision_topic: str,
        decision_category: DecisionCategory | str,
        recommendations: RecommendationInput | Iterable[RecommendationInput] | None,
    ) -> ConsensusOutcome:
        """
        Run one consensus round and persist its record.

        Args:
            session_id: Session the decision belongs to.
            decision_topic: What is being decided.
            decision_category: CRITICAL, MAJOR or MINOR.
            recommendations: One or more agent recommendations. Order does not
                affect the result but is kept for conflict reporting.

        Raises:
            InvalidCategoryError: Unknown category.
            ValidationError: Malformed recommendation.
            NotFoundError: The session does not exist.
            PersistenceError: The consensus record could not be written.
        """
        started = time.perf_counter()

        category = parse_category(decision_category)
        required = required_votes(category)
        recs = normalize_recommendations(recommendations)
        session = self.registry.require(session_id)

        conflicts = identify_conflicts(recs)
        tally = calculate_weighted_consensus(recs)

        consensus_time_ms = int(round((time.perf_counter() - started) * 1000))

        with store_errors("Record consensus"):
            record = self.store.insert(CONSENSUS, {
                "team_session_id": session_id,
                "decision_topic": decision_topic,
                "decision_category": category.value,
                "required_votes": required,
                "conflicting_opinions": [c.model_dump(mode="json") for c in conflicts],
                "consensus_reached": tally.consensus,
                "actual_votes": tally.total_votes,
                "final_decision": tally.decision.model_dump(mode="json"),
                "consensus_time_ms": consensus_time_ms,
                "resolution_method": tally.resolution_method.value,
            })

        logger.info(
            "Consensus recorded: session=%s category=%s consensus=%s support=%s%% "
            "votes=%d/%d method=%s",
            session_id, category.value, tally.consensus,
            tally.decision.support_percentage, tally.total_votes, required,
            tally.resolution_method.value,
        )

        approval_failures: list[str] = []
        if tally.consensus:
            approval_failures = self._approve_winning_contributions(recs)

        return ConsensusOutcome(
            consensus_id=record["id"],
            consensus=tally.consensus,
            votes=tally.total_votes,
            required=required,
            decision=tally.decision,
            resolution_method=tally.resolution_method,
            conflicts=conflicts,
            consensus_time_ms=consensus_time_ms,
            session_threshold=session.consensus_threshold,
            approval_failures=approval_failures,
        )

    def _approve_winning_contributions(
        self, recommendations: list[AgentRecommendation]
    ) -> list[str]:
        """Approve contributions referenced by supporting agents; return failures."""
        failures = []
        for rec in recommendations:
            if not rec.is_supporting or not rec.contribution_id:
                continue
            try:
                self.ledger.mark_approved(rec.contribution_id)
            except CoordinationError as exc:
                logger.warning(
                    "Approval skipped: contribution=%s role=%s reason=%s",
                    rec.contribution_id, rec.role_name, exc.message,
                )
                failures.append(rec.contribution_id)
        return failures
