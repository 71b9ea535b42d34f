"""
Tests for acquisition_engine/decision/aggregator.py.

What we test
------------
compose_decision:
  - 32 + [+8, +5]: the sum is capped at +10 → 42 → NO-GO.
  - 70 + [-10] → 60 → GO_WITH_RESERVES.
  - Each adjustment is bounded to ±cap before the sum: 60 + [40, −35] → 60.
  - Thresholds 75 / 50, clamping to [0, 100], negative cap.
  - GO downgraded by a CRITICAL risk, incomplete inputs or an error.
derive_adjustments:
  - Hidden potential (+5 each, max +10), success conditions (+5),
    unresolved critical (−5 each, max −10).
DecisionAggregator.decide:
  - Bad scores (including NaN / infinite) or non-finite adjustments →
    NO-GO, score 0, error propagated.
  - Explicit adjustments bypass derivation; ``derive=False`` disables it.
  - Healthy inputs → 94 + 5 = 99 GO.
"""

from __future__ import annotations

import pytest

from acquisition_engine.arbitration.arbitrator import Arbitrator
from acquisition_engine.decision.aggregator import (
    DecisionAggregator,
    compose_decision,
    derive_adjustments,
    recommendation_for,
)
from acquisition_engine.models.conflict import Conflict
from acquisition_engine.models.scoring import Adjustment, RiskAssessment
from acquisition_engine.scoring.risk import categorize_risks
from acquisition_engine.taxonomy.conflict_taxonomy import ConflictType, Severity
from acquisition_engine.taxonomy.risk_taxonomy import Recommendation
from acquisition_engine.validation.coherence import score_coherence_counts

GOOD_SCORES = {"location": 80, "market": 80, "operational": 80, "financial": 80, "overall": 80}


@pytest.fixture
def arbitrate(fixed_clock, sequential_ids):
    def _arbitrate(*specs):
        conflicts = [
            Conflict(
                id=sequential_ids(),
                type=conflict_type,
                severity=severity,
                description="test",
                sources=sources,
                detected_at=fixed_clock(),
            )
            for conflict_type, severity, sources in specs
        ]
        return Arbitrator(clock=fixed_clock).arbitrate(conflicts)
    return _arbitrate


UPSIDE_CSP = (
    ConflictType.CSP_PRICING, Severity.MEDIUM,
    {"demographic_csp": "high", "places_price_level": 1},
)
UPSIDE_ENCLAVE = (
    ConflictType.POPULATION_POI, Severity.MEDIUM,
    {"demographic_population": 300, "competitor_total_poi": 12},
)
FAR_LISTING = (ConflictType.GEOGRAPHIC, Severity.CRITICAL, {"distance_meters": 250})


class TestComposeDecision:
    def test_positive_sum_capped(self) -> None:
        decision = compose_decision(32, [8, 5])
        assert decision.score_breakdown.adjustment_total == 10
        assert decision.score == 42
        assert decision.recommendation == Recommendation.NO_GO
        assert [a.kind for a in decision.score_breakdown.adjustments] == ["manual", "manual"]

    def test_negative_adjustment(self) -> None:
        decision = compose_decision(70, [-10])
        assert decision.score == 60
        assert decision.recommendation == Recommendation.GO_WITH_RESERVES

    def test_negative_sum_capped(self) -> None:
        assert compose_decision(70, [-10, -10]).score == 60

    def test_custom_cap(self) -> None:
        assert compose_decision(70, [8], cap=5).score == 75

    def test_each_adjustment_bounded(self) -> None:
        decision = compose_decision(60, [40, -35])
        assert [a.value for a in decision.score_breakdown.adjustments] == [10, -10]
        assert decision.score_breakdown.adjustment_total == 0
        assert decision.score == 60

    def test_bounded_adjustment_keeps_kind(self) -> None:
        decision = compose_decision(50, [Adjustment(kind="hidden_potential", value=25, reason="x")])
        (adjustment,) = decision.score_breakdown.adjustments
        assert (adjustment.kind, adjustment.value, adjustment.reason) == ("hidden_potential", 10, "x")
        assert decision.score == 60

    @pytest.mark.parametrize("base,adjustments,expected", [
        (98, [10], 100),
        (3, [-10], 0),
    ])
    def test_clamped(self, base: int, adjustments: list[int], expected: int) -> None:
        assert compose_decision(base, adjustments).score == expected

    @pytest.mark.parametrize("score,recommendation", [
        (100, Recommendation.GO),
        (75, Recommendation.GO),
        (74, Recommendation.GO_WITH_RESERVES),
        (50, Recommendation.GO_WITH_RESERVES),
        (49, Recommendation.NO_GO),
        (0, Recommendation.NO_GO),
    ])
    def test_thresholds(self, score: int, recommendation: Recommendation) -> None:
        assert recommendation_for(score) == recommendation

    @pytest.mark.parametrize("kwargs", [
        {"critical_risk_unresolved": True},
        {"incomplete": True},
        {"error": "missing_input: scores are required"},
    ])
    def test_go_downgraded(self, kwargs) -> None:
        decision = compose_decision(90, **kwargs)
        assert decision.recommendation == Recommendation.GO_WITH_RESERVES
        assert decision.downgraded is True
        assert decision.score == 90

    def test_no_go_not_upgraded_or_flagged(self) -> None:
        decision = compose_decision(30, critical_risk_unresolved=True)
        assert decision.recommendation == Recommendation.NO_GO
        assert decision.downgraded is False


class TestDeriveAdjustments:
    def test_success_conditions(self) -> None:
        risk = categorize_risks(GOOD_SCORES)
        coherence = score_coherence_counts({})
        adjustments = derive_adjustments(risk, coherence, None)
        assert [(a.kind, a.value) for a in adjustments] == [("success_conditions", 5)]

    def test_no_success_when_coherence_medium(self) -> None:
        risk = categorize_risks(GOOD_SCORES)
        coherence = score_coherence_counts({"CRITICAL": 1, "HIGH": 2})
        assert derive_adjustments(risk, coherence, None) == []

    def test_hidden_potential_capped(self, arbitrate) -> None:
        arbitration = arbitrate(UPSIDE_CSP, UPSIDE_ENCLAVE, UPSIDE_CSP)
        adjustments = derive_adjustments(None, None, arbitration)
        assert [(a.kind, a.value) for a in adjustments] == [("hidden_potential", 10)]

    def test_single_upside(self, arbitrate) -> None:
        adjustments = derive_adjustments(None, None, arbitrate(UPSIDE_ENCLAVE))
        assert [(a.kind, a.value) for a in adjustments] == [("hidden_potential", 5)]

    def test_unresolved_critical(self, arbitrate) -> None:
        risk = categorize_risks(
            {"location": 80, "market": 80, "operational": 80, "financial": 40, "overall": 70}
        )
        arbitration = arbitrate(FAR_LISTING)
        adjustments = derive_adjustments(risk, score_coherence_counts({}), arbitration)
        # one CRITICAL risk + one remaining critical conflict
        assert [(a.kind, a.value) for a in adjustments] == [("unresolved_critical", -10)]

    def test_risk_error_blocks_success(self) -> None:
        adjustments = derive_adjustments(RiskAssessment(error="missing_input"), score_coherence_counts({}), None)
        assert adjustments == []


class TestDecisionAggregator:
    def test_bad_scores(self) -> None:
        decision = DecisionAggregator().decide(None)
        assert decision.recommendation == Recommendation.NO_GO
        assert decision.score == 0
        assert decision.error.startswith("missing_input")

    def test_malformed_overall(self) -> None:
        decision = DecisionAggregator().decide({"overall": "ninety"})
        assert decision.recommendation == Recommendation.NO_GO
        assert decision.error.startswith("malformed_input")

    @pytest.mark.parametrize("overall", [float("nan"), float("inf")])
    def test_non_finite_overall(self, overall: float) -> None:
        decision = DecisionAggregator().decide({"overall": overall})
        assert decision.recommendation == Recommendation.NO_GO
        assert decision.score == 0
        assert decision.error.startswith("malformed_input")

    def test_non_finite_adjustment(self) -> None:
        decision = DecisionAggregator().decide({"overall": 90}, adjustments=[5, float("nan")])
        assert decision.recommendation == Recommendation.NO_GO
        assert decision.error == "malformed_input: adjustments must be finite numbers"

    def test_healthy(self) -> None:
        scores = {"location": 89, "market": 96, "operational": 94, "financial": 100, "overall": 94}
        decision = DecisionAggregator().decide(
            scores,
            risk=categorize_risks(scores),
            coherence=score_coherence_counts({}),
            arbitration=Arbitrator().arbitrate([]),
        )
        assert decision.score == 99
        assert decision.recommendation == Recommendation.GO
        assert decision.downgraded is False

    def test_explicit_adjustments(self) -> None:
        decision = DecisionAggregator().decide(
            {"overall": 32}, coherence=score_coherence_counts({}), adjustments=[8, 5],
        )
        assert decision.score == 42
        assert decision.recommendation == Recommendation.NO_GO

    def test_derive_disabled(self) -> None:
        risk = categorize_risks(GOOD_SCORES)
        decision = DecisionAggregator(derive=False).decide(
            GOOD_SCORES, risk=risk, coherence=score_coherence_counts({}),
        )
        assert decision.score == 80
        assert decision.score_breakdown.adjustments == []

    def test_critical_risk_downgrades_go(self, make_snapshot) -> None:
        snapshot = make_snapshot(photo={"analyzed": True, "budget_travaux": {"fourchette_haute": 90_000}})
        scores = {"location": 90, "market": 90, "operational": 90, "financial": 90, "overall": 90}
        risk = categorize_risks(scores, snapshot)
        decision = DecisionAggregator().decide(scores, risk=risk, coherence=score_coherence_counts({}))
        # -5 for the critical budget risk
        assert decision.score == 85
        assert decision.recommendation == Recommendation.GO_WITH_RESERVES
        assert decision.downgraded is True

    def test_risk_error_propagated(self) -> None:
        decision = DecisionAggregator().decide(
            {"overall": 90}, risk=categorize_risks({"overall": 90}), adjustments=[],
        )
        assert decision.recommendation == Recommendation.GO_WITH_RESERVES
        assert decision.error.startswith("missing_input")

    def test_incomplete(self) -> None:
        decision = DecisionAggregator().decide(GOOD_SCORES, adjustments=[], incomplete=True)
        assert decision.recommendation == Recommendation.GO_WITH_RESERVES
