"""
Tests for acquisition_engine/scoring/risk.py.

What we test
------------
Error contract (never raises):
  - scores None, a required axis missing, a non-numeric axis, a NaN or
    infinite axis, a non-mapping.
  - Error assessments: no risks, risk_score 0, level critical, blocking.
Predicates:
  - Weak-axis risks, thin trade area, listing not found, density, rating.
  - Renovation budget tiers are mutually exclusive.
  - Unresolved blocking conflicts add a HIGH financial risk.
Reference register:
  - scores 45/40/35/38/40 with an 85 000 budget → exactly one budget risk,
    CRITICAL; blocking; risk_score floored at 0.
Aggregates: risk_level thresholds, blocking rule, per-category counts.
Healthy shop: no risks, risk_score 100, level low.
"""

from __future__ import annotations

import pytest

from acquisition_engine.models.bundles import SignalSnapshot
from acquisition_engine.scoring.risk import categorize_risks, risk_level
from acquisition_engine.taxonomy.conflict_taxonomy import Severity
from acquisition_engine.taxonomy.risk_taxonomy import RiskCategory, RiskLevel

GOOD_SCORES = {"location": 80, "market": 80, "operational": 80, "financial": 80, "overall": 80}


def _budget_snapshot(make_snapshot, budget: float) -> SignalSnapshot:
    return make_snapshot(photo={"analyzed": True, "budget_travaux": {"fourchette_haute": budget}})


class TestErrorContract:
    @pytest.mark.parametrize("scores,kind", [
        (None, "missing_input"),
        ({"location": 50, "market": 50, "operational": 50}, "missing_input"),
        ({"location": 50, "market": "high", "operational": 50, "financial": 50}, "malformed_input"),
        ({"location": 50, "market": True, "operational": 50, "financial": 50}, "malformed_input"),
        ([45, 40, 35, 38], "malformed_input"),
        ({"location": float("nan"), "market": 80, "operational": 80, "financial": 80}, "malformed_input"),
        ({"location": 80, "market": 80, "operational": 80, "financial": 80, "overall": float("inf")},
         "malformed_input"),
    ])
    def test_bad_scores(self, scores, kind: str) -> None:
        result = categorize_risks(scores)
        assert result.error is not None
        assert result.error.startswith(kind)
        assert result.risks == []
        assert result.risk_score == 0
        assert result.overall_risk_level == RiskLevel.CRITICAL
        assert result.blocking is True

    def test_missing_axis_named(self) -> None:
        result = categorize_risks({"location": 50, "market": 50, "operational": 50})
        assert "financial" in result.error

    def test_overall_optional(self) -> None:
        scores = {k: v for k, v in GOOD_SCORES.items() if k != "overall"}
        result = categorize_risks(scores)
        assert result.error is None
        assert result.risks == []


class TestReferenceRegister:
    def test_heavy_budget(self, make_snapshot) -> None:
        scores = {"location": 45, "market": 40, "operational": 35, "financial": 38, "overall": 40}
        result = categorize_risks(scores, _budget_snapshot(make_snapshot, 85_000))

        budget_risks = [r for r in result.risks if r.cost_estimate is not None]
        assert len(budget_risks) == 1
        assert budget_risks[0].severity == Severity.CRITICAL
        assert budget_risks[0].cost_estimate == 85_000

        assert result.blocking is True
        assert result.overall_risk_level == RiskLevel.CRITICAL
        assert result.risk_score == 0
        # budget, financial score and overall score
        assert len(result.critical_risks) == 3
        assert result.by_severity == {"LOW": 0, "MEDIUM": 0, "HIGH": 3, "CRITICAL": 3}

    def test_budget_is_only_critical_with_healthy_axes(self, make_snapshot) -> None:
        result = categorize_risks(GOOD_SCORES, _budget_snapshot(make_snapshot, 85_000))
        assert [r.severity for r in result.risks] == [Severity.CRITICAL]
        assert result.blocking is True
        assert result.risk_score == 75


class TestPredicates:
    @pytest.mark.parametrize("budget,severity", [
        (80_000, Severity.CRITICAL),
        (75_000, Severity.HIGH),
        (60_000, Severity.HIGH),
        (50_000, Severity.MEDIUM),
        (30_000, Severity.MEDIUM),
        (25_000, None),
    ])
    def test_budget_tiers(self, make_snapshot, budget: float, severity) -> None:
        result = categorize_risks(GOOD_SCORES, _budget_snapshot(make_snapshot, budget))
        if severity is None:
            assert result.risks == []
        else:
            (risk,) = result.risks
            assert risk.category == RiskCategory.OPERATIONAL
            assert risk.severity == severity

    def test_weak_axes(self) -> None:
        scores = {"location": 49, "market": 49, "operational": 49, "financial": 49, "overall": 50}
        result = categorize_risks(scores)
        severities = {r.category: r.severity for r in result.risks}
        assert severities == {
            RiskCategory.LOCATION: Severity.HIGH,
            RiskCategory.MARKET: Severity.HIGH,
            RiskCategory.OPERATIONAL: Severity.HIGH,
            RiskCategory.FINANCIAL: Severity.CRITICAL,
        }

    def test_location_inputs(self, make_snapshot) -> None:
        snapshot = make_snapshot(
            demographic={"trade_area_potential": {"walking_500m": 800}},
            places={"found": False},
        )
        result = categorize_risks(GOOD_SCORES, snapshot)
        assert [(r.category, r.severity) for r in result.risks] == [
            (RiskCategory.LOCATION, Severity.MEDIUM),
            (RiskCategory.LOCATION, Severity.MEDIUM),
        ]
        assert result.overall_risk_level == RiskLevel.MODERATE
        assert result.blocking is False
        assert result.risk_score == 84

    @pytest.mark.parametrize("density,severity", [
        ("very_high", Severity.HIGH), ("high", Severity.MEDIUM), ("moderate", None),
    ])
    def test_density(self, make_snapshot, density: str, severity) -> None:
        result = categorize_risks(GOOD_SCORES, make_snapshot(competitor={"density_level": density}))
        assert [r.severity for r in result.risks] == ([severity] if severity else [])

    def test_poor_rating(self, make_snapshot) -> None:
        snapshot = make_snapshot(places={"found": True, "rating": 3.2})
        (risk,) = categorize_risks(GOOD_SCORES, snapshot).risks
        assert risk.category == RiskCategory.MARKET
        assert risk.severity == Severity.HIGH

    def test_rating_of_unfound_listing_ignored(self, make_snapshot) -> None:
        snapshot = make_snapshot(places={"found": False, "rating": 2.0})
        result = categorize_risks(GOOD_SCORES, snapshot)
        assert all(r.category == RiskCategory.LOCATION for r in result.risks)

    def test_unresolved_conflicts(self) -> None:
        result = categorize_risks(GOOD_SCORES, unresolved_blocking_conflicts=2)
        (risk,) = result.risks
        assert risk.category == RiskCategory.FINANCIAL
        assert risk.severity == Severity.HIGH
        assert result.overall_risk_level == RiskLevel.HIGH
        assert result.blocking is False


class TestAggregates:
    @pytest.mark.parametrize("critical,high,medium,level", [
        (1, 0, 0, RiskLevel.CRITICAL),
        (0, 3, 0, RiskLevel.CRITICAL),
        (0, 2, 0, RiskLevel.HIGH),
        (0, 1, 5, RiskLevel.HIGH),
        (0, 0, 2, RiskLevel.MODERATE),
        (0, 0, 1, RiskLevel.LOW),
        (0, 0, 0, RiskLevel.LOW),
    ])
    def test_risk_level(self, critical: int, high: int, medium: int, level: RiskLevel) -> None:
        counts = {
            Severity.CRITICAL: critical,
            Severity.HIGH: high,
            Severity.MEDIUM: medium,
            Severity.LOW: 0,
        }
        assert risk_level(counts) == level

    def test_two_high_is_blocking(self, make_snapshot) -> None:
        snapshot = make_snapshot(
            places={"found": True, "rating": 3.0},
            competitor={"density_level": "very_high"},
        )
        result = categorize_risks(GOOD_SCORES, snapshot)
        assert result.blocking is True
        assert result.by_category["MARKET_RISK"] == 2

    def test_healthy_shop(self, strong_snapshot: SignalSnapshot) -> None:
        result = categorize_risks(
            {"location": 89, "market": 96, "operational": 94, "financial": 100, "overall": 94},
            strong_snapshot,
        )
        assert result.risks == []
        assert result.risk_score == 100
        assert result.overall_risk_level == RiskLevel.LOW
        assert result.blocking is False
        assert result.error is None

    def test_deterministic(self, strong_snapshot: SignalSnapshot) -> None:
        assert categorize_risks(GOOD_SCORES, strong_snapshot) == categorize_risks(
            GOOD_SCORES, strong_snapshot
        )
