"""Tests for acquisition_engine.reporting.formatters."""

from __future__ import annotations

import pytest

from acquisition_engine.decision.aggregator import compose_decision
from acquisition_engine.models.conflict import Conflict
from acquisition_engine.models.scoring import Risk
from acquisition_engine.pipeline.evaluate import EvaluationPipeline
from acquisition_engine.reporting.formatters import (
    format_coherence,
    format_conflicts,
    format_decision_banner,
    format_evaluation_summary,
    format_risks,
    format_scores,
)
from acquisition_engine.taxonomy.conflict_taxonomy import ConflictType, Severity
from acquisition_engine.taxonomy.risk_taxonomy import RiskCategory
from acquisition_engine.validation.coherence import score_coherence_counts


@pytest.fixture
def healthy_report(strong_payload, fixed_clock, sequential_ids):
    return EvaluationPipeline(id_factory=sequential_ids, clock=fixed_clock).run_payload(strong_payload)


# ── format_decision_banner ────────────────────────────────────────────────────


def test_banner_go() -> None:
    """GO banner shows score, base and signed adjustments."""
    banner = format_decision_banner(compose_decision(89, [5]))
    assert banner.strip() == "[GO] score 94/100 (base 89, adjustments +5)"


def test_banner_downgraded() -> None:
    """A downgraded verdict is flagged."""
    banner = format_decision_banner(compose_decision(80, critical_risk_unresolved=True))
    assert "[GO_WITH_RESERVES]" in banner
    assert "-- downgraded" in banner


def test_banner_negative_adjustment() -> None:
    banner = format_decision_banner(compose_decision(52, [-10]))
    assert "[NO-GO] score 42/100" in banner
    assert "adjustments -10" in banner


def test_banner_error_on_second_line() -> None:
    """Decision errors are printed below the banner."""
    banner = format_decision_banner(compose_decision(90, error="missing_input: scores"))
    lines = banner.split("\n")
    assert len(lines) == 2
    assert lines[1].strip() == "[ERROR] missing_input: scores"


# ── format_scores / format_coherence ──────────────────────────────────────────


def test_scores_table(healthy_report) -> None:
    """One row per axis plus the overall row."""
    table = format_scores(healthy_report.scores)
    lines = table.split("\n")
    assert len(lines) == 7
    assert "location" in lines[2] and "89" in lines[2]
    assert "overall" in lines[-1] and "excellent" in lines[-1]


def test_coherence_line() -> None:
    text = format_coherence(score_coherence_counts({"CRITICAL": 1, "HIGH": 2}))
    assert "62/100 (medium)" in text
    assert "reliability medium" in text
    assert "(5/5 collaborators)" in text


# ── format_conflicts / format_risks ───────────────────────────────────────────


def test_no_conflicts() -> None:
    assert format_conflicts([]).strip() == "No conflicts detected."


def test_conflict_with_resolution(fixed_clock) -> None:
    """A resolved conflict shows the outcome and its confidence band."""
    from acquisition_engine.arbitration.arbitrator import Arbitrator

    conflict = Conflict(
        id="c-1",
        type=ConflictType.GEOGRAPHIC,
        severity=Severity.CRITICAL,
        description="Listing 250 m away",
        sources={"distance_meters": 250},
        detected_at=fixed_clock(),
    )
    resolution = Arbitrator(clock=fixed_clock).resolve(conflict)
    text = format_conflicts([conflict], [resolution])
    assert "GEOGRAPHIC_MISMATCH: Listing 250 m away" in text
    assert "-> REJECTED (confidence 0.95, certain)" in text


def test_no_risks() -> None:
    assert format_risks([]).strip() == "No risks identified."


def test_risk_with_cost() -> None:
    risk = Risk(
        category=RiskCategory.OPERATIONAL,
        severity=Severity.CRITICAL,
        description="Very heavy renovation budget",
        impact="Payback",
        mitigation="Negotiate the price down",
        cost_estimate=85_000,
    )
    text = format_risks([risk])
    assert "(cost 85,000)" in text
    assert "mitigation: Negotiate the price down" in text


# ── format_evaluation_summary ─────────────────────────────────────────────────


def test_summary_sections(healthy_report) -> None:
    summary = format_evaluation_summary(healthy_report)
    assert summary.startswith(f"Evaluation {healthy_report.run_slug}")
    for heading in ("Scores", "Coherence", "Conflicts (0)", "Risks (0)"):
        assert heading in summary
    assert "[GO] score 99/100" in summary
    assert "Errors" not in summary


def test_summary_lists_errors(strong_payload, fixed_clock, sequential_ids) -> None:
    strong_payload["photo"] = "not json"
    report = EvaluationPipeline(id_factory=sequential_ids, clock=fixed_clock).run_payload(
        strong_payload
    )
    summary = format_evaluation_summary(report)
    assert "\nErrors\n" in summary
    assert "[ERROR] photo: malformed_input" in summary
