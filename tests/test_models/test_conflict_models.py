"""
Tests for acquisition_engine/models/conflict.py and models/scoring.py.

What we test
------------
Resolution:
  - confidence outside [0, 1] is rejected.
  - confidence_band boundaries (0.90 / 0.70 / 0.50).
Conflict:
  - frozen; model_copy is the only way to flip ``resolved``.
read_axis_scores():
  - None → missing_input error.
  - Missing axis → missing_input error naming the axis.
  - Non-numeric, NaN or infinite → malformed_input error.
  - ScoreBreakdown and plain mappings both accepted.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from acquisition_engine.models.conflict import Conflict, Resolution
from acquisition_engine.models.scoring import ScoreBreakdown, read_axis_scores
from acquisition_engine.taxonomy.conflict_taxonomy import ConflictType, ResolutionType, Severity
from acquisition_engine.taxonomy.risk_taxonomy import ScoreLevel

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _resolution(confidence: float) -> Resolution:
    return Resolution(
        conflict_id="c1",
        conflict_type=ConflictType.GEOGRAPHIC,
        original_severity=Severity.MEDIUM,
        resolution=ResolutionType.CONFIRMED,
        confidence=confidence,
        explanation="",
        action="",
        resolved_at=NOW,
    )


class TestResolution:
    @pytest.mark.parametrize("confidence", [-0.1, 1.01])
    def test_confidence_range(self, confidence: float) -> None:
        with pytest.raises(ValidationError):
            _resolution(confidence)

    @pytest.mark.parametrize("confidence,band", [
        (0.95, "certain"),
        (0.90, "certain"),
        (0.89, "probable"),
        (0.70, "probable"),
        (0.69, "verify"),
        (0.50, "verify"),
        (0.49, "revalidate"),
    ])
    def test_confidence_band(self, confidence: float, band: str) -> None:
        assert _resolution(confidence).confidence_band == band


class TestConflict:
    def test_resolved_via_copy(self) -> None:
        conflict = Conflict(
            id="c1",
            type=ConflictType.SCORE,
            severity=Severity.MEDIUM,
            description="x",
            detected_at=NOW,
        )
        with pytest.raises(ValidationError):
            conflict.resolved = True  # type: ignore[misc]
        resolved = conflict.model_copy(update={"resolved": True})
        assert resolved.resolved is True
        assert conflict.resolved is False


class TestReadAxisScores:
    def test_none(self) -> None:
        values, error = read_axis_scores(None)
        assert values == {}
        assert error is not None and error.startswith("missing_input")

    def test_missing_axis(self) -> None:
        _, error = read_axis_scores({"location": 50, "market": 50, "operational": 50})
        assert error is not None and "financial" in error

    def test_non_numeric(self) -> None:
        _, error = read_axis_scores(
            {"location": 50, "market": "high", "operational": 50, "financial": 50}
        )
        assert error is not None and error.startswith("malformed_input")

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite(self, bad: float) -> None:
        values, error = read_axis_scores(
            {"location": 50, "market": bad, "operational": 50, "financial": 50}
        )
        assert values == {}
        assert error == "malformed_input: score 'market' is not finite"

    def test_not_a_mapping(self) -> None:
        _, error = read_axis_scores([1, 2, 3])  # type: ignore[arg-type]
        assert error is not None and error.startswith("malformed_input")

    def test_score_breakdown(self) -> None:
        scores = ScoreBreakdown(
            location=60, market=70, operational=80, financial=90, overall=73,
            level=ScoreLevel.GOOD,
        )
        values, error = read_axis_scores(scores)
        assert error is None
        assert values == {"location": 60.0, "market": 70.0, "operational": 80.0, "financial": 90.0}
