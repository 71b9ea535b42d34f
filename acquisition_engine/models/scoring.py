"""
Scores, risks and the final decision.

``ScoreBreakdown`` carries the four 0–100 axis scores plus the weighted
overall score.  ``RiskAssessment`` is the risk register derived from them.
``Decision`` is the bounded final verdict.

``read_axis_scores()`` is the single place where a scores value coming from
outside the engine (a ``ScoreBreakdown`` or a plain mapping) is checked
before the risk and decision stages use it.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from acquisition_engine.taxonomy.conflict_taxonomy import Severity
from acquisition_engine.taxonomy.error_taxonomy import ErrorKind
from acquisition_engine.taxonomy.risk_taxonomy import (
    Recommendation,
    RiskCategory,
    RiskLevel,
    ScoreLevel,
)

AXES: tuple[str, ...] = ("location", "market", "operational", "financial")


class ScoreBreakdown(BaseModel):
    """Calibrated sub-scores of one evaluation.

    Attributes:
        location / market / operational / financial: Axis scores, 0–100.
        overall: Weighted total (30/25/25/20), 0–100.
        level: Band of ``overall``.
        breakdown: Per-axis component contributions before rounding.
        interpretation: Per-axis band (strong / average / weak).
        location_source: ``"location_calculator"`` or ``"legacy"``.
    """

    model_config = ConfigDict(frozen=True)

    location: int = Field(ge=0, le=100)
    market: int = Field(ge=0, le=100)
    operational: int = Field(ge=0, le=100)
    financial: int = Field(ge=0, le=100)
    overall: int = Field(ge=0, le=100)
    level: ScoreLevel
    breakdown: dict[str, dict[str, float]] = {}
    interpretation: dict[str, str] = {}
    location_source: str = "legacy"


class Risk(BaseModel):
    """One entry of the risk register."""

    model_config = ConfigDict(frozen=True)

    category: RiskCategory
    severity: Severity
    description: str
    impact: str
    mitigation: str
    cost_estimate: Optional[float] = None


class RiskAssessment(BaseModel):
    """Risk register with its aggregate score and level."""

    model_config = ConfigDict(frozen=True)

    risks: list[Risk] = []
    risk_score: int = Field(default=0, ge=0, le=100)
    overall_risk_level: RiskLevel = RiskLevel.CRITICAL
    blocking: bool = True
    by_severity: dict[str, int] = {}
    by_category: dict[str, int] = {}
    recommendation: str = ""
    error: Optional[str] = None

    @property
    def critical_risks(self) -> list[Risk]:
        return [r for r in self.risks if r.severity == Severity.CRITICAL]


class Adjustment(BaseModel):
    """A bounded strategic correction of the base score."""

    model_config = ConfigDict(frozen=True)

    kind: str
    value: int
    reason: str = ""


class DecisionBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_score: int
    adjustments: list[Adjustment] = []
    adjustment_total: int = 0
    adjusted_score: int


class Decision(BaseModel):
    """Final GO / GO_WITH_RESERVES / NO-GO verdict."""

    model_config = ConfigDict(frozen=True)

    recommendation: Recommendation
    score: int = Field(ge=0, le=100)
    score_breakdown: DecisionBreakdown
    downgraded: bool = False
    error: Optional[str] = None


def read_axis_scores(
    scores: ScoreBreakdown | Mapping[str, Any] | None,
    required: tuple[str, ...] = AXES,
) -> tuple[dict[str, float], Optional[str]]:
    """Extract numeric axis scores from ``scores``.

    Args:
        scores: A ``ScoreBreakdown``, a mapping with the axis keys, or ``None``.
        required: Keys that must be present.

    Returns:
        ``(values, None)`` on success, ``({}, "<kind>: <detail>")`` otherwise.
        Never raises.
    """
    if scores is None:
        return {}, f"{ErrorKind.MISSING_INPUT}: scores are required"

    if isinstance(scores, ScoreBreakdown):
        raw: Mapping[str, Any] = scores.model_dump()
    elif isinstance(scores, Mapping):
        raw = scores
    else:
        return {}, f"{ErrorKind.MALFORMED_INPUT}: scores must be a mapping, got {type(scores).__name__}"

    missing = [key for key in required if raw.get(key) is None]
    if missing:
        return {}, f"{ErrorKind.MISSING_INPUT}: missing scores {', '.join(missing)}"

    values: dict[str, float] = {}
    for key in required:
        value = raw[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return {}, f"{ErrorKind.MALFORMED_INPUT}: score '{key}' is not numeric"
        if not math.isfinite(value):
            return {}, f"{ErrorKind.MALFORMED_INPUT}: score '{key}' is not finite"
        values[key] = float(value)
    return values, None
