"""
Final decision: bounded strategic adjustments on top of the overall score.

Formula
-------
    adj_i          = clamp(adjustment_i, -cap, +cap)           cap = 10
    Σadj           = clamp(Σ adj_i, -cap, +cap)
    adjusted_score = clamp(base_score + Σadj, 0, 100)

    adjusted ≥ 75  → GO
    adjusted ≥ 50  → GO_WITH_RESERVES
    otherwise      → NO-GO

GO is downgraded to GO_WITH_RESERVES when a CRITICAL risk is still in the
register, when the risk register could not be built, or when inputs were
incomplete.

Derived adjustments (used when none are supplied)
-------------------------------------------------
hidden_potential      +5 per HYBRID resolution revealing an upside
                      (pricing repositioning, commercial district), max +10
success_conditions    +5 when the risk register is not blocking, arbitration
                      left no blocking issue and coherence is good/excellent
unresolved_critical   −5 per CRITICAL risk or remaining critical conflict, max −10
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from acquisition_engine.models.arbitration import ArbitrationResult
from acquisition_engine.models.scoring import (
    Adjustment,
    Decision,
    DecisionBreakdown,
    RiskAssessment,
    ScoreBreakdown,
    read_axis_scores,
)
from acquisition_engine.models.validation import CoherenceResult
from acquisition_engine.taxonomy.conflict_taxonomy import ResolutionType
from acquisition_engine.taxonomy.error_taxonomy import ErrorKind
from acquisition_engine.taxonomy.risk_taxonomy import CoherenceLevel, Recommendation
from acquisition_engine.utils.numeric import clamp, round_half_up

logger = logging.getLogger(__name__)

GO_THRESHOLD = 75
RESERVES_THRESHOLD = 50
DEFAULT_ADJUSTMENT_CAP = 10

HIDDEN_POTENTIAL_STEP = 5
HIDDEN_POTENTIAL_MAX = 10
SUCCESS_CONDITIONS_BONUS = 5
CRITICAL_PENALTY_STEP = 5
CRITICAL_PENALTY_MAX = 10


def recommendation_for(score: int) -> Recommendation:
    if score >= GO_THRESHOLD:
        return Recommendation.GO
    if score >= RESERVES_THRESHOLD:
        return Recommendation.GO_WITH_RESERVES
    return Recommendation.NO_GO


def _as_adjustment(item: Adjustment | int | float, cap: int) -> Adjustment:
    """Wrap a plain value and bound it to [-cap, +cap]."""
    adjustment = item if isinstance(item, Adjustment) else Adjustment(
        kind="manual", value=round_half_up(item),
    )
    bounded = int(clamp(adjustment.value, -cap, cap))
    if bounded != adjustment.value:
        return adjustment.model_copy(update={"value": bounded})
    return adjustment


def compose_decision(
    base_score: float,
    adjustments: Iterable[Adjustment | int | float] = (),
    critical_risk_unresolved: bool = False,
    incomplete: bool = False,
    cap: int = DEFAULT_ADJUSTMENT_CAP,
    error: Optional[str] = None,
) -> Decision:
    """Apply adjustments to ``base_score`` and pick the recommendation.

    Args:
        base_score: Overall score (0–100).
        adjustments: ``Adjustment`` objects or plain point values.
        critical_risk_unresolved: Forces GO down to GO_WITH_RESERVES.
        incomplete: Inputs were missing or undecodable; also forces GO down.
        cap: Symmetric bound on each adjustment and on their sum.
        error: Propagated into the decision; also forces GO down.

    Returns:
        ``Decision`` with the full score breakdown.
    """
    items = [_as_adjustment(a, cap) for a in adjustments]
    base = int(clamp(round_half_up(base_score), 0, 100))
    total = int(clamp(sum(a.value for a in items), -cap, cap))
    adjusted = int(clamp(base + total, 0, 100))

    recommendation = recommendation_for(adjusted)
    downgraded = False
    if recommendation == Recommendation.GO and (critical_risk_unresolved or incomplete or error):
        recommendation = Recommendation.GO_WITH_RESERVES
        downgraded = True

    return Decision(
        recommendation=recommendation,
        score=adjusted,
        score_breakdown=DecisionBreakdown(
            base_score=base,
            adjustments=items,
            adjustment_total=total,
            adjusted_score=adjusted,
        ),
        downgraded=downgraded,
        error=error,
    )


def derive_adjustments(
    risk: Optional[RiskAssessment],
    coherence: Optional[CoherenceResult],
    arbitration: Optional[ArbitrationResult],
) -> list[Adjustment]:
    """Strategic adjustments implied by the other stages' outputs."""
    adjustments: list[Adjustment] = []

    if arbitration is not None:
        upsides = sum(
            1
            for r in arbitration.resolutions
            if r.resolution == ResolutionType.HYBRID
            and (
                "opportunity_type" in r.updated_data
                or r.updated_data.get("zone_type") == "commercial_district"
            )
        )
        if upsides:
            adjustments.append(Adjustment(
                kind="hidden_potential",
                value=min(HIDDEN_POTENTIAL_MAX, HIDDEN_POTENTIAL_STEP * upsides),
                reason=f"{upsides} arbitrated conflict(s) reveal an upside",
            ))

    clean_risk = risk is not None and risk.error is None and not risk.blocking
    clean_arbitration = arbitration is None or arbitration.go_no_go_impact.blocking_issues_resolved
    coherent = coherence is not None and coherence.coherence_level in (
        CoherenceLevel.EXCELLENT, CoherenceLevel.GOOD,
    )
    if clean_risk and clean_arbitration and coherent:
        adjustments.append(Adjustment(
            kind="success_conditions",
            value=SUCCESS_CONDITIONS_BONUS,
            reason="No blocking risk, no blocking conflict, coherent signals",
        ))

    critical = len(risk.critical_risks) if risk is not None else 0
    if arbitration is not None:
        critical += arbitration.go_no_go_impact.remaining_critical_issues
    if critical:
        adjustments.append(Adjustment(
            kind="unresolved_critical",
            value=-min(CRITICAL_PENALTY_MAX, CRITICAL_PENALTY_STEP * critical),
            reason=f"{critical} critical risk(s) or conflict(s) unresolved",
        ))
    return adjustments


class DecisionAggregator:
    """Turns scores, risks, coherence and arbitration into a final decision.

    Args:
        adjustment_cap: Symmetric bound on each adjustment and on their sum.
        derive: Derive adjustments when none are passed to ``decide``.
    """

    def __init__(self, adjustment_cap: int = DEFAULT_ADJUSTMENT_CAP, derive: bool = True) -> None:
        self.adjustment_cap = adjustment_cap
        self.derive = derive

    def decide(
        self,
        scores: ScoreBreakdown | Mapping[str, Any] | None,
        risk: Optional[RiskAssessment] = None,
        coherence: Optional[CoherenceResult] = None,
        arbitration: Optional[ArbitrationResult] = None,
        adjustments: Optional[Iterable[Adjustment | int | float]] = None,
        incomplete: bool = False,
    ) -> Decision:
        """Produce the final decision.  Never raises on bad ``scores`` or adjustments.

        Args:
            scores: Overall score source (``ScoreBreakdown`` or mapping with ``overall``).
            risk: Risk register; its CRITICAL risks block a clean GO.
            coherence: Coherence result, used for derived adjustments.
            arbitration: Arbitration result, used for derived adjustments.
            adjustments: Explicit adjustments; derived ones are used when ``None``.
            incomplete: Inputs were missing or undecodable; blocks a clean GO.
        """
        values, error = read_axis_scores(scores, required=("overall",))
        if error is None and adjustments is not None:
            adjustments = list(adjustments)
            if any(not isinstance(a, Adjustment) and not math.isfinite(a) for a in adjustments):
                error = f"{ErrorKind.MALFORMED_INPUT}: adjustments must be finite numbers"
        if error is not None:
            logger.warning("Decision forced to NO-GO: %s", error)
            return Decision(
                recommendation=Recommendation.NO_GO,
                score=0,
                score_breakdown=DecisionBreakdown(base_score=0, adjusted_score=0),
                error=error,
            )

        if adjustments is None:
            adjustments = derive_adjustments(risk, coherence, arbitration) if self.derive else []

        critical_unresolved = risk is not None and bool(risk.critical_risks)
        risk_error = risk.error if risk is not None else None
        decision = compose_decision(
            values["overall"],
            adjustments,
            critical_risk_unresolved=critical_unresolved,
            incomplete=incomplete,
            cap=self.adjustment_cap,
            error=risk_error,
        )
        logger.info(
            "Decision: %s (base=%d, adjustments=%+d, score=%d%s)",
            decision.recommendation,
            decision.score_breakdown.base_score,
            decision.score_breakdown.adjustment_total,
            decision.score,
            ", downgraded" if decision.downgraded else "",
        )
        return decision
