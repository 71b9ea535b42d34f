"""
Risk register derived from the axis scores and the raw signal bundles.

Predicates (each evaluated independently; several may fire per axis)
--------------------------------------------------------------------
LOCATION_RISK
    location score < 50                      HIGH
    residents within 500 m < 1000            MEDIUM
    map listing not found                    MEDIUM
MARKET_RISK
    market score < 50                        HIGH
    competitor density very_high / high      HIGH / MEDIUM
    rating of a found listing < 3.5          HIGH
OPERATIONAL_RISK
    operational score < 50                   HIGH
    renovation budget > 75k / > 50k / > 25k  CRITICAL / HIGH / MEDIUM
                                             (mutually exclusive tiers)
FINANCIAL_RISK
    financial score < 50                     CRITICAL
    unresolved blocking conflicts ≥ 1        HIGH
    overall score < 50                       CRITICAL

Aggregates
----------
    risk_score = max(0, 100 - (25·critical + 15·high + 8·medium + 3·low))
    level      = critical if any CRITICAL or ≥3 HIGH
                 high     if ≥1 HIGH
                 moderate if ≥2 MEDIUM
                 low      otherwise
    blocking   = critical > 0 or high ≥ 2

Missing or malformed scores yield an assessment with ``error`` set, no
risks, risk_score 0, level critical and ``blocking=True``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from acquisition_engine.models.bundles import SignalSnapshot
from acquisition_engine.models.scoring import Risk, RiskAssessment, ScoreBreakdown, read_axis_scores
from acquisition_engine.taxonomy.conflict_taxonomy import Severity
from acquisition_engine.taxonomy.error_taxonomy import ErrorKind
from acquisition_engine.taxonomy.risk_taxonomy import RiskCategory, RiskLevel
from acquisition_engine.validation.coherence import SEVERITY_PENALTY

logger = logging.getLogger(__name__)

WEAK_AXIS_SCORE = 50
THIN_TRADE_AREA = 1000
LOW_RATING = 3.5

_LEVEL_ADVICE: dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "Critical risks identified: do not proceed without mitigating them first",
    RiskLevel.HIGH:     "High risks identified: negotiate the price and plan mitigations",
    RiskLevel.MODERATE: "Moderate risks: manageable with the listed mitigations",
    RiskLevel.LOW:      "Low risk profile",
}


def _risk(
    category: RiskCategory,
    severity: Severity,
    description: str,
    impact: str,
    mitigation: str,
    cost_estimate: Optional[float] = None,
) -> Risk:
    return Risk(
        category=category,
        severity=severity,
        description=description,
        impact=impact,
        mitigation=mitigation,
        cost_estimate=cost_estimate,
    )


# ── Per-axis predicates ───────────────────────────────────────────────────────


def location_risks(values: Mapping[str, float], snapshot: SignalSnapshot) -> list[Risk]:
    risks: list[Risk] = []
    if values["location"] < WEAK_AXIS_SCORE:
        risks.append(_risk(
            RiskCategory.LOCATION, Severity.HIGH,
            f"Weak location score ({values['location']:.0f}/100)",
            "Limited natural footfall",
            "Budget for local marketing and signage",
        ))
    demographic = snapshot.demographic
    if demographic is not None and demographic.population_500m is not None:
        if demographic.population_500m < THIN_TRADE_AREA:
            risks.append(_risk(
                RiskCategory.LOCATION, Severity.MEDIUM,
                f"Thin trade area ({demographic.population_500m} residents within 500 m)",
                "Revenue depends on passing or destination trade",
                "Verify passing traffic counts at peak hours",
            ))
    places = snapshot.places
    if places is not None and places.found is False:
        risks.append(_risk(
            RiskCategory.LOCATION, Severity.MEDIUM,
            "Business not found on the map listing service",
            "Low online visibility and unverified trading history",
            "Create and verify the listing; confirm trading activity with the seller",
        ))
    return risks


def market_risks(values: Mapping[str, float], snapshot: SignalSnapshot) -> list[Risk]:
    risks: list[Risk] = []
    if values["market"] < WEAK_AXIS_SCORE:
        risks.append(_risk(
            RiskCategory.MARKET, Severity.HIGH,
            f"Weak market score ({values['market']:.0f}/100)",
            "Customer acquisition will be costly",
            "Differentiate the offer and plan a relaunch campaign",
        ))
    competitor = snapshot.competitor
    if competitor is not None:
        if competitor.density_level == "very_high":
            risks.append(_risk(
                RiskCategory.MARKET, Severity.HIGH,
                "Very high competitive density",
                "Price pressure and shared footfall",
                "Specialise the offer to avoid head-on competition",
            ))
        elif competitor.density_level == "high":
            risks.append(_risk(
                RiskCategory.MARKET, Severity.MEDIUM,
                "High competitive density",
                "Shared footfall with nearby competitors",
                "Benchmark competitor ranges and opening hours",
            ))
    places = snapshot.places
    if places is not None and places.found and places.rating is not None and places.rating < LOW_RATING:
        risks.append(_risk(
            RiskCategory.MARKET, Severity.HIGH,
            f"Poor public rating ({places.rating}/5)",
            "Reputation deters new customers",
            "Plan a service-quality programme and respond to reviews",
        ))
    return risks


def operational_risks(values: Mapping[str, float], snapshot: SignalSnapshot) -> list[Risk]:
    risks: list[Risk] = []
    if values["operational"] < WEAK_AXIS_SCORE:
        risks.append(_risk(
            RiskCategory.OPERATIONAL, Severity.HIGH,
            f"Weak operational score ({values['operational']:.0f}/100)",
            "Premises need significant work before trading normally",
            "Obtain contractor quotes before signing",
        ))
    photo = snapshot.photo
    budget = photo.budget_high if photo is not None else None
    if budget is not None:
        if budget > 75_000:
            risks.append(_risk(
                RiskCategory.OPERATIONAL, Severity.CRITICAL,
                f"Very heavy renovation budget (up to {budget:,.0f})",
                "Renovation cost threatens the investment's payback",
                "Negotiate the price down by the works amount or walk away",
                cost_estimate=budget,
            ))
        elif budget > 50_000:
            risks.append(_risk(
                RiskCategory.OPERATIONAL, Severity.HIGH,
                f"Heavy renovation budget (up to {budget:,.0f})",
                "Extended closure and financing need",
                "Phase the works and include them in the financing plan",
                cost_estimate=budget,
            ))
        elif budget > 25_000:
            risks.append(_risk(
                RiskCategory.OPERATIONAL, Severity.MEDIUM,
                f"Moderate renovation budget (up to {budget:,.0f})",
                "Works to schedule in the first year",
                "Plan the works during a low season",
                cost_estimate=budget,
            ))
    return risks


def financial_risks(
    values: Mapping[str, float],
    overall: Optional[float],
    unresolved_blocking_conflicts: int,
) -> list[Risk]:
    risks: list[Risk] = []
    if values["financial"] < WEAK_AXIS_SCORE:
        risks.append(_risk(
            RiskCategory.FINANCIAL, Severity.CRITICAL,
            f"Weak financial score ({values['financial']:.0f}/100)",
            "Return on investment is doubtful",
            "Rebuild the business plan with conservative assumptions",
        ))
    if unresolved_blocking_conflicts >= 1:
        risks.append(_risk(
            RiskCategory.FINANCIAL, Severity.HIGH,
            f"{unresolved_blocking_conflicts} blocking data conflict(s) still unresolved",
            "The valuation rests on contradictory data",
            "Re-collect the conflicting data before the offer",
        ))
    if overall is not None and overall < WEAK_AXIS_SCORE:
        risks.append(_risk(
            RiskCategory.FINANCIAL, Severity.CRITICAL,
            f"Weak overall score ({overall:.0f}/100)",
            "The acquisition is unlikely to meet its targets",
            "Reconsider the acquisition or renegotiate substantially",
        ))
    return risks


# ── Aggregation ───────────────────────────────────────────────────────────────


def risk_level(counts: Mapping[Severity, int]) -> RiskLevel:
    if counts[Severity.CRITICAL] > 0 or counts[Severity.HIGH] >= 3:
        return RiskLevel.CRITICAL
    if counts[Severity.HIGH] >= 1:
        return RiskLevel.HIGH
    if counts[Severity.MEDIUM] >= 2:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def categorize_risks(
    scores: ScoreBreakdown | Mapping[str, Any] | None,
    snapshot: Optional[SignalSnapshot] = None,
    unresolved_blocking_conflicts: int = 0,
) -> RiskAssessment:
    """Build the risk register.

    Args:
        scores: ``ScoreBreakdown`` or a mapping with at least ``location``,
            ``market``, ``operational`` and ``financial`` (``overall`` optional).
        snapshot: Raw bundles for the input-based predicates; an empty
            snapshot is used when ``None``.
        unresolved_blocking_conflicts: CRITICAL/HIGH conflicts not settled
            by arbitration.

    Returns:
        ``RiskAssessment``.  Never raises; bad ``scores`` set ``error``.
    """
    values, error = read_axis_scores(scores)
    if error is not None:
        logger.warning("Risk categorisation skipped: %s", error)
        return RiskAssessment(error=error)

    overall_values, overall_error = read_axis_scores(scores, required=("overall",))
    if overall_error is not None and overall_error.startswith(ErrorKind.MALFORMED_INPUT):
        logger.warning("Risk categorisation skipped: %s", overall_error)
        return RiskAssessment(error=overall_error)
    overall = overall_values.get("overall")
    snapshot = snapshot or SignalSnapshot()

    risks = (
        location_risks(values, snapshot)
        + market_risks(values, snapshot)
        + operational_risks(values, snapshot)
        + financial_risks(values, overall, unresolved_blocking_conflicts)
    )

    counts = {severity: 0 for severity in Severity}
    by_category = {str(category): 0 for category in RiskCategory}
    for risk in risks:
        counts[risk.severity] += 1
        by_category[str(risk.category)] += 1

    risk_score = max(0, 100 - sum(counts[s] * SEVERITY_PENALTY[s] for s in Severity))
    level = risk_level(counts)
    blocking = counts[Severity.CRITICAL] > 0 or counts[Severity.HIGH] >= 2

    logger.info(
        "Risk register: %d risk(s), score=%d, level=%s, blocking=%s",
        len(risks), risk_score, level, blocking,
    )
    return RiskAssessment(
        risks=risks,
        risk_score=risk_score,
        overall_risk_level=level,
        blocking=blocking,
        by_severity={str(s): counts[s] for s in Severity},
        by_category=by_category,
        recommendation=_LEVEL_ADVICE[level],
    )
