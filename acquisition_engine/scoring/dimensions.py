"""
Multi-dimensional scoring: location, market, operational and financial axes.

Formula
-------
    overall = round(location * 0.30 + market * 0.25
                    + operational * 0.25 + financial * 0.20)

Each axis is the sum of its components, rounded half-up and clamped to
[0, 100].  A component whose input is absent contributes 0.

Axes
----
location:
    The location calculator's score when available.  Legacy fallback:
        demographic_score / 100 * 40
        + population tier  (≥5000 → 30, ≥3000 → 25, ≥1500 → 20,
                            ≥800 → 15, ≥400 → 10, else 5)
        + matchScore / 100 * 30

market:
    rating / 5 * 40                     (only when the listing was found)
    + review tier  (≥100 → 20, ≥50 → 17, ≥20 → 14, ≥10 → 10, ≥5 → 7, else 3)
    + density tier (very_low 40, low 35, moderate 25, high 15,
                    very_high 5, unknown label 20)

operational:
    note_globale / 10 * 60              (only when photos were analysed)
    + budget tier  (≤10k 40, ≤25k 32, ≤50k 24, ≤75k 16, ≤100k 8, else 0)

financial:
    coherence / 100 * 50
    + potential/investment tier
        demographic ≥75 and works ≤25k → 50
        demographic ≥75 and works ≤50k → 40
        demographic ≥60 and works ≤50k → 35
        demographic ≥50 and works ≤75k → 25
        demographic ≥40                → 15
        otherwise                      → 5

Levels: overall ≥80 excellent, ≥65 good, ≥50 fair, else poor.
"""

from __future__ import annotations

import logging
from typing import Optional

from acquisition_engine.models.bundles import SignalSnapshot
from acquisition_engine.models.scoring import ScoreBreakdown
from acquisition_engine.scoring.location import LocationScore
from acquisition_engine.taxonomy.risk_taxonomy import ScoreLevel
from acquisition_engine.utils.numeric import score_0_100

logger = logging.getLogger(__name__)

AXIS_WEIGHTS: dict[str, float] = {
    "location":    0.30,
    "market":      0.25,
    "operational": 0.25,
    "financial":   0.20,
}

DENSITY_POINTS: dict[str, int] = {
    "very_low":  40,
    "low":       35,
    "moderate":  25,
    "high":      15,
    "very_high":  5,
}
_UNKNOWN_DENSITY_POINTS = 20


# ── Tiers ─────────────────────────────────────────────────────────────────────


def population_tier(population: int) -> int:
    if population >= 5000:
        return 30
    if population >= 3000:
        return 25
    if population >= 1500:
        return 20
    if population >= 800:
        return 15
    if population >= 400:
        return 10
    return 5


def review_tier(review_count: int) -> int:
    if review_count >= 100:
        return 20
    if review_count >= 50:
        return 17
    if review_count >= 20:
        return 14
    if review_count >= 10:
        return 10
    if review_count >= 5:
        return 7
    return 3


def budget_tier(budget_high: float) -> int:
    if budget_high <= 10_000:
        return 40
    if budget_high <= 25_000:
        return 32
    if budget_high <= 50_000:
        return 24
    if budget_high <= 75_000:
        return 16
    if budget_high <= 100_000:
        return 8
    return 0


def investment_tier(demographic_score: float, works: float) -> int:
    """Potential/investment ratio tier (5–50 points)."""
    if demographic_score >= 75 and works <= 25_000:
        return 50
    if demographic_score >= 75 and works <= 50_000:
        return 40
    if demographic_score >= 60 and works <= 50_000:
        return 35
    if demographic_score >= 50 and works <= 75_000:
        return 25
    if demographic_score >= 40:
        return 15
    return 5


def score_level(overall: int) -> ScoreLevel:
    if overall >= 80:
        return ScoreLevel.EXCELLENT
    if overall >= 65:
        return ScoreLevel.GOOD
    if overall >= 50:
        return ScoreLevel.FAIR
    return ScoreLevel.POOR


def interpret_axis(score: int) -> str:
    if score >= 70:
        return "strong"
    if score >= 50:
        return "average"
    return "weak"


# ── Axes ──────────────────────────────────────────────────────────────────────


def legacy_location(snapshot: SignalSnapshot) -> dict[str, float]:
    """Location components used when the location calculator is unavailable."""
    parts = {"demographic": 0.0, "population": 0.0, "match": 0.0}
    demographic = snapshot.demographic
    if demographic is not None:
        if demographic.score is not None:
            parts["demographic"] = demographic.score / 100 * 40
        if demographic.population_500m is not None:
            parts["population"] = float(population_tier(demographic.population_500m))
    places = snapshot.places
    if places is not None and places.match_score is not None:
        parts["match"] = places.match_score / 100 * 30
    return parts


def market_components(snapshot: SignalSnapshot) -> dict[str, float]:
    parts = {"reputation": 0.0, "reviews": 0.0, "density": 0.0}
    places = snapshot.places
    if places is not None:
        if places.found and places.rating is not None:
            parts["reputation"] = places.rating / 5 * 40
        if places.user_ratings_total is not None:
            parts["reviews"] = float(review_tier(places.user_ratings_total))
    competitor = snapshot.competitor
    if competitor is not None and competitor.density_level is not None:
        parts["density"] = float(
            DENSITY_POINTS.get(competitor.density_level, _UNKNOWN_DENSITY_POINTS)
        )
    return parts


def operational_components(snapshot: SignalSnapshot) -> dict[str, float]:
    parts = {"condition": 0.0, "budget": 0.0}
    photo = snapshot.photo
    if photo is not None:
        if photo.analyzed and photo.overall_note is not None:
            parts["condition"] = photo.overall_note / 10 * 60
        if photo.budget_high is not None:
            parts["budget"] = float(budget_tier(photo.budget_high))
    return parts


def financial_components(snapshot: SignalSnapshot, coherence_score: int) -> dict[str, float]:
    parts = {"coherence": coherence_score / 100 * 50, "investment": 0.0}
    demographic, photo = snapshot.demographic, snapshot.photo
    if (
        demographic is not None and demographic.score is not None
        and photo is not None and photo.budget_high is not None
    ):
        parts["investment"] = float(investment_tier(demographic.score, photo.budget_high))
    return parts


# ── Entry point ───────────────────────────────────────────────────────────────


def calculate_scores(
    snapshot: SignalSnapshot,
    coherence_score: int,
    location: Optional[LocationScore] = None,
) -> ScoreBreakdown:
    """Score the four axes and the weighted overall.

    Args:
        snapshot:        Decoded signal bundles.
        coherence_score: Output of the coherence scorer (0–100).
        location:        Location calculator output; the legacy location
                         formula is used when ``None`` or carrying an error.

    Returns:
        ``ScoreBreakdown`` with integer scores in [0, 100].
    """
    if location is not None and location.error is None:
        location_parts = location.breakdown
        location_value = location.location_score
        location_source = "location_calculator"
    else:
        location_parts = legacy_location(snapshot)
        location_value = score_0_100(sum(location_parts.values()))
        location_source = "legacy"

    market_parts = market_components(snapshot)
    operational_parts = operational_components(snapshot)
    financial_parts = financial_components(snapshot, coherence_score)

    axes = {
        "location":    score_0_100(location_value),
        "market":      score_0_100(sum(market_parts.values())),
        "operational": score_0_100(sum(operational_parts.values())),
        "financial":   score_0_100(sum(financial_parts.values())),
    }
    overall = score_0_100(sum(axes[name] * weight for name, weight in AXIS_WEIGHTS.items()))

    logger.info(
        "Scores: location=%d market=%d operational=%d financial=%d overall=%d",
        axes["location"], axes["market"], axes["operational"], axes["financial"], overall,
    )
    return ScoreBreakdown(
        **axes,
        overall=overall,
        level=score_level(overall),
        breakdown={
            "location":    {k: round(v, 2) for k, v in location_parts.items()},
            "market":      {k: round(v, 2) for k, v in market_parts.items()},
            "operational": {k: round(v, 2) for k, v in operational_parts.items()},
            "financial":   {k: round(v, 2) for k, v in financial_parts.items()},
        },
        interpretation={name: interpret_axis(value) for name, value in axes.items()},
        location_source=location_source,
    )
