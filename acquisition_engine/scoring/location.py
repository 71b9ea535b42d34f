"""
Location score: commercial synergy, demographic quality and competitor
pressure around the target shop.

Formula
-------
    location = round(synergy * 0.5 + demographic * 0.3 + competitor * 0.2)

Component rules
---------------
synergy (0–100), from traffic-locomotive POIs (bucket B):
    base 50
    locomotive closer than 100 m               → 90
    else a locomotive within 500 m             → 70
    more than 5 POIs of any kind under 200 m   → +10 (cap 100)

demographic (0–100), from density (/km², default 0) and median income
(default 28 000):
    density < 500  and income > 32 000  → 80   premium low-density
    density < 500  and income < 25 000  → 20   dead zone
    density > 2000 and income > 32 000  → 85   premium urban core
    density > 2000                      → 65
    otherwise                           → 55

competitor (0–100), from direct competitors (bucket A):
    none                                 → 100  local monopoly
    nearest farther than 300 m           → 70
    nearest at 300 m or closer           → 40
    counted but no distance known        → 70

Missing bundles: without a competitor bundle synergy and competitor
pressure fall back to a neutral 50; without both the demographic and
competitor bundles the score is unavailable (``error`` set) and the
multi-dimensional scorer uses its legacy location formula instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from acquisition_engine.models.bundles import SignalSnapshot
from acquisition_engine.taxonomy.error_taxonomy import ErrorKind
from acquisition_engine.taxonomy.poi_taxonomy import PoiBucket
from acquisition_engine.utils.numeric import clamp, round_half_up

logger = logging.getLogger(__name__)

WEIGHTS: dict[str, float] = {
    "commercial_synergy":  0.5,
    "demographic_quality": 0.3,
    "competitor_pressure": 0.2,
}

DEFAULT_MEDIAN_INCOME = 28_000.0
DEFAULT_DENSITY = 0.0
NEUTRAL_COMPONENT = 50

LOCOMOTIVE_ADJACENT_M = 100.0
LOCOMOTIVE_NEARBY_M = 500.0
CLUSTER_RADIUS_M = 200.0
CLUSTER_MIN_POIS = 5
COMPETITOR_CLOSE_M = 300.0


@dataclass(frozen=True)
class LocationScore:
    """Result of the location calculator.

    Attributes:
        location_score:      Weighted total, 0–100.
        commercial_synergy:  Synergy component, 0–100.
        demographic_quality: Demographic component, 0–100.
        competitor_pressure: Competitor component, 0–100 (higher = less pressure).
        interpretation:      excellent / very_good / fair / weak.
        metadata:            Counts and distances the components were derived from.
        error:               Set when the score could not be computed.
    """

    location_score:      int
    commercial_synergy:  int
    demographic_quality: int
    competitor_pressure: int
    interpretation:      str
    metadata:            dict[str, Any] = field(default_factory=dict)
    error:               Optional[str] = None

    @property
    def breakdown(self) -> dict[str, float]:
        return {
            "commercial_synergy":  float(self.commercial_synergy),
            "demographic_quality": float(self.demographic_quality),
            "competitor_pressure": float(self.competitor_pressure),
        }


# ── Components ────────────────────────────────────────────────────────────────


def synergy_score(
    locomotive_distances: list[float],
    locomotive_count: int,
    pois_within_200m: int,
) -> int:
    """Commercial synergy from traffic-locomotive proximity and POI clustering."""
    score = 50
    if any(d < LOCOMOTIVE_ADJACENT_M for d in locomotive_distances):
        score = 90
    elif any(d <= LOCOMOTIVE_NEARBY_M for d in locomotive_distances) or locomotive_count > 0:
        score = 70

    if pois_within_200m > CLUSTER_MIN_POIS:
        score = min(100, score + 10)
    return score


def demographic_quality_score(density: float, median_income: float) -> int:
    """Demographic quality from the density × income matrix."""
    if density < 500 and median_income > 32_000:
        return 80
    if density < 500 and median_income < 25_000:
        return 20
    if density > 2000 and median_income > 32_000:
        return 85
    if density > 2000:
        return 65
    return 55


def competitor_pressure_score(direct_count: int, nearest_meters: Optional[float]) -> int:
    """Competitor pressure from the nearest direct competitor."""
    if direct_count == 0:
        return 100
    if nearest_meters is None or nearest_meters > COMPETITOR_CLOSE_M:
        return 70
    return 40


def interpret_location(score: int) -> str:
    if score >= 85:
        return "excellent"
    if score >= 70:
        return "very_good"
    if score >= 50:
        return "fair"
    return "weak"


# ── Entry point ───────────────────────────────────────────────────────────────


def calculate_location_score(snapshot: SignalSnapshot) -> LocationScore:
    """Compute the location score of ``snapshot``.

    Returns:
        ``LocationScore``.  When neither the demographic nor the competitor
        bundle is present, every component is 0 and ``error`` is set.
    """
    demographic, competitor = snapshot.demographic, snapshot.competitor
    if demographic is None and competitor is None:
        return LocationScore(
            location_score=0,
            commercial_synergy=0,
            demographic_quality=0,
            competitor_pressure=0,
            interpretation="weak",
            error=f"{ErrorKind.MISSING_INPUT}: demographic and competitor bundles are absent",
        )

    metadata: dict[str, Any] = {"competitor_data": competitor is not None}

    if competitor is not None:
        pois = competitor.pois
        locomotives = [p for p in pois if p.effective_bucket == PoiBucket.LOCOMOTIVE]
        directs = [p for p in pois if p.effective_bucket == PoiBucket.DIRECT_COMPETITOR]
        categorization = competitor.categorization

        locomotive_distances = [p.distance_meters for p in locomotives if p.distance_meters is not None]
        locomotive_count = max(
            len(locomotives), categorization.bucket_b_locomotives if categorization else 0
        )
        within_200 = sum(
            1 for p in pois if p.distance_meters is not None and p.distance_meters < CLUSTER_RADIUS_M
        )
        direct_distances = [p.distance_meters for p in directs if p.distance_meters is not None]
        direct_count = max(
            len(directs), categorization.bucket_a_competitors if categorization else 0
        )
        nearest_direct = min(direct_distances) if direct_distances else None

        synergy = synergy_score(locomotive_distances, locomotive_count, within_200)
        pressure = competitor_pressure_score(direct_count, nearest_direct)
        metadata.update({
            "total_pois": len(pois),
            "locomotive_count": locomotive_count,
            "nearest_locomotive_m": min(locomotive_distances) if locomotive_distances else None,
            "pois_within_200m": within_200,
            "direct_competitor_count": direct_count,
            "nearest_direct_competitor_m": nearest_direct,
        })
    else:
        synergy = pressure = NEUTRAL_COMPONENT

    density = DEFAULT_DENSITY
    income = DEFAULT_MEDIAN_INCOME
    if demographic is not None:
        if demographic.density is not None:
            density = demographic.density
        if demographic.median_income is not None:
            income = demographic.median_income
    demo = demographic_quality_score(density, income)
    metadata.update({"density": density, "median_income": income})

    total = int(clamp(round_half_up(
        synergy * WEIGHTS["commercial_synergy"]
        + demo * WEIGHTS["demographic_quality"]
        + pressure * WEIGHTS["competitor_pressure"]
    ), 0, 100))

    logger.debug(
        "Location score %d (synergy=%d, demographic=%d, competitor=%d)",
        total, synergy, demo, pressure,
    )
    return LocationScore(
        location_score=total,
        commercial_synergy=synergy,
        demographic_quality=demo,
        competitor_pressure=pressure,
        interpretation=interpret_location(total),
        metadata=metadata,
    )
