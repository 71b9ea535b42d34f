"""
Cross-validation of the five signal bundles against each other.

Every rule compares two (or three) bundles and returns the issues it finds.
Rules are plain functions registered in ``RULES``, keyed by the conflict type
they detect; ``cross_validate()`` runs all of them on every pass.

Rules
-----
POPULATION_POI_MISMATCH   (demographic × competitor)
    population(500 m) > 3000 and 0 POI       → HIGH
    population(500 m) < 500  and > 10 POI    → MEDIUM

CSP_PRICING_MISMATCH      (demographic × places)
    dominant CSP "high" and priceLevel = 1   → MEDIUM
    dominant CSP "low"  and priceLevel ≥ 3   → MEDIUM

RATING_PHOTOS_MISMATCH    (places × photo; needs rating, analyzed photos, note)
    rating > 4.0 and note < 5                → HIGH
    rating < 3.0 and note > 8                → MEDIUM

GEOGRAPHIC_MISMATCH       (preparation × places)
    haversine distance > 200 m               → CRITICAL
    100 m < distance ≤ 200 m                 → MEDIUM

SCORE_MISMATCH            (demographic × photo)
    demographic score > 75 and works > 50 000 → MEDIUM

DATA_INCONSISTENCY        (places × preparation)
    places.found is False, coordinates known → MEDIUM

A rule whose inputs are absent does not fire.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from acquisition_engine.models.bundles import SignalSnapshot
from acquisition_engine.models.conflict import Issue
from acquisition_engine.models.validation import CrossValidationResult
from acquisition_engine.taxonomy.conflict_taxonomy import ConflictType, Severity
from acquisition_engine.utils.numeric import haversine_meters

logger = logging.getLogger(__name__)

Rule = Callable[[SignalSnapshot], list[Issue]]

# ── Thresholds ────────────────────────────────────────────────────────────────

DENSE_POPULATION = 3000
SPARSE_POPULATION = 500
CROWDED_POI_COUNT = 10

HIGH_RATING = 4.0
LOW_RATING = 3.0
POOR_CONDITION_NOTE = 5.0
EXCELLENT_CONDITION_NOTE = 8.0

GEO_CRITICAL_METERS = 200.0
GEO_MEDIUM_METERS = 100.0

HIGH_DEMOGRAPHIC_SCORE = 75.0
HEAVY_WORKS_BUDGET = 50_000.0


# ── Rules ─────────────────────────────────────────────────────────────────────


def check_population_poi(snapshot: SignalSnapshot) -> list[Issue]:
    demographic, competitor = snapshot.demographic, snapshot.competitor
    if demographic is None or demographic.trade_area_potential is None or competitor is None:
        return []

    population = demographic.population_500m or 0
    poi_count = competitor.total_competitors or 0
    sources = {"demographic_population": population, "competitor_total_poi": poi_count}

    if population > DENSE_POPULATION and poi_count == 0:
        return [Issue(
            type=ConflictType.POPULATION_POI,
            severity=Severity.HIGH,
            description=(
                f"Dense trade area ({population} residents within 500 m) "
                "but no point of interest found nearby"
            ),
            sources=sources,
        )]
    if population < SPARSE_POPULATION and poi_count > CROWDED_POI_COUNT:
        return [Issue(
            type=ConflictType.POPULATION_POI,
            severity=Severity.MEDIUM,
            description=(
                f"Sparse trade area ({population} residents within 500 m) "
                f"but {poi_count} points of interest nearby"
            ),
            sources=sources,
        )]
    return []


def check_csp_pricing(snapshot: SignalSnapshot) -> list[Issue]:
    demographic, places = snapshot.demographic, snapshot.places
    if demographic is None or demographic.csp_profile is None or places is None:
        return []

    csp = demographic.csp_profile.dominant
    price_level = places.price_level
    if csp is None or price_level is None:
        return []

    sources = {"demographic_csp": csp, "places_price_level": price_level}
    if csp == "high" and price_level == 1:
        return [Issue(
            type=ConflictType.CSP_PRICING,
            severity=Severity.MEDIUM,
            description="Affluent trade area but discount price positioning",
            sources=sources,
        )]
    if csp == "low" and price_level >= 3:
        return [Issue(
            type=ConflictType.CSP_PRICING,
            severity=Severity.MEDIUM,
            description="Modest trade area but premium price positioning",
            sources=sources,
        )]
    return []


def check_rating_photos(snapshot: SignalSnapshot) -> list[Issue]:
    places, photo = snapshot.places, snapshot.photo
    if places is None or photo is None or not places.rating or not photo.analyzed:
        return []

    note = photo.overall_note
    if note is None:
        return []

    rating = places.rating
    sources = {"places_rating": rating, "photo_note_globale": note}
    if rating > HIGH_RATING and note < POOR_CONDITION_NOTE:
        return [Issue(
            type=ConflictType.RATING_PHOTOS,
            severity=Severity.HIGH,
            description=f"Excellent rating ({rating}/5) but poor premises condition ({note}/10)",
            sources=sources,
        )]
    if rating < LOW_RATING and note > EXCELLENT_CONDITION_NOTE:
        return [Issue(
            type=ConflictType.RATING_PHOTOS,
            severity=Severity.MEDIUM,
            description=f"Low rating ({rating}/5) despite excellent premises condition ({note}/10)",
            sources=sources,
        )]
    return []


def check_geographic(snapshot: SignalSnapshot) -> list[Issue]:
    preparation, places = snapshot.preparation, snapshot.places
    if preparation is None or preparation.coordinates is None:
        return []
    if places is None or places.location is None:
        return []

    prep, listed = preparation.coordinates, places.location
    distance = haversine_meters(prep.lat, prep.lon, listed.lat, listed.lon)
    sources = {
        "preparation_coords": {"lat": prep.lat, "lon": prep.lon},
        "places_coords": {"lat": listed.lat, "lon": listed.lon},
        "distance_meters": round(distance),
    }

    if distance > GEO_CRITICAL_METERS:
        return [Issue(
            type=ConflictType.GEOGRAPHIC,
            severity=Severity.CRITICAL,
            description=(
                f"Map listing is {distance:.0f} m away from the geocoded address; "
                "the listing probably belongs to another business"
            ),
            sources=sources,
        )]
    if distance > GEO_MEDIUM_METERS:
        return [Issue(
            type=ConflictType.GEOGRAPHIC,
            severity=Severity.MEDIUM,
            description=f"Map listing is {distance:.0f} m away from the geocoded address",
            sources=sources,
        )]
    return []


def check_score(snapshot: SignalSnapshot) -> list[Issue]:
    demographic, photo = snapshot.demographic, snapshot.photo
    if demographic is None or photo is None:
        return []

    score, works = demographic.score, photo.budget_high
    if score is None or works is None:
        return []

    if score > HIGH_DEMOGRAPHIC_SCORE and works > HEAVY_WORKS_BUDGET:
        return [Issue(
            type=ConflictType.SCORE,
            severity=Severity.MEDIUM,
            description=(
                f"Strong demographic potential ({score:g}/100) "
                f"but heavy renovation needs (up to {works:,.0f})"
            ),
            sources={"demographic_score": score, "budget_travaux_max": works},
        )]
    return []


def check_data_inconsistency(snapshot: SignalSnapshot) -> list[Issue]:
    places, preparation = snapshot.places, snapshot.preparation
    if places is None or preparation is None or preparation.coordinates is None:
        return []

    if places.found is False:
        return [Issue(
            type=ConflictType.DATA_INCONSISTENCY,
            severity=Severity.MEDIUM,
            description="Address geocoded but no map listing found for the business",
            sources={"places_found": False, "has_coordinates": True},
        )]
    return []


RULES: dict[ConflictType, Rule] = {
    ConflictType.POPULATION_POI:     check_population_poi,
    ConflictType.CSP_PRICING:        check_csp_pricing,
    ConflictType.RATING_PHOTOS:      check_rating_photos,
    ConflictType.GEOGRAPHIC:         check_geographic,
    ConflictType.SCORE:              check_score,
    ConflictType.DATA_INCONSISTENCY: check_data_inconsistency,
}


# ── Entry point ───────────────────────────────────────────────────────────────


def cross_validate(snapshot: SignalSnapshot) -> CrossValidationResult:
    """Run every rule against ``snapshot``.

    Args:
        snapshot: Decoded signal bundles; any bundle may be ``None``.

    Returns:
        ``CrossValidationResult`` with issues in rule order and severity
        counts.  ``valid`` is False when any CRITICAL or HIGH issue exists.
    """
    issues: list[Issue] = []
    for conflict_type, rule in RULES.items():
        found = rule(snapshot)
        for issue in found:
            logger.debug("Rule %s fired: %s (%s)", conflict_type, issue.severity, issue.description)
        issues.extend(found)

    counts = {severity: 0 for severity in Severity}
    for issue in issues:
        counts[issue.severity] += 1

    result = CrossValidationResult(
        valid=counts[Severity.CRITICAL] == 0 and counts[Severity.HIGH] == 0,
        total_issues=len(issues),
        critical_issues=counts[Severity.CRITICAL],
        high_issues=counts[Severity.HIGH],
        medium_issues=counts[Severity.MEDIUM],
        low_issues=counts[Severity.LOW],
        issues=issues,
    )
    logger.info(
        "Cross-validation: %d issue(s), valid=%s", result.total_issues, result.valid
    )
    return result
