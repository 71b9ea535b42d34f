"""
Conflict arbitration: settles every unresolved conflict with one of four
terminal resolutions and rolls the outcomes up into an advisory verdict.

Per-conflict state machine
--------------------------
    unresolved ──► CONFIRMED | REJECTED | HYBRID | NEEDS_REVALIDATION

Resolution table (confidence in brackets)
-----------------------------------------
GEOGRAPHIC_MISMATCH
    > 200 m (or CRITICAL)            REJECTED, listing data discarded  [0.95]
    100–200 m                         NEEDS_REVALIDATION                [0.65]
    otherwise                         CONFIRMED                         [0.90]
POPULATION_POI_MISMATCH
    dense population, no POI          NEEDS_REVALIDATION                [0.65]
    sparse population, many POI       HYBRID, commercial enclave        [0.85]
    otherwise                         CONFIRMED                         [0.60]
CSP_PRICING_MISMATCH
    affluent area, discount pricing   HYBRID, repositioning upside      [0.90]
    modest area, premium pricing      HYBRID, pricing-fit risk          [0.85]
RATING_PHOTOS_MISMATCH
    high rating, poor condition       HYBRID, possible listing mix-up   [0.70]
    low rating, excellent condition   HYBRID, service issue             [0.85]
SCORE_MISMATCH
    strong potential, heavy works     HYBRID, ROI analysis required     [0.85]
CSP / RATING / SCORE when the mismatch no longer holds
                                      CONFIRMED                         [0.75]
DATA_INCONSISTENCY                    NEEDS_REVALIDATION                [0.60]

For the HYBRID-by-default types (CSP, RATING, SCORE), a source that
outranks the other by more than 20 reliability points is authoritative:
the less reliable source is discarded (REJECTED) with confidence
``min(0.95, top_reliability / 100)``.

A NEEDS_REVALIDATION resolution never carries a confidence above 0.69.

Aggregate verdict
-----------------
A CRITICAL conflict is settled only when resolved CONFIRMED or HYBRID.
    remaining critical > 0                         → NO-GO
    any NEEDS_REVALIDATION, or mean conf. < 0.70   → GO_WITH_RESERVES
    otherwise                                      → GO
This verdict is advisory input for the decision stage.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from acquisition_engine.arbitration.source_priority import (
    SOURCE_RELIABILITY,
    prioritize_sources,
)
from acquisition_engine.models.arbitration import (
    ActionItem,
    ArbitrationResult,
    ArbitrationSummary,
    GoNoGoImpact,
)
from acquisition_engine.models.conflict import (
    MAX_REVALIDATION_CONFIDENCE,
    Conflict,
    Resolution,
    SourcePriority,
)
from acquisition_engine.taxonomy.conflict_taxonomy import (
    ConflictType,
    ResolutionType,
    Severity,
)
from acquisition_engine.taxonomy.risk_taxonomy import Recommendation
from acquisition_engine.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.8
LOW_CONFIDENCE = 0.6
RESERVES_CONFIDENCE = 0.7

_ACTION_PRIORITY: dict[Severity, str] = {
    Severity.CRITICAL: "URGENT",
    Severity.HIGH:     "HIGH",
    Severity.MEDIUM:   "MEDIUM",
    Severity.LOW:      "LOW",
}

_ACTION_DEADLINE: dict[Severity, str] = {
    Severity.CRITICAL: "immediate",
    Severity.HIGH:     "before_go_live",
    Severity.MEDIUM:   "before_go_live",
    Severity.LOW:      "post_launch",
}


@dataclass(frozen=True)
class _Verdict:
    resolution: ResolutionType
    confidence: float
    explanation: str
    action: str
    updated_data: dict[str, Any] = field(default_factory=dict)


def _num(sources: Mapping[str, Any], key: str) -> float:
    value = sources.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


# ── Per-type resolvers ────────────────────────────────────────────────────────


def _resolve_geographic(conflict: Conflict, priority: SourcePriority) -> _Verdict:
    distance = _num(conflict.sources, "distance_meters")
    if distance > 200 or conflict.severity == Severity.CRITICAL:
        return _Verdict(
            ResolutionType.REJECTED,
            0.95,
            f"Listing is {distance:.0f} m from the geocoded address: it most likely "
            "describes another business. Geocoded coordinates are retained.",
            "Discard the map listing and search again around the geocoded address",
            {
                "places_data_rejected": True,
                "requires_new_search": True,
                "search_strategy": "nearby_search_from_geocoded_coordinates",
            },
        )
    if distance > 100:
        return _Verdict(
            ResolutionType.NEEDS_REVALIDATION,
            0.65,
            f"Listing is {distance:.0f} m from the geocoded address: plausible for a "
            "large site or an imprecise pin, but not confirmed.",
            "Confirm the shop entrance position on site or with street-level imagery",
            {"requires_manual_verification": True},
        )
    return _Verdict(
        ResolutionType.CONFIRMED,
        0.90,
        "Listing and geocoded address are within GPS tolerance.",
        "No action required",
    )


def _resolve_population_poi(conflict: Conflict, priority: SourcePriority) -> _Verdict:
    population = _num(conflict.sources, "demographic_population")
    poi_count = _num(conflict.sources, "competitor_total_poi")
    if population > 3000 and poi_count == 0:
        return _Verdict(
            ResolutionType.NEEDS_REVALIDATION,
            0.65,
            "A dense trade area without any nearby business suggests wrong "
            "coordinates or a failed POI search.",
            "Validate the GPS coordinates and re-run the POI search with a 1 km radius",
            {"gps_validation_required": True, "poi_search_radius_suggestion": 1000},
        )
    if population < 500 and poi_count > 10:
        return _Verdict(
            ResolutionType.HYBRID,
            0.85,
            "Few residents but many businesses: a commercial district that draws "
            "visitors from outside the walking trade area.",
            "Assess visitor footfall rather than resident population",
            {"zone_type": "commercial_district", "footfall_driver": "visitors"},
        )
    return _Verdict(
        ResolutionType.CONFIRMED,
        0.60,
        "Population and business density are compatible.",
        "No action required",
    )


def _resolve_csp_pricing(conflict: Conflict, priority: SourcePriority) -> _Verdict:
    csp = str(conflict.sources.get("demographic_csp", "")).lower()
    price_level = _num(conflict.sources, "places_price_level")
    if csp == "high" and price_level == 1:
        return _Verdict(
            ResolutionType.HYBRID,
            0.90,
            "Affluent trade area served at discount prices: both signals are "
            "valid and reveal a repositioning opportunity.",
            "Model a move-upmarket scenario in the business plan",
            {"opportunity_type": "pricing_repositioning", "suggested_direction": "upmarket"},
        )
    if csp == "low" and price_level >= 3:
        return _Verdict(
            ResolutionType.HYBRID,
            0.85,
            "Modest trade area with premium prices: current positioning may not "
            "match local purchasing power.",
            "Check whether the clientele comes from outside the trade area",
            {"pricing_fit_risk": True, "suggested_direction": "downmarket"},
        )
    return _Verdict(
        ResolutionType.CONFIRMED,
        0.75,
        "Price positioning is consistent with the local profile.",
        "No action required",
    )


def _resolve_rating_photos(conflict: Conflict, priority: SourcePriority) -> _Verdict:
    rating = _num(conflict.sources, "places_rating")
    note = _num(conflict.sources, "photo_note_globale")
    if rating > 4.0 and note < 5:
        return _Verdict(
            ResolutionType.HYBRID,
            0.70,
            "Customers rate the shop highly while the premises look run-down: "
            "service quality carries the reputation, or the listing is another shop.",
            "Confirm the rated listing and the photographed premises are the same business",
            {"potential_mismatch": True, "requires_manual_verification": True},
        )
    if rating < 3.0 and note > 8:
        return _Verdict(
            ResolutionType.HYBRID,
            0.85,
            "Premises are in excellent condition but customers are unhappy: the "
            "problem lies in service or management, not in the asset.",
            "Read recent reviews to isolate the service issues",
            {"service_issue_suspected": True},
        )
    return _Verdict(
        ResolutionType.CONFIRMED,
        0.75,
        "Rating and premises condition are consistent.",
        "No action required",
    )


def _resolve_score(conflict: Conflict, priority: SourcePriority) -> _Verdict:
    score = _num(conflict.sources, "demographic_score")
    works = _num(conflict.sources, "budget_travaux_max")
    if score > 75 and works > 50_000:
        return _Verdict(
            ResolutionType.HYBRID,
            0.85,
            "Strong trade area but heavy renovation: the upside exists if the works "
            "are financed and their payback period is acceptable.",
            "Run an ROI analysis of the renovation budget",
            {"requires_roi_analysis": True, "renovation_budget_max": works},
        )
    return _Verdict(
        ResolutionType.CONFIRMED,
        0.75,
        "Renovation needs are proportionate to the trade area potential.",
        "No action required",
    )


def _resolve_data_inconsistency(conflict: Conflict, priority: SourcePriority) -> _Verdict:
    return _Verdict(
        ResolutionType.NEEDS_REVALIDATION,
        0.60,
        "The address geocodes but no listing was found: the business may be "
        "unlisted, renamed or recently closed.",
        "Search the listing by business name and confirm the shop is operating",
        {"requires_new_search": True},
    )


_RESOLVERS: dict[ConflictType, Callable[[Conflict, SourcePriority], _Verdict]] = {
    ConflictType.GEOGRAPHIC:         _resolve_geographic,
    ConflictType.POPULATION_POI:     _resolve_population_poi,
    ConflictType.CSP_PRICING:        _resolve_csp_pricing,
    ConflictType.RATING_PHOTOS:      _resolve_rating_photos,
    ConflictType.SCORE:              _resolve_score,
    ConflictType.DATA_INCONSISTENCY: _resolve_data_inconsistency,
}

_AUTHORITY_ELIGIBLE = frozenset({
    ConflictType.CSP_PRICING,
    ConflictType.RATING_PHOTOS,
    ConflictType.SCORE,
})


def _apply_authority(verdict: _Verdict, priority: SourcePriority) -> _Verdict:
    """Turn a HYBRID verdict into REJECTED when one source is authoritative."""
    if verdict.resolution != ResolutionType.HYBRID or not priority.is_authoritative:
        return verdict
    retained, discarded = priority.priority_order[0], priority.priority_order[1]
    return _Verdict(
        ResolutionType.REJECTED,
        min(0.95, priority.highest_score / 100),
        f"{retained} outranks {discarded} by {priority.gap} reliability points; "
        f"the {discarded} signal is discarded.",
        f"Rely on {retained} data for this point",
        {"retained_source": retained, "discarded_source": discarded},
    )


def consistent_confidence(resolution: ResolutionType, confidence: float) -> float:
    """Bound ``confidence`` to [0, 1] and to the revalidation ceiling."""
    confidence = max(0.0, min(1.0, confidence))
    if resolution == ResolutionType.NEEDS_REVALIDATION:
        confidence = min(confidence, MAX_REVALIDATION_CONFIDENCE)
    return round(confidence, 2)


# ── Arbitrator ────────────────────────────────────────────────────────────────


class Arbitrator:
    """Resolves conflicts and aggregates the outcomes.

    Args:
        clock: Timestamp source for ``resolved_at``; defaults to ``utcnow``.
        reliability: Source reliability table used for priority ordering.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        reliability: Mapping[str, Mapping[str, int]] = SOURCE_RELIABILITY,
    ) -> None:
        self._clock = clock
        self._reliability = reliability

    def resolve(self, conflict: Conflict) -> Resolution:
        """Resolve a single conflict."""
        priority = prioritize_sources(conflict.type, self._reliability)
        resolver = _RESOLVERS.get(conflict.type)
        if resolver is None:
            verdict = _Verdict(
                ResolutionType.NEEDS_REVALIDATION,
                0.50,
                "Unknown conflict type: no automatic rule applies.",
                "Manual review required",
            )
        else:
            verdict = resolver(conflict, priority)
            if conflict.type in _AUTHORITY_ELIGIBLE:
                verdict = _apply_authority(verdict, priority)

        resolution = Resolution(
            conflict_id=conflict.id,
            conflict_type=conflict.type,
            original_severity=conflict.severity,
            resolution=verdict.resolution,
            confidence=consistent_confidence(verdict.resolution, verdict.confidence),
            explanation=verdict.explanation,
            action=verdict.action,
            updated_data=dict(verdict.updated_data),
            source_priority=priority,
            resolved_at=self._clock(),
        )
        logger.debug(
            "Conflict %s (%s, %s) → %s @ %.2f",
            conflict.id, conflict.type, conflict.severity,
            resolution.resolution, resolution.confidence,
        )
        return resolution

    def arbitrate(self, conflicts: Iterable[Conflict]) -> ArbitrationResult:
        """Resolve every unresolved conflict and summarise the outcomes.

        Conflicts already marked ``resolved`` are passed through untouched
        and produce no new resolution.

        Returns:
            ``ArbitrationResult`` with the resolved conflict copies, one
            ``Resolution`` per newly arbitrated conflict, follow-up actions,
            merged ``updated_fields`` and the advisory go/no-go impact.
        """
        settled: list[Conflict] = []
        resolutions: list[Resolution] = []
        for conflict in conflicts:
            if conflict.resolved:
                settled.append(conflict)
                continue
            resolutions.append(self.resolve(conflict))
            settled.append(conflict.model_copy(update={"resolved": True}))

        result = ArbitrationResult(
            arbitrated=bool(resolutions),
            total_conflicts_arbitrated=len(resolutions),
            conflicts=settled,
            resolutions=resolutions,
            summary=summarize_resolutions(resolutions),
            actions_required=build_actions(resolutions),
            updated_fields=merge_updated_fields(resolutions),
            go_no_go_impact=assess_go_no_go(resolutions),
        )
        logger.info(
            "Arbitrated %d conflict(s): advisory %s, %d critical remaining",
            result.total_conflicts_arbitrated,
            result.go_no_go_impact.recommendation,
            result.go_no_go_impact.remaining_critical_issues,
        )
        return result


# ── Aggregation helpers ───────────────────────────────────────────────────────


def summarize_resolutions(resolutions: list[Resolution]) -> ArbitrationSummary:
    by_type = {str(kind): 0 for kind in ResolutionType}
    for resolution in resolutions:
        by_type[str(resolution.resolution)] += 1

    confidences = [r.confidence for r in resolutions]
    average = round(sum(confidences) / len(confidences), 2) if confidences else 0.0
    return ArbitrationSummary(
        by_resolution_type=by_type,
        average_confidence=average,
        high_confidence_resolutions=sum(1 for c in confidences if c >= HIGH_CONFIDENCE),
        low_confidence_resolutions=sum(1 for c in confidences if c < LOW_CONFIDENCE),
    )


def build_actions(resolutions: list[Resolution]) -> list[ActionItem]:
    """One follow-up action per resolution that is not a plain confirmation."""
    return [
        ActionItem(
            priority=_ACTION_PRIORITY[r.original_severity],
            conflict_id=r.conflict_id,
            action=r.action,
            deadline=_ACTION_DEADLINE[r.original_severity],
        )
        for r in resolutions
        if r.resolution != ResolutionType.CONFIRMED
    ]


def merge_updated_fields(resolutions: list[Resolution]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for resolution in resolutions:
        merged.update(resolution.updated_data)
    return merged


def assess_go_no_go(resolutions: list[Resolution]) -> GoNoGoImpact:
    """Advisory verdict from the resolutions alone."""
    critical = [r for r in resolutions if r.original_severity == Severity.CRITICAL]
    settled_kinds = (ResolutionType.CONFIRMED, ResolutionType.HYBRID)
    remaining = sum(1 for r in critical if r.resolution not in settled_kinds)

    if not resolutions:
        return GoNoGoImpact()

    average = sum(r.confidence for r in resolutions) / len(resolutions)
    if average >= HIGH_CONFIDENCE:
        confidence_level = "high"
    elif average >= LOW_CONFIDENCE:
        confidence_level = "medium"
    else:
        confidence_level = "low"

    needs_revalidation = any(
        r.resolution == ResolutionType.NEEDS_REVALIDATION for r in resolutions
    )
    if remaining > 0:
        recommendation = Recommendation.NO_GO
    elif needs_revalidation or average < RESERVES_CONFIDENCE:
        recommendation = Recommendation.GO_WITH_RESERVES
    else:
        recommendation = Recommendation.GO

    return GoNoGoImpact(
        blocking_issues_resolved=remaining == 0,
        remaining_critical_issues=remaining,
        confidence_level=confidence_level,
        recommendation=recommendation,
    )


def count_unresolved_blocking(result: ArbitrationResult) -> int:
    """CRITICAL/HIGH conflicts left without a resolution or marked NEEDS_REVALIDATION."""
    outcome = {r.conflict_id: r.resolution for r in result.resolutions}
    return sum(
        1
        for conflict in result.conflicts
        if conflict.severity.is_blocking
        and outcome.get(conflict.id, ResolutionType.NEEDS_REVALIDATION)
        == ResolutionType.NEEDS_REVALIDATION
    )
