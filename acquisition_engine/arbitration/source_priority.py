"""
Source reliability and priority ordering for arbitration.

Each collaborator field carries a fixed reliability score (0–100).  A
conflict type names the (source, field) pairs it puts in tension; the
sources are then ordered by reliability, most reliable first.

Tie-breaks (a tie is not an error)
----------------------------------
  1. Data kind: measurement > external API > estimation > derived value.
  2. Fixed collaborator order: preparation, places, competitor, demographic, photo.

Authority
---------
The gap between the two most reliable sources drives the guidance:
  > 20  the top source is authoritative
  > 10  favour the top source, keep the other in view
  else  the sources are equivalent and should be combined
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from acquisition_engine.models.conflict import SourcePriority
from acquisition_engine.taxonomy.conflict_taxonomy import (
    SOURCE_KIND_RANK,
    ConflictType,
    SourceKind,
)
from acquisition_engine.utils.numeric import round_half_up

SOURCE_RELIABILITY: dict[str, dict[str, int]] = {
    "preparation": {"coordinates": 85, "address": 90},
    "demographic": {"population": 95, "csp": 70, "density": 90, "score": 80},
    "places": {"location": 80, "rating": 85, "pricing": 75, "photos": 90, "reviews": 80},
    "photo": {"etat_general": 85, "budget_travaux": 60, "note_globale": 80},
    "competitor": {"nearby_poi": 75, "distance": 85},
}

SOURCE_KINDS: dict[str, SourceKind] = {
    "preparation": SourceKind.MEASUREMENT,
    "places":      SourceKind.EXTERNAL_API,
    "competitor":  SourceKind.EXTERNAL_API,
    "demographic": SourceKind.ESTIMATION,
    "photo":       SourceKind.DERIVED,
}

_SOURCE_ORDER: tuple[str, ...] = ("preparation", "places", "competitor", "demographic", "photo")

# (source, field) pairs involved in each conflict type; ``None`` = whole-source average.
CONFLICT_FIELDS: dict[ConflictType, tuple[tuple[str, Optional[str]], ...]] = {
    ConflictType.POPULATION_POI: (
        ("demographic", "population"),
        ("competitor", "nearby_poi"),
        ("preparation", "coordinates"),
    ),
    ConflictType.CSP_PRICING: (("places", "pricing"), ("demographic", "csp")),
    ConflictType.RATING_PHOTOS: (("photo", "etat_general"), ("places", "rating")),
    ConflictType.GEOGRAPHIC: (("preparation", "coordinates"), ("places", "location")),
    ConflictType.SCORE: (("demographic", "score"), ("photo", "budget_travaux")),
    ConflictType.DATA_INCONSISTENCY: (("places", None), ("preparation", None)),
}

AUTHORITATIVE_GAP = 20
FAVOURED_GAP = 10
_UNKNOWN_RELIABILITY = 50


def source_reliability(
    source: str,
    field: Optional[str] = None,
    table: Mapping[str, Mapping[str, int]] = SOURCE_RELIABILITY,
) -> int:
    """Reliability of ``source.field``, or of the source on average when ``field`` is None."""
    fields = table.get(source)
    if not fields:
        return _UNKNOWN_RELIABILITY
    if field is None:
        return round_half_up(sum(fields.values()) / len(fields))
    return fields.get(field, _UNKNOWN_RELIABILITY)


def _sort_key(item: tuple[str, int]) -> tuple[int, int, int]:
    source, score = item
    kind_rank = SOURCE_KIND_RANK.get(SOURCE_KINDS.get(source, SourceKind.DERIVED), 0)
    order = _SOURCE_ORDER.index(source) if source in _SOURCE_ORDER else len(_SOURCE_ORDER)
    return (-score, -kind_rank, order)


def prioritize_sources(
    conflict_type: ConflictType,
    table: Mapping[str, Mapping[str, int]] = SOURCE_RELIABILITY,
) -> SourcePriority:
    """Order the sources involved in ``conflict_type`` by reliability.

    Args:
        conflict_type: Type of the conflict being arbitrated.
        table: Reliability table; defaults to ``SOURCE_RELIABILITY``.

    Returns:
        ``SourcePriority`` with the ordered sources, their scores, the gap
        between the top two and a short guidance string.
    """
    scores: dict[str, int] = {}
    for source, field in CONFLICT_FIELDS.get(conflict_type, ()):
        scores[source] = source_reliability(source, field, table)

    ranked = sorted(scores.items(), key=_sort_key)
    if not ranked:
        return SourcePriority(
            priority_order=[],
            reliability_scores={},
            recommendation="No source information: manual review required",
        )

    top, top_score = ranked[0]
    gap = top_score - ranked[1][1] if len(ranked) > 1 else 0

    if len(ranked) == 1:
        recommendation = f"Only {top} is involved"
    elif gap > AUTHORITATIVE_GAP:
        recommendation = f"Favour {top}: clearly more reliable than {ranked[1][0]}"
    elif gap > FAVOURED_GAP:
        recommendation = f"Favour {top} but keep {ranked[1][0]} in view"
    else:
        recommendation = f"{top} and {ranked[1][0]} are comparably reliable: combine both"

    return SourcePriority(
        priority_order=[source for source, _ in ranked],
        reliability_scores=dict(ranked),
        highest_reliability_source=top,
        highest_score=top_score,
        gap=gap,
        recommendation=recommendation,
    )
