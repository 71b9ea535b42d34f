"""
Conflict building: turns cross-validation issues into identified conflicts.

Each issue becomes a ``Conflict`` with a fresh UUID4 id and a UTC detection
timestamp.  The id factory and the clock are injectable so that a run can be
replayed with identical output.

The summary groups conflicts by type and severity and lists one follow-up
recommendation per conflict type present, plus an arbitration warning when
blocking (CRITICAL or HIGH) conflicts exist.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from uuid import uuid4

from acquisition_engine.models.conflict import Conflict, Issue
from acquisition_engine.models.validation import ConflictReport, ConflictSummary
from acquisition_engine.taxonomy.conflict_taxonomy import ConflictType, Severity
from acquisition_engine.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_TYPE_RECOMMENDATIONS: dict[ConflictType, str] = {
    ConflictType.GEOGRAPHIC: (
        "Verify the GPS coordinates and the map listing match before relying on listing data"
    ),
    ConflictType.POPULATION_POI: (
        "Re-run the point-of-interest search with a wider radius to confirm the trade area"
    ),
    ConflictType.RATING_PHOTOS: (
        "Check that the rated listing and the photographed premises are the same business"
    ),
    ConflictType.CSP_PRICING: (
        "Review the price positioning against the local socio-professional profile"
    ),
    ConflictType.SCORE: (
        "Weigh the renovation budget against the demographic upside in the ROI analysis"
    ),
    ConflictType.DATA_INCONSISTENCY: (
        "Re-collect the missing listing data before the final decision"
    ),
}


def _default_id() -> str:
    return str(uuid4())


class ConflictBuilder:
    """Builds ``Conflict`` records from cross-validation issues.

    Args:
        id_factory: Returns a unique conflict id; defaults to UUID4 strings.
        clock: Returns the detection timestamp; defaults to ``utcnow``.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] = _default_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._id_factory = id_factory
        self._clock = clock

    def build(self, issues: Iterable[Issue]) -> ConflictReport:
        """Map every issue to a conflict and summarise the result."""
        detected_at = self._clock()
        conflicts = [
            Conflict(
                id=self._id_factory(),
                type=issue.type,
                severity=issue.severity,
                description=issue.description,
                sources=dict(issue.sources),
                detected_at=detected_at,
                resolved=False,
            )
            for issue in issues
        ]
        summary = summarize_conflicts(conflicts)
        logger.info(
            "Built %d conflict(s), %d blocking",
            summary.total_conflicts, summary.blocking_conflicts,
        )
        return ConflictReport(conflicts=conflicts, summary=summary)


def summarize_conflicts(conflicts: list[Conflict]) -> ConflictSummary:
    """Count conflicts by type and severity and list follow-up recommendations."""
    by_type: dict[str, int] = {}
    by_severity: dict[str, int] = {str(s): 0 for s in Severity}
    for conflict in conflicts:
        by_type[str(conflict.type)] = by_type.get(str(conflict.type), 0) + 1
        by_severity[str(conflict.severity)] += 1

    blocking = sum(1 for c in conflicts if c.severity.is_blocking)

    recommendations: list[str] = []
    if blocking:
        recommendations.append(
            f"{blocking} blocking conflict(s) detected: arbitration required before any decision"
        )
    seen: set[ConflictType] = set()
    for conflict in conflicts:
        if conflict.type not in seen:
            seen.add(conflict.type)
            recommendations.append(_TYPE_RECOMMENDATIONS[conflict.type])

    return ConflictSummary(
        total_conflicts=len(conflicts),
        blocking_conflicts=blocking,
        requires_arbitration=blocking > 0,
        by_type=by_type,
        by_severity=by_severity,
        recommendations=recommendations,
    )


def detect_conflicts(issues: Iterable[Issue]) -> ConflictReport:
    """Build conflicts with the default id factory and clock."""
    return ConflictBuilder().build(issues)
