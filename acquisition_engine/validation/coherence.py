"""
Global coherence score of a snapshot.

Formula
-------
    conflict_score     = max(0, 100 - 25·critical - 15·high - 8·medium - 3·low)
    completeness_score = round(completed_agents / 5 * 100)
    coherence          = round(conflict_score * 0.7 + completeness_score * 0.3)

``completed_agents`` sums the completeness map over the five collaborators:
``True`` counts 1, ``False`` 0, a float in [0, 1] counts its value, a missing
collaborator counts 0.  Without a map every collaborator counts as complete.

Levels: ≥85 excellent, ≥70 good, ≥50 medium, else poor.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from acquisition_engine.models.bundles import BUNDLE_NAMES
from acquisition_engine.models.conflict import Conflict
from acquisition_engine.models.validation import CoherencePenalties, CoherenceResult
from acquisition_engine.taxonomy.conflict_taxonomy import Severity
from acquisition_engine.taxonomy.error_taxonomy import ErrorKind
from acquisition_engine.taxonomy.risk_taxonomy import CoherenceLevel
from acquisition_engine.utils.numeric import clamp, round_half_up

logger = logging.getLogger(__name__)

SEVERITY_PENALTY: dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.HIGH:     15,
    Severity.MEDIUM:    8,
    Severity.LOW:       3,
}

CONFLICT_WEIGHT = 0.7
COMPLETENESS_WEIGHT = 0.3

_RELIABILITY: dict[CoherenceLevel, str] = {
    CoherenceLevel.EXCELLENT: "high",
    CoherenceLevel.GOOD:      "high",
    CoherenceLevel.MEDIUM:    "medium",
    CoherenceLevel.POOR:      "low",
}

_ADVICE: dict[CoherenceLevel, str] = {
    CoherenceLevel.EXCELLENT: "Signals are highly coherent; the analysis can proceed with confidence",
    CoherenceLevel.GOOD:      "Signals are coherent; a few minor points deserve a check",
    CoherenceLevel.MEDIUM:    "Moderate coherence; review the flagged conflicts before deciding",
    CoherenceLevel.POOR:      "Low coherence; arbitration and re-collection are required before deciding",
}


def coherence_level(score: int) -> CoherenceLevel:
    if score >= 85:
        return CoherenceLevel.EXCELLENT
    if score >= 70:
        return CoherenceLevel.GOOD
    if score >= 50:
        return CoherenceLevel.MEDIUM
    return CoherenceLevel.POOR


def _completed_agents(
    completeness: Optional[Mapping[str, Any]],
) -> tuple[float, Optional[str]]:
    if completeness is None:
        return float(len(BUNDLE_NAMES)), None

    completed = 0.0
    error: Optional[str] = None
    for name in BUNDLE_NAMES:
        value = completeness.get(name, False)
        if isinstance(value, bool):
            completed += 1.0 if value else 0.0
        elif isinstance(value, (int, float)):
            completed += clamp(float(value), 0.0, 1.0)
        else:
            error = f"{ErrorKind.MALFORMED_INPUT}: completeness of '{name}' is not a bool or number"
    return completed, error


def score_coherence_counts(
    by_severity: Mapping[str, int],
    completeness: Optional[Mapping[str, Any]] = None,
) -> CoherenceResult:
    """Score coherence from per-severity conflict counts.

    Args:
        by_severity: Severity name → number of conflicts.  Missing keys count 0.
        completeness: Collaborator name → bool or completion ratio.

    Returns:
        ``CoherenceResult``.  A malformed completeness entry counts 0 and is
        reported in ``error``.
    """
    counts = {sev: int(by_severity.get(str(sev), 0) or 0) for sev in Severity}
    penalties = {sev: counts[sev] * SEVERITY_PENALTY[sev] for sev in Severity}
    conflict_score = int(max(0, 100 - sum(penalties.values())))

    completed, error = _completed_agents(completeness)
    completeness_score = round_half_up(completed / len(BUNDLE_NAMES) * 100)

    score = int(clamp(
        round_half_up(conflict_score * CONFLICT_WEIGHT + completeness_score * COMPLETENESS_WEIGHT),
        0, 100,
    ))
    level = coherence_level(score)
    blocking = counts[Severity.CRITICAL] + counts[Severity.HIGH]

    logger.info("Coherence %d (%s), %d blocking conflict(s)", score, level, blocking)
    return CoherenceResult(
        coherence_score=score,
        coherence_level=level,
        conflict_score=conflict_score,
        completeness_score=completeness_score,
        completed_agents=completed,
        total_agents=len(BUNDLE_NAMES),
        breakdown=CoherencePenalties(
            conflict_impact=100 - conflict_score,
            completeness_impact=100 - completeness_score,
            critical_penalty=penalties[Severity.CRITICAL],
            high_penalty=penalties[Severity.HIGH],
            medium_penalty=penalties[Severity.MEDIUM],
            low_penalty=penalties[Severity.LOW],
        ),
        requires_arbitration=blocking > 0 or level == CoherenceLevel.POOR,
        reliability=_RELIABILITY[level],
        recommendation=_ADVICE[level],
        error=error,
    )


def score_coherence(
    conflicts: Iterable[Conflict],
    completeness: Optional[Mapping[str, Any]] = None,
) -> CoherenceResult:
    """Score coherence from a list of conflicts."""
    by_severity: dict[str, int] = {}
    for conflict in conflicts:
        by_severity[str(conflict.severity)] = by_severity.get(str(conflict.severity), 0) + 1
    return score_coherence_counts(by_severity, completeness)
