"""
Cross-validation issues, conflicts and their arbitrated resolutions.

Lifecycle of a disagreement::

    Issue ──ConflictBuilder──► Conflict(resolved=False)
          ──Arbitrator──────► Conflict(resolved=True) + Resolution

All models are frozen.  ``Conflict.resolved`` only flips inside the
Arbitrator, which returns an updated copy (``model_copy``) rather than
mutating the original.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from acquisition_engine.taxonomy.conflict_taxonomy import (
    ConflictType,
    ResolutionType,
    Severity,
)

# A NEEDS_REVALIDATION verdict is by definition below the "probable" band.
MAX_REVALIDATION_CONFIDENCE = 0.69


class Issue(BaseModel):
    """One rule firing during cross-validation.

    Attributes:
        type: Which pair of signals disagrees.
        severity: Impact on the verdict.
        description: Human-readable statement of the disagreement.
        sources: The raw values that triggered the rule, keyed by origin.
    """

    model_config = ConfigDict(frozen=True)

    type: ConflictType
    severity: Severity
    description: str
    sources: dict[str, Any] = {}


class Conflict(BaseModel):
    """An identified issue awaiting (or having received) arbitration."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ConflictType
    severity: Severity
    description: str
    sources: dict[str, Any] = {}
    detected_at: datetime
    resolved: bool = False


class SourcePriority(BaseModel):
    """Collaborators involved in a conflict, ordered by reliability.

    Attributes:
        priority_order: Source names, most reliable first.
        reliability_scores: Source name → reliability (0–100).
        highest_reliability_source: First entry of ``priority_order``.
        highest_score: Its reliability.
        gap: Reliability difference between the first two sources.
        recommendation: Short guidance derived from ``gap``.
    """

    model_config = ConfigDict(frozen=True)

    priority_order: list[str]
    reliability_scores: dict[str, int]
    highest_reliability_source: Optional[str] = None
    highest_score: int = 0
    gap: int = 0
    recommendation: str = ""

    @property
    def is_authoritative(self) -> bool:
        """True when the top source outranks the runner-up by more than 20 points."""
        return self.gap > 20


class Resolution(BaseModel):
    """Arbitration outcome for one conflict."""

    model_config = ConfigDict(frozen=True)

    conflict_id: str
    conflict_type: ConflictType
    original_severity: Severity
    resolution: ResolutionType
    confidence: float
    explanation: str
    action: str
    updated_data: dict[str, Any] = {}
    source_priority: Optional[SourcePriority] = None
    resolved_at: datetime

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v

    @property
    def confidence_band(self) -> str:
        """certain (≥0.90), probable (≥0.70), verify (≥0.50) or revalidate."""
        if self.confidence >= 0.90:
            return "certain"
        if self.confidence >= 0.70:
            return "probable"
        if self.confidence >= 0.50:
            return "verify"
        return "revalidate"
