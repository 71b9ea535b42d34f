"""
Result models of the validation stage: cross-validation, conflict building
and coherence scoring.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from acquisition_engine.models.conflict import Conflict, Issue
from acquisition_engine.taxonomy.risk_taxonomy import CoherenceLevel


class CrossValidationResult(BaseModel):
    """All issues found in one snapshot.

    ``valid`` is False as soon as one CRITICAL or HIGH issue is present.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    total_issues: int
    critical_issues: int
    high_issues: int
    medium_issues: int
    low_issues: int
    issues: list[Issue] = []
    error: Optional[str] = None


class ConflictSummary(BaseModel):
    """Counts over a list of conflicts."""

    model_config = ConfigDict(frozen=True)

    total_conflicts: int = 0
    blocking_conflicts: int = 0
    requires_arbitration: bool = False
    by_type: dict[str, int] = {}
    by_severity: dict[str, int] = {}
    recommendations: list[str] = []


class ConflictReport(BaseModel):
    """Output of the ConflictBuilder."""

    model_config = ConfigDict(frozen=True)

    conflicts: list[Conflict] = []
    summary: ConflictSummary = ConflictSummary()


class CoherencePenalties(BaseModel):
    model_config = ConfigDict(frozen=True)

    conflict_impact: int
    completeness_impact: int
    critical_penalty: int
    high_penalty: int
    medium_penalty: int
    low_penalty: int


class CoherenceResult(BaseModel):
    """Global coherence of the snapshot (0–100)."""

    model_config = ConfigDict(frozen=True)

    coherence_score: int = Field(ge=0, le=100)
    coherence_level: CoherenceLevel
    conflict_score: int
    completeness_score: int
    completed_agents: float
    total_agents: int
    breakdown: CoherencePenalties
    requires_arbitration: bool
    reliability: str
    recommendation: str
    error: Optional[str] = None
