"""
Aggregate result of arbitrating every conflict of one snapshot.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from acquisition_engine.models.conflict import Conflict, Resolution
from acquisition_engine.taxonomy.risk_taxonomy import Recommendation

VALID_ACTION_PRIORITIES = frozenset({"URGENT", "HIGH", "MEDIUM", "LOW"})
VALID_ACTION_DEADLINES = frozenset({"immediate", "before_go_live", "post_launch"})


class ActionItem(BaseModel):
    """Follow-up task produced by a resolution."""

    model_config = ConfigDict(frozen=True)

    priority: str
    conflict_id: str
    action: str
    deadline: str

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        if v not in VALID_ACTION_PRIORITIES:
            raise ValueError(
                f"Unknown priority '{v}'. Must be one of {sorted(VALID_ACTION_PRIORITIES)}."
            )
        return v

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v: str) -> str:
        if v not in VALID_ACTION_DEADLINES:
            raise ValueError(
                f"Unknown deadline '{v}'. Must be one of {sorted(VALID_ACTION_DEADLINES)}."
            )
        return v


class ArbitrationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    by_resolution_type: dict[str, int] = {}
    average_confidence: float = 0.0
    high_confidence_resolutions: int = 0
    low_confidence_resolutions: int = 0


class GoNoGoImpact(BaseModel):
    """Advisory verdict of the arbitration stage.

    ``recommendation`` feeds the decision stage as an input; it never
    replaces the final verdict.
    """

    model_config = ConfigDict(frozen=True)

    blocking_issues_resolved: bool = True
    remaining_critical_issues: int = 0
    confidence_level: str = "high"
    recommendation: Recommendation = Recommendation.GO


class ArbitrationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    arbitrated: bool = False
    total_conflicts_arbitrated: int = 0
    conflicts: list[Conflict] = []
    resolutions: list[Resolution] = []
    summary: ArbitrationSummary = ArbitrationSummary()
    actions_required: list[ActionItem] = []
    updated_fields: dict[str, Any] = {}
    go_no_go_impact: GoNoGoImpact = GoNoGoImpact()
