"""
Evaluation report - the engine's single output document.

``EvaluationReport.model_dump(mode="json")`` is the payload handed to the
downstream report renderer.  Scores are integers in [0, 100]; resolution
confidences are floats in [0, 1].
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from acquisition_engine.models.arbitration import ArbitrationResult
from acquisition_engine.models.conflict import Conflict, Resolution
from acquisition_engine.models.scoring import Decision, Risk, ScoreBreakdown
from acquisition_engine.models.validation import CoherenceResult, ConflictSummary
from acquisition_engine.taxonomy.risk_taxonomy import CoherenceLevel, RiskLevel


class EvaluationReport(BaseModel):
    """Everything one evaluation produced.

    Attributes:
        run_slug: Unique identifier of the evaluation run.
        evaluated_at: UTC time the evaluation finished.
        valid: Cross-validation verdict (no CRITICAL or HIGH issue).
        coherence_score / coherence_level: Coherence of the snapshot.
        conflicts: Conflicts after arbitration (``resolved`` set).
        resolutions: One per arbitrated conflict.
        scores: Axis and overall scores.
        risks / risk_score / overall_risk_level / blocking: Risk register.
        decision: Final verdict.
        errors: Decode and component errors, in the order they occurred.
        conflict_summary / coherence / arbitration / location: Full stage
            outputs, kept for audit.
    """

    model_config = ConfigDict(frozen=True)

    run_slug: str
    evaluated_at: datetime
    valid: bool
    coherence_score: int
    coherence_level: CoherenceLevel
    conflicts: list[Conflict] = []
    resolutions: list[Resolution] = []
    scores: ScoreBreakdown
    risks: list[Risk] = []
    risk_score: int
    overall_risk_level: RiskLevel
    blocking: bool
    decision: Decision
    errors: list[str] = []
    conflict_summary: Optional[ConflictSummary] = None
    coherence: Optional[CoherenceResult] = None
    arbitration: Optional[ArbitrationResult] = None
    location: Optional[dict[str, Any]] = None
