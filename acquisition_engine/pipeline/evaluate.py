"""
End-to-end evaluation of one acquisition target.

The ``EvaluationPipeline`` runs every stage in dependency order over one
immutable ``SignalSnapshot``:

  Step 1 - Cross-validate:  rule table over the five bundles → issues.
  Step 2 - Build conflicts: issues → identified conflicts + summary.
  Step 3 - Coherence:       conflicts + bundle completeness → 0–100 score.
  Step 4 - Arbitrate:       conflicts → resolutions + advisory verdict.
  Step 5 - Location:        POIs + demographics → location score.
  Step 6 - Dimensions:      snapshot + coherence + location → axis scores.
  Step 7 - Risks:           axis scores + bundles + unresolved conflicts → register.
  Step 8 - Decide:          scores + risks + coherence + arbitration → verdict.

Failure isolation
-----------------
No stage raises on missing or malformed bundles; each returns a result whose
``error`` field is collected into ``EvaluationReport.errors``.  Missing
bundles or decode errors mark the evaluation as incomplete, which keeps the
decision away from a clean GO.

Stages share no mutable state; each receives the outputs it depends on as
arguments.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from acquisition_engine.arbitration.arbitrator import Arbitrator, count_unresolved_blocking
from acquisition_engine.config import AppConfig
from acquisition_engine.decision.aggregator import DecisionAggregator
from acquisition_engine.ingestion.decoder import DecodeError, decode_snapshot
from acquisition_engine.models.bundles import SignalSnapshot
from acquisition_engine.models.report import EvaluationReport
from acquisition_engine.scoring.dimensions import calculate_scores
from acquisition_engine.scoring.location import calculate_location_score
from acquisition_engine.scoring.risk import categorize_risks
from acquisition_engine.utils.time_utils import utcnow
from acquisition_engine.validation.coherence import score_coherence
from acquisition_engine.validation.conflicts import ConflictBuilder
from acquisition_engine.validation.cross_validator import cross_validate

logger = logging.getLogger(__name__)


def _default_id() -> str:
    return str(uuid4())


class EvaluationPipeline:
    """Runs the full evaluation for one snapshot.

    Args:
        config: Application config; defaults to ``AppConfig()``.
        id_factory: Source of conflict ids and the run slug suffix.
        clock: Source of every timestamp in the report.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        id_factory: Callable[[], str] = _default_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config or AppConfig()
        self._id_factory = id_factory
        self._clock = clock
        self._conflict_builder = ConflictBuilder(id_factory=id_factory, clock=clock)
        self._arbitrator = Arbitrator(clock=clock)
        self._aggregator = DecisionAggregator(
            adjustment_cap=self.config.decision.adjustment_cap,
            derive=self.config.decision.derive_adjustments,
        )

    def run_payload(self, payload: Any) -> EvaluationReport:
        """Decode a raw payload and evaluate it."""
        decoded = decode_snapshot(payload)
        return self.run(decoded.snapshot, decode_errors=decoded.errors)

    def run(
        self,
        snapshot: SignalSnapshot,
        decode_errors: Sequence[DecodeError] = (),
    ) -> EvaluationReport:
        """Evaluate ``snapshot``.

        Args:
            snapshot: Decoded bundles.
            decode_errors: Errors from the decoding step, carried into the report.

        Returns:
            ``EvaluationReport``.
        """
        started = self._clock()
        run_slug = f"eval_{started.strftime('%Y%m%dT%H%M%S')}_{self._id_factory()[:8]}"
        errors: list[str] = [str(e) for e in decode_errors]
        logger.info("Evaluation %s started", run_slug)

        validation = cross_validate(snapshot)
        conflict_report = self._conflict_builder.build(validation.issues)

        completeness = snapshot.completeness()
        coherence = score_coherence(
            conflict_report.conflicts,
            completeness if self.config.validation.completeness_from_bundles else None,
        )

        arbitration = self._arbitrator.arbitrate(conflict_report.conflicts)

        location = calculate_location_score(snapshot)
        scores = calculate_scores(snapshot, coherence.coherence_score, location)

        risk = categorize_risks(
            scores,
            snapshot,
            unresolved_blocking_conflicts=count_unresolved_blocking(arbitration),
        )

        incomplete = bool(decode_errors) or not all(completeness.values())
        decision = self._aggregator.decide(
            scores,
            risk=risk,
            coherence=coherence,
            arbitration=arbitration,
            incomplete=incomplete,
        )

        for stage_error in (coherence.error, location.error, risk.error, decision.error):
            if stage_error and stage_error not in errors:
                errors.append(stage_error)

        report = EvaluationReport(
            run_slug=run_slug,
            evaluated_at=self._clock(),
            valid=validation.valid,
            coherence_score=coherence.coherence_score,
            coherence_level=coherence.coherence_level,
            conflicts=arbitration.conflicts,
            resolutions=arbitration.resolutions,
            scores=scores,
            risks=risk.risks,
            risk_score=risk.risk_score,
            overall_risk_level=risk.overall_risk_level,
            blocking=risk.blocking,
            decision=decision,
            errors=errors,
            conflict_summary=conflict_report.summary,
            coherence=coherence,
            arbitration=arbitration,
            location=asdict(location),
        )
        logger.info(
            "Evaluation %s finished: %s (score %d, %d conflict(s), %d risk(s), %d error(s))",
            run_slug, decision.recommendation, decision.score,
            len(report.conflicts), len(report.risks), len(errors),
        )
        return report


def evaluate(payload: Any, config: Optional[AppConfig] = None) -> EvaluationReport:
    """Decode ``payload`` and run a full evaluation with default factories."""
    return EvaluationPipeline(config=config).run_payload(payload)
