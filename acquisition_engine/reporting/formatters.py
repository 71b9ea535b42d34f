"""
ASCII terminal formatters for CLI output.

All formatters accept engine result models and return plain multi-line
strings suitable for ``typer.echo()``.  They only lay out numbers and labels
that the engine already computed; no score is derived here.

No third-party dependencies (no ``rich``, no ``colorama``).

Verdict banner
--------------
Every evaluation summary starts with a one-line banner::

  [GO] score 94/100 (base 89, adjustments +5)
  [GO_WITH_RESERVES] score 68/100 (base 68, adjustments +0) -- downgraded
  [NO-GO] score 42/100 (base 52, adjustments -10)
"""

from __future__ import annotations

from acquisition_engine.models.conflict import Conflict, Resolution
from acquisition_engine.models.report import EvaluationReport
from acquisition_engine.models.scoring import Decision, Risk, ScoreBreakdown
from acquisition_engine.models.validation import CoherenceResult

_RULE = "-" * 64


def format_decision_banner(decision: Decision) -> str:
    """Return the one-line verdict banner."""
    breakdown = decision.score_breakdown
    line = (
        f"  [{decision.recommendation}] score {decision.score}/100 "
        f"(base {breakdown.base_score}, adjustments {breakdown.adjustment_total:+d})"
    )
    if decision.downgraded:
        line += " -- downgraded"
    if decision.error:
        line += f"\n  [ERROR] {decision.error}"
    return line


def format_scores(scores: ScoreBreakdown) -> str:
    """Axis scores as an aligned table."""
    lines = [
        f"  {'Axis':<14} {'Score':>5}  Band",
        f"  {'-' * 14} {'-' * 5}  {'-' * 8}",
    ]
    for axis in ("location", "market", "operational", "financial"):
        value = getattr(scores, axis)
        lines.append(f"  {axis:<14} {value:>5}  {scores.interpretation.get(axis, '')}")
    lines.append(f"  {'overall':<14} {scores.overall:>5}  {scores.level}")
    return "\n".join(lines)


def format_conflicts(conflicts: list[Conflict], resolutions: list[Resolution] | None = None) -> str:
    """One line per conflict, with its resolution when available."""
    if not conflicts:
        return "  No conflicts detected."

    outcome = {r.conflict_id: r for r in (resolutions or [])}
    lines = []
    for conflict in conflicts:
        line = f"  [{conflict.severity:<8}] {conflict.type}: {conflict.description}"
        resolution = outcome.get(conflict.id)
        if resolution is not None:
            line += (
                f"\n             -> {resolution.resolution} "
                f"(confidence {resolution.confidence:.2f}, {resolution.confidence_band})"
            )
        lines.append(line)
    return "\n".join(lines)


def format_risks(risks: list[Risk]) -> str:
    if not risks:
        return "  No risks identified."
    lines = []
    for risk in risks:
        line = f"  [{risk.severity:<8}] {risk.category}: {risk.description}"
        if risk.cost_estimate is not None:
            line += f" (cost {risk.cost_estimate:,.0f})"
        lines.append(line)
        lines.append(f"             mitigation: {risk.mitigation}")
    return "\n".join(lines)


def format_coherence(coherence: CoherenceResult) -> str:
    return (
        f"  Coherence: {coherence.coherence_score}/100 ({coherence.coherence_level}), "
        f"reliability {coherence.reliability}\n"
        f"  Conflicts score {coherence.conflict_score}, "
        f"completeness {coherence.completeness_score} "
        f"({coherence.completed_agents:g}/{coherence.total_agents} collaborators)"
    )


def format_evaluation_summary(report: EvaluationReport) -> str:
    """Full multi-section summary of an evaluation."""
    sections = [
        f"Evaluation {report.run_slug}",
        _RULE,
        format_decision_banner(report.decision),
        "",
        "Scores",
        format_scores(report.scores),
        "",
        "Coherence",
        format_coherence(report.coherence) if report.coherence else
        f"  Coherence: {report.coherence_score}/100 ({report.coherence_level})",
        "",
        f"Conflicts ({len(report.conflicts)})",
        format_conflicts(report.conflicts, report.resolutions),
        "",
        f"Risks ({len(report.risks)}) -- score {report.risk_score}/100, "
        f"level {report.overall_risk_level}{', BLOCKING' if report.blocking else ''}",
        format_risks(report.risks),
    ]
    if report.errors:
        sections += ["", "Errors"] + [f"  [ERROR] {e}" for e in report.errors]
    sections.append(_RULE)
    return "\n".join(sections)
