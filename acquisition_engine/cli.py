"""
Acquisition Engine - CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Read and decode the bundle payload.
  4. Run the requested stages.
  5. Report result to stdout.

Install and run::

    pip install -e .
    acquisition-engine --help
    acquisition-engine validate-config
    acquisition-engine evaluate --input bundles.json
    acquisition-engine evaluate --input bundles.json --json --output report.json
    acquisition-engine check-coherence --input bundles.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="acquisition-engine",
    help="Retail business acquisition engine - cross-validation, scoring and go/no-go.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from acquisition_engine.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from acquisition_engine.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_payload_or_exit(input_path: str):
    """Read and decode the bundle payload file."""
    from acquisition_engine.ingestion.decoder import load_snapshot_file

    try:
        return load_snapshot_file(Path(input_path))
    except FileNotFoundError:
        typer.echo(f"[ERROR] Input file not found: {input_path}", err=True)
        raise typer.Exit(code=1)
    except OSError as exc:
        typer.echo(f"[ERROR] Cannot read input file {input_path}: {exc}", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Log level:           {config.logging.level}")
    typer.echo(f"  Log file:            {config.logging.log_file or '(none)'}")
    typer.echo(f"  Adjustment cap:      +/-{config.decision.adjustment_cap}")
    typer.echo(f"  Derive adjustments:  {config.decision.derive_adjustments}")
    typer.echo(f"  Completeness source: "
               f"{'bundles' if config.validation.completeness_from_bundles else 'none'}")
    typer.echo(f"  Debug mode:          {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("evaluate")
def evaluate(
    input_path: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON file with the demographic/places/photo/competitor/preparation bundles.",
    ),
    output_path: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the full JSON report to this file.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the JSON report instead of the text summary.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Run a full evaluation and print the verdict.

    Exit code is 0 whatever the verdict; decode errors are listed in the
    report and push the decision away from a clean GO.
    """
    from acquisition_engine.pipeline.evaluate import EvaluationPipeline
    from acquisition_engine.reporting.formatters import format_evaluation_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    decoded = _load_payload_or_exit(input_path)
    report = EvaluationPipeline(config=config).run(decoded.snapshot, decode_errors=decoded.errors)
    payload = json.dumps(report.model_dump(mode="json"), indent=2)

    if output_path:
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload, encoding="utf-8")

    if as_json:
        typer.echo(payload)
    else:
        typer.echo(format_evaluation_summary(report))
        if output_path:
            typer.echo(f"[OK] Report written to {output_path}")


@app.command("check-coherence")
def check_coherence(
    input_path: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON file with the signal bundles.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Cross-validate the bundles and print conflicts and coherence only.

    Exits with code 1 when a blocking (CRITICAL or HIGH) conflict is found.
    """
    from acquisition_engine.reporting.formatters import format_coherence, format_conflicts
    from acquisition_engine.validation.coherence import score_coherence
    from acquisition_engine.validation.conflicts import ConflictBuilder
    from acquisition_engine.validation.cross_validator import cross_validate

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    decoded = _load_payload_or_exit(input_path)
    for error in decoded.errors:
        typer.echo(f"[ERROR] {error}", err=True)

    validation = cross_validate(decoded.snapshot)
    conflict_report = ConflictBuilder().build(validation.issues)
    completeness = (
        decoded.snapshot.completeness()
        if config.validation.completeness_from_bundles else None
    )
    coherence = score_coherence(conflict_report.conflicts, completeness)

    typer.echo(format_coherence(coherence))
    typer.echo("")
    typer.echo(format_conflicts(conflict_report.conflicts))
    for recommendation in conflict_report.summary.recommendations:
        typer.echo(f"  * {recommendation}")

    if not validation.valid:
        typer.echo("[ERROR] Blocking conflicts found.", err=True)
        raise typer.Exit(code=1)
    typer.echo("[OK] No blocking conflict.")


if __name__ == "__main__":
    app()
