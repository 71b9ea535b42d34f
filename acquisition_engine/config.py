"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      - committed static defaults
  2. ``config/local.toml``        - optional local overrides (gitignored)
  3. ``.env``                     - local env overrides (gitignored)
  4. Environment variables        - ``ACQUISITION_ENGINE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Business thresholds (severity penalties, score tiers, decision cut-offs) are
NOT configuration: they live as module constants next to the rules that use
them.  Only operational knobs are exposed here.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class DecisionConfig(BaseModel):
    """Final go/no-go aggregation settings."""

    model_config = ConfigDict(frozen=True)

    adjustment_cap: int = 10
    derive_adjustments: bool = True

    @field_validator("adjustment_cap")
    @classmethod
    def validate_cap(cls, v: int) -> int:
        if not 0 <= v <= 10:
            raise ValueError(f"adjustment_cap must be in [0, 10], got {v}.")
        return v


class ValidationConfig(BaseModel):
    """Cross-validation and coherence settings."""

    model_config = ConfigDict(frozen=True)

    completeness_from_bundles: bool = True


class AppConfig(BaseModel):
    """Complete application configuration - the single source of truth.

    The CLI and the evaluation orchestrator receive an ``AppConfig``
    instance built by ``load_config()``.
    """

    model_config = ConfigDict(frozen=True)

    logging: LoggingConfig = LoggingConfig()
    decision: DecisionConfig = DecisionConfig()
    validation: ValidationConfig = ValidationConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply ACQUISITION_ENGINE_* env vars to the raw config dict.

    Supported overrides:
      ACQUISITION_ENGINE_LOG_LEVEL       → raw["logging"]["level"]
      ACQUISITION_ENGINE_ADJUSTMENT_CAP  → raw["decision"]["adjustment_cap"]
      ACQUISITION_ENGINE_DEBUG           → raw["debug"]
    """
    if log_level := os.environ.get("ACQUISITION_ENGINE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if cap := os.environ.get("ACQUISITION_ENGINE_ADJUSTMENT_CAP"):
        raw.setdefault("decision", {})["adjustment_cap"] = int(cap)

    if debug := os.environ.get("ACQUISITION_ENGINE_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        logging=LoggingConfig(**raw.get("logging", {})),
        decision=DecisionConfig(**raw.get("decision", {})),
        validation=ValidationConfig(**raw.get("validation", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
