"""
Risk and verdict taxonomy.

  - ``RiskCategory``   - which scoring axis a risk belongs to.
  - ``RiskLevel``      - overall level of a risk register.
  - ``ScoreLevel``     - qualitative band of the overall score.
  - ``CoherenceLevel`` - qualitative band of the coherence score.
  - ``Recommendation`` - final go/no-go verdict.

This module has NO imports from any other ``acquisition_engine`` package.
"""

from enum import StrEnum


class RiskCategory(StrEnum):
    """Scoring axis a risk is attached to."""

    LOCATION = "LOCATION_RISK"
    MARKET = "MARKET_RISK"
    OPERATIONAL = "OPERATIONAL_RISK"
    FINANCIAL = "FINANCIAL_RISK"


class RiskLevel(StrEnum):
    """Overall level of a risk register."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class ScoreLevel(StrEnum):
    """Band of the weighted overall score (80 / 65 / 50)."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class CoherenceLevel(StrEnum):
    """Band of the coherence score (85 / 70 / 50)."""

    EXCELLENT = "excellent"
    GOOD = "good"
    MEDIUM = "medium"
    POOR = "poor"


class Recommendation(StrEnum):
    """Final acquisition verdict."""

    GO = "GO"
    GO_WITH_RESERVES = "GO_WITH_RESERVES"
    NO_GO = "NO-GO"
