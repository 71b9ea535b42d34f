"""
Conflict taxonomy for cross-validation and arbitration.

Three dimensions describe every disagreement between signal bundles:
  - ``ConflictType``   - the *what*: which pair of signals disagrees?
  - ``Severity``       - the *how bad*: how much does it threaten the verdict?
  - ``ResolutionType`` - the *outcome*: how did arbitration settle it?

``SourceKind`` ranks collaborators by the nature of their data when two of
them carry the same reliability score.

Usage example::

    from acquisition_engine.taxonomy.conflict_taxonomy import ConflictType, Severity

    conflict_type = ConflictType.GEOGRAPHIC
    severity      = Severity.CRITICAL

This module has NO imports from any other ``acquisition_engine`` package.
"""

from enum import StrEnum


class ConflictType(StrEnum):
    """Kind of disagreement detected between two or more signal bundles."""

    POPULATION_POI = "POPULATION_POI_MISMATCH"
    """Dense population with no shops around it, or the reverse."""

    CSP_PRICING = "CSP_PRICING_MISMATCH"
    """Socio-professional profile at odds with the shop's price level."""

    RATING_PHOTOS = "RATING_PHOTOS_MISMATCH"
    """Public rating at odds with the visual condition of the premises."""

    GEOGRAPHIC = "GEOGRAPHIC_MISMATCH"
    """Geocoded address and map listing point to different places."""

    SCORE = "SCORE_MISMATCH"
    """Strong demographic potential paired with heavy renovation needs."""

    DATA_INCONSISTENCY = "DATA_INCONSISTENCY"
    """One collaborator found nothing where another found something."""


class Severity(StrEnum):
    """Impact of an issue, conflict or risk on the final verdict."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def is_blocking(self) -> bool:
        """CRITICAL and HIGH items block a clean GO until arbitrated."""
        return self in (Severity.CRITICAL, Severity.HIGH)


class ResolutionType(StrEnum):
    """Terminal state of an arbitrated conflict."""

    CONFIRMED = "CONFIRMED"
    """The disagreement does not hold up; the signals are accepted as-is."""

    REJECTED = "REJECTED"
    """The less reliable source is discarded in favour of the more reliable one."""

    HYBRID = "HYBRID"
    """Both signals are plausible; the conflict itself carries information."""

    NEEDS_REVALIDATION = "NEEDS_REVALIDATION"
    """Neither side can be trusted without a fresh collection pass."""


class SourceKind(StrEnum):
    """Nature of the data a collaborator produces (tie-break rank)."""

    MEASUREMENT = "measurement"
    """Field data: geocoding, on-the-ground counts."""

    EXTERNAL_API = "external_api"
    """Third-party listing data (ratings, price levels, map pins)."""

    ESTIMATION = "estimation"
    """Statistical estimates such as census-derived demographics."""

    DERIVED = "derived"
    """Values inferred by analysis (photo assessments, cost estimates)."""


SOURCE_KIND_RANK: dict[SourceKind, int] = {
    SourceKind.MEASUREMENT:  4,
    SourceKind.EXTERNAL_API: 3,
    SourceKind.ESTIMATION:   2,
    SourceKind.DERIVED:      1,
}
