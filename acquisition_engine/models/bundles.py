"""
Signal bundles - the five independently gathered inputs of an evaluation.

Each collaborator (demographic, places, photo, competitor, preparation)
produces one bundle.  Bundles are decoded once at the boundary
(``acquisition_engine.ingestion.decoder``) and are immutable afterwards; a
``SignalSnapshot`` groups them and is passed unchanged through every stage.

Wire compatibility
------------------
Collaborators emit camelCase and French keys (``userRatingsTotal``,
``priceLevel``, ``etat_general.note_globale``,
``budget_travaux.fourchette_haute``).  Those names are accepted as aliases;
Python attributes are snake_case English.  Unknown keys are ignored so that
richer collaborator payloads still decode.

Every field is optional: an absent field simply disables the rules that
need it.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from acquisition_engine.taxonomy.poi_taxonomy import PoiBucket, categorize_poi

BUNDLE_NAMES: tuple[str, ...] = (
    "demographic", "places", "photo", "competitor", "preparation",
)

VALID_CSP_PROFILES = frozenset({"high", "middle", "low", "mixed"})


class _BundleModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True, allow_inf_nan=False,
    )


class Coordinates(_BundleModel):
    """A WGS84 point."""

    lat: float
    lon: float = Field(validation_alias=AliasChoices("lon", "lng"))

    @field_validator("lat")
    @classmethod
    def validate_lat(cls, v: float) -> float:
        if not -90.0 <= v <= 90.0:
            raise ValueError(f"lat must be in [-90, 90], got {v}.")
        return v

    @field_validator("lon")
    @classmethod
    def validate_lon(cls, v: float) -> float:
        if not -180.0 <= v <= 180.0:
            raise ValueError(f"lon must be in [-180, 180], got {v}.")
        return v


# ── Demographic ───────────────────────────────────────────────────────────────


class TradeAreaPotential(_BundleModel):
    """Residents reachable on foot."""

    walking_500m: Optional[int] = None
    walking_1km: Optional[int] = None


class CspProfile(_BundleModel):
    """Socio-professional profile of the trade area."""

    dominant: Optional[str] = None
    median_income_estimate: Optional[float] = None

    @field_validator("dominant")
    @classmethod
    def normalise_dominant(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class DemographicScore(_BundleModel):
    overall: Optional[float] = None


class Commune(_BundleModel):
    population: Optional[int] = None
    density: Optional[float] = None


class DemographicBundle(_BundleModel):
    """Census-derived view of the trade area."""

    trade_area_potential: Optional[TradeAreaPotential] = None
    csp_profile: Optional[CspProfile] = None
    demographic_score: Optional[DemographicScore] = None
    commune: Optional[Commune] = None

    @property
    def population_500m(self) -> Optional[int]:
        return self.trade_area_potential.walking_500m if self.trade_area_potential else None

    @property
    def score(self) -> Optional[float]:
        return self.demographic_score.overall if self.demographic_score else None

    @property
    def density(self) -> Optional[float]:
        return self.commune.density if self.commune else None

    @property
    def median_income(self) -> Optional[float]:
        return self.csp_profile.median_income_estimate if self.csp_profile else None


# ── Places ────────────────────────────────────────────────────────────────────


class PlacesBundle(_BundleModel):
    """Map listing of the target shop."""

    found: Optional[bool] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("userRatingsTotal", "user_ratings_total"),
    )
    price_level: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("priceLevel", "price_level"),
    )
    location: Optional[Coordinates] = None
    match_score: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("matchScore", "match_score"),
    )

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 5.0:
            raise ValueError(f"rating must be in [0, 5], got {v}.")
        return v

    @field_validator("price_level")
    @classmethod
    def validate_price_level(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 0 <= v <= 4:
            raise ValueError(f"priceLevel must be in [0, 4], got {v}.")
        return v


# ── Photo ─────────────────────────────────────────────────────────────────────


class ConditionAssessment(_BundleModel):
    overall_note: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("note_globale", "overall_note"),
    )

    @field_validator("overall_note")
    @classmethod
    def validate_note(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 10.0:
            raise ValueError(f"note_globale must be in [0, 10], got {v}.")
        return v


class RenovationBudget(_BundleModel):
    low_estimate: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("fourchette_basse", "low_estimate"),
    )
    high_estimate: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("fourchette_haute", "high_estimate"),
    )


class PhotoBundle(_BundleModel):
    """Visual assessment of the premises."""

    analyzed: bool = False
    condition: Optional[ConditionAssessment] = Field(
        default=None,
        validation_alias=AliasChoices("etat_general", "condition"),
    )
    renovation_budget: Optional[RenovationBudget] = Field(
        default=None,
        validation_alias=AliasChoices("budget_travaux", "renovation_budget"),
    )

    @property
    def overall_note(self) -> Optional[float]:
        return self.condition.overall_note if self.condition else None

    @property
    def budget_high(self) -> Optional[float]:
        return self.renovation_budget.high_estimate if self.renovation_budget else None


# ── Competitor ────────────────────────────────────────────────────────────────


class PointOfInterest(_BundleModel):
    """A business near the target shop."""

    name: Optional[str] = None
    types: list[str] = []
    distance_meters: Optional[float] = None
    bucket: Optional[PoiBucket] = None

    @field_validator("bucket", mode="before")
    @classmethod
    def normalise_bucket(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @property
    def effective_bucket(self) -> PoiBucket:
        """Explicit bucket when the collaborator supplied one, else derived from types."""
        return self.bucket if self.bucket is not None else categorize_poi(self.types)


class PoiCategorization(_BundleModel):
    bucket_a_competitors: int = 0
    bucket_b_locomotives: int = 0
    bucket_c_services: int = 0


class CompetitorBundle(_BundleModel):
    """Businesses found within walking distance."""

    nearby_poi: dict[str, PointOfInterest] = {}
    total_competitors: Optional[int] = None
    density_level: Optional[str] = None
    categorization: Optional[PoiCategorization] = None

    @field_validator("nearby_poi", mode="before")
    @classmethod
    def accept_poi_list(cls, v: Any) -> Any:
        if isinstance(v, list):
            return {str(i): poi for i, poi in enumerate(v)}
        return v if v is not None else {}

    @field_validator("density_level")
    @classmethod
    def normalise_density(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    @property
    def pois(self) -> list[PointOfInterest]:
        """POIs in a stable order (sorted by their map key)."""
        return [self.nearby_poi[k] for k in sorted(self.nearby_poi)]


# ── Preparation ───────────────────────────────────────────────────────────────


class PreparationBundle(_BundleModel):
    """Geocoding of the business address."""

    address: Optional[str] = None
    coordinates: Optional[Coordinates] = None


# ── Snapshot ──────────────────────────────────────────────────────────────────


class SignalSnapshot(_BundleModel):
    """All five bundles of one evaluation.  Any bundle may be missing."""

    demographic: Optional[DemographicBundle] = None
    places: Optional[PlacesBundle] = None
    photo: Optional[PhotoBundle] = None
    competitor: Optional[CompetitorBundle] = None
    preparation: Optional[PreparationBundle] = None

    def completeness(self) -> dict[str, bool]:
        """Map each collaborator name to whether its bundle is present."""
        return {name: getattr(self, name) is not None for name in BUNDLE_NAMES}
