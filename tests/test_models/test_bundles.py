"""
Tests for acquisition_engine/models/bundles.py.

What we test
------------
Wire aliases:
  - camelCase places keys (userRatingsTotal, priceLevel, matchScore).
  - French photo keys (etat_general.note_globale, budget_travaux.fourchette_haute).
  - ``lng`` accepted for longitude.
Validation:
  - Out-of-range coordinates, rating, priceLevel and note are rejected.
  - Unknown keys are ignored.
Competitor bundle:
  - nearby_poi accepts a list as well as a mapping.
  - effective_bucket uses the explicit bucket, else the type tags.
Snapshot:
  - Bundles are frozen.
  - completeness() reports the present bundles.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from acquisition_engine.models.bundles import (
    CompetitorBundle,
    Coordinates,
    PhotoBundle,
    PlacesBundle,
    PointOfInterest,
    SignalSnapshot,
)
from acquisition_engine.taxonomy.poi_taxonomy import PoiBucket


class TestAliases:
    def test_places_camel_case(self) -> None:
        places = PlacesBundle.model_validate(
            {"found": True, "userRatingsTotal": 42, "priceLevel": 2, "matchScore": 88}
        )
        assert places.user_ratings_total == 42
        assert places.price_level == 2
        assert places.match_score == 88

    def test_photo_french_keys(self) -> None:
        photo = PhotoBundle.model_validate({
            "analyzed": True,
            "etat_general": {"note_globale": 6.5},
            "budget_travaux": {"fourchette_basse": 20_000, "fourchette_haute": 35_000},
        })
        assert photo.overall_note == 6.5
        assert photo.budget_high == 35_000

    def test_lng_alias(self) -> None:
        assert Coordinates.model_validate({"lat": 45.0, "lng": 4.8}).lon == 4.8


class TestValidation:
    @pytest.mark.parametrize("payload", [
        {"lat": 91.0, "lon": 0.0},
        {"lat": 0.0, "lon": -181.0},
    ])
    def test_coordinates_out_of_range(self, payload: dict) -> None:
        with pytest.raises(ValidationError):
            Coordinates.model_validate(payload)

    def test_rating_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            PlacesBundle.model_validate({"rating": 5.5})

    def test_price_level_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            PlacesBundle.model_validate({"priceLevel": 7})

    def test_note_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            PhotoBundle.model_validate({"etat_general": {"note_globale": 12}})

    def test_unknown_keys_ignored(self) -> None:
        places = PlacesBundle.model_validate({"found": True, "place_id": "abc", "photos": []})
        assert places.found is True


class TestCompetitorBundle:
    def test_poi_list_accepted(self) -> None:
        bundle = CompetitorBundle.model_validate({
            "nearby_poi": [
                {"name": "A", "types": ["bakery"], "distance_meters": 80},
                {"name": "B", "types": ["bar"], "distance_meters": 150},
            ],
        })
        assert len(bundle.pois) == 2

    def test_explicit_bucket_wins(self) -> None:
        poi = PointOfInterest.model_validate({"types": ["cafe"], "bucket": "a"})
        assert poi.effective_bucket == PoiBucket.DIRECT_COMPETITOR

    def test_bucket_from_types(self) -> None:
        poi = PointOfInterest.model_validate({"types": ["pharmacy"]})
        assert poi.effective_bucket == PoiBucket.LOCOMOTIVE

    def test_density_normalised(self) -> None:
        assert CompetitorBundle.model_validate({"density_level": "High"}).density_level == "high"


class TestSnapshot:
    def test_frozen(self, strong_snapshot: SignalSnapshot) -> None:
        with pytest.raises(ValidationError):
            strong_snapshot.places = None  # type: ignore[misc]

    def test_completeness(self, make_snapshot) -> None:
        snapshot = make_snapshot(places={"found": True}, photo={"analyzed": False})
        assert snapshot.completeness() == {
            "demographic": False,
            "places": True,
            "photo": True,
            "competitor": False,
            "preparation": False,
        }

    def test_full_snapshot_complete(self, strong_snapshot: SignalSnapshot) -> None:
        assert all(strong_snapshot.completeness().values())
