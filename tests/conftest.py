"""
Shared pytest fixtures for the acquisition engine test suite.

Provides:
  - ``fixed_clock`` / ``sequential_ids``: deterministic timestamp and id
    sources for the ConflictBuilder, Arbitrator and pipeline.
  - ``strong_payload``: raw payload of a healthy shop (all five bundles,
    no conflict, every axis ≥ 80).
  - ``strong_snapshot``: the same payload decoded.
  - ``make_snapshot``: factory building a snapshot from partial bundle dicts.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from acquisition_engine.models.bundles import SignalSnapshot

FIXED_NOW = datetime(2026, 3, 2, 9, 30, 0, tzinfo=timezone.utc)

# Paris, rue de Rivoli area
SHOP_LAT = 48.8566
SHOP_LON = 2.3522


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """A clock that always returns ``FIXED_NOW``."""
    return lambda: FIXED_NOW


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """An id factory returning ``id-0000``, ``id-0001``, ..."""
    counter = itertools.count()
    return lambda: f"id-{next(counter):04d}"


def _strong_payload() -> dict[str, Any]:
    return {
        "demographic": {
            "trade_area_potential": {"walking_500m": 4200, "walking_1km": 15000},
            "csp_profile": {"dominant": "middle", "median_income_estimate": 35_000},
            "demographic_score": {"overall": 82},
            "commune": {"population": 120_000, "density": 300},
        },
        "places": {
            "found": True,
            "rating": 4.5,
            "userRatingsTotal": 180,
            "priceLevel": 2,
            "location": {"lat": SHOP_LAT, "lon": SHOP_LON},
        },
        "photo": {
            "analyzed": True,
            "etat_general": {"note_globale": 9},
            "budget_travaux": {"fourchette_basse": 4_000, "fourchette_haute": 8_000},
        },
        "competitor": {
            "nearby_poi": {
                "p1": {"name": "Boulangerie du Coin", "types": ["bakery"], "distance_meters": 40},
                "p2": {"name": "Café de la Place", "types": ["cafe"], "distance_meters": 120},
                "p3": {"name": "Banque", "types": ["bank"], "distance_meters": 260},
                "p4": {"name": "Pharmacie", "types": ["pharmacy"], "distance_meters": 310},
            },
            "total_competitors": 4,
            "density_level": "very_low",
        },
        "preparation": {
            "address": "1 rue de Rivoli, 75001 Paris",
            "coordinates": {"lat": SHOP_LAT, "lon": SHOP_LON},
        },
    }


@pytest.fixture
def strong_payload() -> dict[str, Any]:
    """Raw payload of a healthy shop; a fresh deep copy per test."""
    return copy.deepcopy(_strong_payload())


@pytest.fixture
def strong_snapshot(strong_payload: dict[str, Any]) -> SignalSnapshot:
    return SignalSnapshot.model_validate(strong_payload)


@pytest.fixture
def make_snapshot() -> Callable[..., SignalSnapshot]:
    """Build a snapshot from keyword bundle dicts, e.g. ``make_snapshot(places={...})``."""

    def _make(**bundles: Any) -> SignalSnapshot:
        return SignalSnapshot.model_validate(bundles)

    return _make
