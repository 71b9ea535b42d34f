"""
Point-of-interest taxonomy for the trade area around a target shop.

Every nearby business falls into exactly one bucket:

  A  direct competitors  - sell the same core products (tobacco, press, vape)
  B  traffic locomotives - daily-needs anchors that bring footfall
  C  services / horeca   - everything else, including unknown types

Priority when a place carries several types: A > B > C.

``density_level`` and ``proximity_level`` turn raw counts and distances into
the labels the market scorer consumes.

This module has NO imports from any other ``acquisition_engine`` package.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class PoiBucket(StrEnum):
    """Commercial role of a nearby point of interest."""

    DIRECT_COMPETITOR = "A"
    LOCOMOTIVE = "B"
    SERVICE = "C"


class DensityLevel(StrEnum):
    """Competitive density of the trade area."""

    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


DIRECT_COMPETITOR_TYPES: frozenset[str] = frozenset({
    "tobacco_shop", "newsstand", "convenience_store", "vape_shop",
})

LOCOMOTIVE_TYPES: frozenset[str] = frozenset({
    "bakery", "pharmacy", "supermarket", "grocery_store", "market", "food_market",
})

SERVICE_TYPES: frozenset[str] = frozenset({
    "restaurant", "cafe", "bar", "bank", "atm", "hair_care", "beauty_salon",
    "clothing_store", "shoe_store", "electronics_store", "furniture_store",
    "florist", "book_store",
})


def categorize_poi(types: Iterable[str]) -> PoiBucket:
    """Return the bucket of a place from its type tags (A > B > C)."""
    tags = {t.lower() for t in types}
    if tags & DIRECT_COMPETITOR_TYPES:
        return PoiBucket.DIRECT_COMPETITOR
    if tags & LOCOMOTIVE_TYPES:
        return PoiBucket.LOCOMOTIVE
    return PoiBucket.SERVICE


def density_level(total_pois: int) -> DensityLevel:
    """Map a POI count to a density label (0 / ≤4 / ≤9 / ≤14 / more)."""
    if total_pois <= 0:
        return DensityLevel.VERY_LOW
    if total_pois <= 4:
        return DensityLevel.LOW
    if total_pois <= 9:
        return DensityLevel.MODERATE
    if total_pois <= 14:
        return DensityLevel.HIGH
    return DensityLevel.VERY_HIGH


def proximity_level(distance_meters: float) -> str:
    """Map a walking distance to a proximity label."""
    if distance_meters <= 50:
        return "immediate"
    if distance_meters <= 200:
        return "very_close"
    if distance_meters <= 500:
        return "close"
    if distance_meters <= 1000:
        return "moderate"
    return "far"
