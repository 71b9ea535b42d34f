"""
Numeric helpers shared by the scoring and validation modules.

Rounding
--------
Every 0–100 score is rounded half-up on its *decimal* value.  Binary floats
make naive rounding drift on exact halves: ``45 * 0.7 + 100 * 0.3`` evaluates
to ``61.49999999999999`` and would round to 61 instead of 62.  The value is
first normalised to 9 decimal places, then rounded with ``ROUND_HALF_UP``.

Distance
--------
``haversine_meters`` uses a spherical Earth of radius 6 371 000 m.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

EARTH_RADIUS_M = 6_371_000.0


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp ``value`` to [lo, hi]."""
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Raises:
        ValueError: If ``value`` is NaN or infinite.
    """
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite value {value!r}")
    normalised = Decimal(str(round(value, 9)))
    return int(normalised.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_0_100(value: float) -> int:
    """Round half-up and clamp into the [0, 100] score range."""
    return int(clamp(round_half_up(value), 0, 100))


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c
