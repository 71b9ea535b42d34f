"""
Time helpers.

Every timestamp the engine emits (conflict detection, arbitration, report
generation) is timezone-aware UTC and serialised as ISO-8601.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)

