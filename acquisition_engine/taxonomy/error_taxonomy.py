"""
Error kinds reported by components instead of raising.

Components never raise on incomplete or malformed bundles; they return a
result whose ``error`` field names one of these kinds.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Why a component could not (fully) compute its result."""

    MISSING_INPUT = "missing_input"
    """A required bundle, score or field was absent."""

    MALFORMED_INPUT = "malformed_input"
    """A value was present but could not be parsed or had the wrong type."""
