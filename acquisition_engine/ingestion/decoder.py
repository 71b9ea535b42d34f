"""
Boundary decoding of collaborator payloads into an immutable ``SignalSnapshot``.

Collaborators hand over each bundle either as a JSON object or as a JSON
document embedded in a string (the latter is common when a bundle went
through a message queue or an LLM tool call).  Everything is decoded here,
once; downstream components never see raw strings or untyped dicts.

Failure policy
--------------
A bundle that cannot be decoded is dropped (``None`` in the snapshot) and a
``DecodeError`` is recorded.  The evaluation then proceeds with the bundles
that did decode; rules needing the dropped bundle simply do not fire.
``decode_snapshot`` never raises on bad payload content.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from acquisition_engine.models.bundles import (
    BUNDLE_NAMES,
    CompetitorBundle,
    DemographicBundle,
    PhotoBundle,
    PlacesBundle,
    PreparationBundle,
    SignalSnapshot,
)
from acquisition_engine.taxonomy.error_taxonomy import ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

BUNDLE_MODELS: dict[str, type[BaseModel]] = {
    "demographic": DemographicBundle,
    "places":      PlacesBundle,
    "photo":       PhotoBundle,
    "competitor":  CompetitorBundle,
    "preparation": PreparationBundle,
}


@dataclass(frozen=True)
class DecodeError:
    """Why one bundle (or the whole payload) could not be decoded."""

    bundle: str
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.bundle}: {self.kind}: {self.message}"


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Either a decoded value, an error, or neither (bundle absent)."""

    value: Optional[T] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SnapshotDecodeResult:
    snapshot: SignalSnapshot
    errors: list[DecodeError] = field(default_factory=list)


def _reason(exc: ValueError) -> str:
    if isinstance(exc, json.JSONDecodeError):
        return exc.msg
    return f"cannot decode bytes: {exc.reason} at position {exc.start}"


def decode_bundle(name: str, raw: Any) -> DecodeResult:
    """Decode one bundle payload.

    Args:
        name: Bundle name; one of ``BUNDLE_NAMES``.
        raw:  ``None``, a mapping, or a string holding a JSON object.

    Returns:
        ``DecodeResult`` with the typed bundle, or with a ``DecodeError``.
    """
    model = BUNDLE_MODELS.get(name)
    if model is None:
        return DecodeResult(
            error=DecodeError(name, ErrorKind.MALFORMED_INPUT, "unknown bundle name")
        )

    if raw is None:
        return DecodeResult()

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Bundle %s: embedded JSON does not parse (%s)", name, _reason(exc))
            return DecodeResult(
                error=DecodeError(name, ErrorKind.MALFORMED_INPUT, f"invalid JSON: {_reason(exc)}")
            )
        if raw is None:
            return DecodeResult()

    if not isinstance(raw, Mapping):
        return DecodeResult(
            error=DecodeError(
                name,
                ErrorKind.MALFORMED_INPUT,
                f"expected a JSON object, got {type(raw).__name__}",
            )
        )

    try:
        return DecodeResult(value=model.model_validate(dict(raw)))
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else str(first.get("msg"))
        logger.warning("Bundle %s failed validation (%d error(s)): %s", name, exc.error_count(), message)
        return DecodeResult(error=DecodeError(name, ErrorKind.MALFORMED_INPUT, message))


def decode_snapshot(payload: Any) -> SnapshotDecodeResult:
    """Decode a full evaluation payload into a ``SignalSnapshot``.

    Args:
        payload: Mapping with any of the keys ``demographic``, ``places``,
            ``photo``, ``competitor``, ``preparation`` (or a JSON string of it).

    Returns:
        ``SnapshotDecodeResult`` - the snapshot plus every decode error.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return SnapshotDecodeResult(
                snapshot=SignalSnapshot(),
                errors=[DecodeError("payload", ErrorKind.MALFORMED_INPUT, f"invalid JSON: {_reason(exc)}")],
            )

    if not isinstance(payload, Mapping):
        return SnapshotDecodeResult(
            snapshot=SignalSnapshot(),
            errors=[
                DecodeError(
                    "payload",
                    ErrorKind.MALFORMED_INPUT,
                    f"expected a JSON object, got {type(payload).__name__}",
                )
            ],
        )

    bundles: dict[str, Any] = {}
    errors: list[DecodeError] = []
    for name in BUNDLE_NAMES:
        result = decode_bundle(name, payload.get(name))
        if not result.ok:
            errors.append(result.error)
        bundles[name] = result.value

    snapshot = SignalSnapshot(**bundles)
    present = [name for name, ok in snapshot.completeness().items() if ok]
    logger.info(
        "Decoded snapshot: %d/%d bundles present, %d error(s)",
        len(present), len(BUNDLE_NAMES), len(errors),
    )
    return SnapshotDecodeResult(snapshot=snapshot, errors=errors)


def load_snapshot_file(path: Path) -> SnapshotDecodeResult:
    """Read and decode a JSON payload file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    return decode_snapshot(Path(path).read_bytes())
