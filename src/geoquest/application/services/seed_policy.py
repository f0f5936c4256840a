from __future__ import annotations

import hashlib
import json
import math
from typing import Any, Mapping

from geoquest.domain.errors import ValidationError
from geoquest.domain.services.random_source import SeededRandom

MAX_LOCATION_PRECISION = 8
_QUANTIZE_GUARD_DIGITS = 6


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _canonical(val) for key, val in sorted(value.items(), key=lambda item: str(item[0]))}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if isinstance(value, (set, frozenset)):
        normalized = [_canonical(item) for item in value]
        return sorted(normalized, key=lambda item: json.dumps(item, sort_keys=True, separators=(",", ":")))
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("Seed context contains non-finite float value.")
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def serialize_seed_payload(namespace: str, context: Mapping[str, Any]) -> str:
    payload = {"namespace": str(namespace), "context": _canonical(context)}
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def derive_seed(namespace: str, context: Mapping[str, Any]) -> int:
    serialized = serialize_seed_payload(namespace, context)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return int(digest, 16) % (2**32)


def derive_rng(namespace: str, context: Mapping[str, Any]) -> SeededRandom:
    return SeededRandom(derive_seed(namespace, context))


def validate_coordinates(latitude: float, longitude: float) -> None:
    for label, value, bound in (("latitude", latitude, 90.0), ("longitude", longitude, 180.0)):
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
            raise ValidationError(f"{label} must be a finite number, got {value!r}")
        if abs(value) > bound:
            raise ValidationError(f"{label} {value} is outside [-{bound}, {bound}]")


def tile_index(coordinate: float, tile_size: float) -> int:
    """Index of the grid cell containing ``coordinate``.

    Rounds away float noise before flooring so that 40.7128 / 0.0001 lands in
    cell 407128 rather than 407127.
    """
    if tile_size <= 0 or not math.isfinite(tile_size):
        raise ValidationError(f"Tile size must be a positive number, got {tile_size!r}")
    return math.floor(round(coordinate / tile_size, _QUANTIZE_GUARD_DIGITS))


def location_seed(latitude: float, longitude: float, precision: int = 4) -> int:
    validate_coordinates(latitude, longitude)
    if not isinstance(precision, int) or not 0 <= precision <= MAX_LOCATION_PRECISION:
        raise ValidationError(f"Precision must be an integer in [0, {MAX_LOCATION_PRECISION}]")
    cell = 10.0 ** -precision
    return derive_seed(
        "world.location",
        {
            "lat_cell": tile_index(latitude, cell),
            "lng_cell": tile_index(longitude, cell),
            "precision": precision,
        },
    )


def tile_seed(lat_index: int, lng_index: int, world_seed: int = 0) -> int:
    return derive_seed("world.tile", {"lat": int(lat_index), "lng": int(lng_index), "world": int(world_seed)})
