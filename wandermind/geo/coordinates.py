"""Coordinate validation for model- and user-supplied points.

Accepted shapes:
- ordered pair ``[lat, lng]`` / ``(lat, lng)``
- mapping with ``lat`` and ``lng`` (``lon``, ``latitude``/``longitude`` also read)
- an existing ``Coordinates`` instance (revalidated, it may have been mutated)
"""

import math
from collections.abc import Mapping, Sequence

from wandermind.models.common import Coordinates

_LAT_KEYS = ("lat", "latitude")
_LNG_KEYS = ("lng", "lon", "longitude")


class CoordinateError(ValueError):
    """Value cannot be read as a valid coordinate pair."""

    pass


def _component(value: object, name: str) -> float:
    # bool is an int subclass; "true" is not a latitude
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise CoordinateError(f"{name} must be numeric, got {type(value).__name__}")
    result = float(value)
    if not math.isfinite(result):
        raise CoordinateError(f"{name} must be finite")
    return result


def _first_key(value: Mapping[object, object], keys: tuple[str, ...]) -> object:
    for key in keys:
        if key in value:
            return value[key]
    return None


def validate_coordinates(value: object) -> Coordinates:
    """Normalize and range-check a coordinate pair.

    Args:
        value: Pair, mapping or Coordinates instance

    Returns:
        Coordinates with lat in [-90, 90] and lng in [-180, 180]

    Raises:
        CoordinateError: If the shape, type or range is wrong
    """
    if isinstance(value, Coordinates):
        raw_lat: object = value.lat
        raw_lng: object = value.lng
    elif isinstance(value, Mapping):
        raw_lat = _first_key(value, _LAT_KEYS)
        raw_lng = _first_key(value, _LNG_KEYS)
    elif isinstance(value, Sequence) and not isinstance(value, str | bytes):
        if len(value) != 2:
            raise CoordinateError(f"coordinate pair must have 2 elements, got {len(value)}")
        raw_lat, raw_lng = value[0], value[1]
    else:
        raise CoordinateError(f"unsupported coordinate shape: {type(value).__name__}")

    lat = _component(raw_lat, "lat")
    lng = _component(raw_lng, "lng")

    if not -90 <= lat <= 90:
        raise CoordinateError(f"lat out of range: {lat}")
    if not -180 <= lng <= 180:
        raise CoordinateError(f"lng out of range: {lng}")

    return Coordinates(lat=lat, lng=lng)


def try_coordinates(value: object) -> Coordinates | None:
    """Return validated coordinates, or None when the value is unusable."""
    try:
        return validate_coordinates(value)
    except CoordinateError:
        return None
