"""Great-circle distance (Haversine)."""

import math

from wandermind.geo.coordinates import try_coordinates

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: object, b: object) -> float | None:
    """Distance in kilometres between two points.

    Returns None (not 0.0) when either point is invalid, so missing data
    cannot be mistaken for a zero distance.
    """
    start = try_coordinates(a)
    end = try_coordinates(b)
    if start is None or end is None:
        return None

    d_lat = math.radians(end.lat - start.lat)
    d_lng = math.radians(end.lng - start.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(start.lat))
        * math.cos(math.radians(end.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
