"""Map-facing view of the location list.

The map widget itself is external; this module produces what it consumes:
a centre, a bounds box to fit, markers and a routing waypoint list.
"""

from collections.abc import Iterable
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from wandermind.geo.coordinates import try_coordinates
from wandermind.models.common import Coordinates
from wandermind.models.itinerary import Location

DEFAULT_ZOOM = 10
DIRECTIONS_URL = "https://www.google.com/maps/dir/"


class Bounds(BaseModel):
    """South-west / north-east corners of the viewport to fit."""

    south_west: Coordinates
    north_east: Coordinates


class Marker(BaseModel):
    name: str
    coordinates: Coordinates
    description: str = ""
    directions_url: str
    highlighted: bool = False


class MapView(BaseModel):
    """Everything the map widget needs to draw one itinerary."""

    center: Coordinates | None = None
    zoom: int = DEFAULT_ZOOM
    bounds: Bounds | None = None
    markers: list[Marker] = Field(default_factory=list)
    waypoints: list[Coordinates] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.markers


def directions_url(coordinates: Coordinates) -> str:
    query = urlencode({"api": 1, "destination": f"{coordinates.lat},{coordinates.lng}"})
    return f"{DIRECTIONS_URL}?{query}"


def fit_bounds(points: list[Coordinates]) -> Bounds | None:
    if not points:
        return None
    return Bounds(
        south_west=Coordinates(
            lat=min(p.lat for p in points), lng=min(p.lng for p in points)
        ),
        north_east=Coordinates(
            lat=max(p.lat for p in points), lng=max(p.lng for p in points)
        ),
    )


def build_map_view(
    locations: Iterable[Location],
    highlighted: str | None = None,
    default_center: Location | None = None,
) -> MapView:
    """Build the map view for a location list.

    Coordinates are validated again here, so a point that somehow slipped
    through upstream is dropped rather than drawn.

    Args:
        locations: Unique, ordered map points
        highlighted: Name of the point to emphasise (case-insensitive)
        default_center: Where to centre the map when there are no points

    Returns:
        MapView; routing waypoints are only set for two or more points
    """
    wanted = highlighted.strip().lower() if highlighted else None
    markers: list[Marker] = []
    for location in locations:
        coordinates = try_coordinates(location.coordinates)
        if coordinates is None:
            continue
        markers.append(
            Marker(
                name=location.name,
                coordinates=coordinates,
                description=location.description,
                directions_url=directions_url(coordinates),
                highlighted=wanted is not None and location.name.strip().lower() == wanted,
            )
        )

    points = [m.coordinates for m in markers]
    if points:
        center: Coordinates | None = points[0]
    else:
        center = default_center.coordinates if default_center else None

    return MapView(
        center=center,
        bounds=fit_bounds(points),
        markers=markers,
        waypoints=points if len(points) > 1 else [],
    )
