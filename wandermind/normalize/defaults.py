"""Default map locations for destinations the model left unplaced."""

import re
from typing import Protocol

from wandermind.models.common import Coordinates
from wandermind.models.itinerary import Location


class DefaultLocationResolver(Protocol):
    """Resolves a destination to a fallback map point."""

    def resolve(self, destination: str) -> Location | None:
        """Return a centre point for the destination, or None if unknown."""
        ...


class NullLocationResolver:
    """Resolver that knows no destinations."""

    def resolve(self, destination: str) -> Location | None:
        return None


CITY_CENTERS: dict[str, tuple[str, Coordinates]] = {
    "bangalore": ("Bangalore City Center", Coordinates(lat=12.97, lng=77.59)),
    "bengaluru": ("Bangalore City Center", Coordinates(lat=12.97, lng=77.59)),
}


class StaticCityResolver:
    """Table lookup of city name -> centre coordinate.

    A city matches when its name appears as a whole word in the
    destination, so "Bangalore, India" matches but "Bangkok" does not.
    """

    def __init__(self, table: dict[str, tuple[str, Coordinates]] | None = None):
        self._table = {k.lower(): v for k, v in (table or CITY_CENTERS).items()}

    def resolve(self, destination: str) -> Location | None:
        words = set(re.findall(r"[a-z]+", destination.lower()))
        for city, (name, coordinates) in self._table.items():
            if city in words:
                return Location(
                    name=name,
                    coordinates=coordinates,
                    description=f"Default location for {destination}",
                )
        return None
