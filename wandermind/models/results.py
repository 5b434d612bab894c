"""Pipeline result models."""

from enum import Enum

from pydantic import BaseModel, Field

from wandermind.models.advisories import Advisory
from wandermind.models.itinerary import Activity, Itinerary, Location, Meal


class ParseTier(str, Enum):
    """Which parser tier produced the itinerary."""

    strict = "strict"
    brace_extract = "brace_extract"
    fallback = "fallback"


class GenerationResult(BaseModel):
    """Render-safe output of one generation run."""

    itinerary: Itinerary
    locations: list[Location]
    advisories: list[Advisory] = Field(default_factory=list)
    parse_tier: ParseTier

    @property
    def has_map_points(self) -> bool:
        return bool(self.locations)


class EventModification(BaseModel):
    """Replacement event accepted by the modifier."""

    message: str
    updated_event: Activity | Meal
    attempts: int
