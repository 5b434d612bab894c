"""Models package - re-exports for convenience."""

from wandermind.models.advisories import Advisory, AdvisoryKind
from wandermind.models.common import (
    Coordinates,
    Currency,
    EventKind,
    FamousPreference,
    MealType,
    Provider,
)
from wandermind.models.fact_check import LocationCheck, PriceCheck
from wandermind.models.itinerary import (
    Activity,
    CostBreakdown,
    Day,
    Itinerary,
    Location,
    Meal,
    Transport,
)
from wandermind.models.results import EventModification, GenerationResult, ParseTier
from wandermind.models.trip import TripRequest

__all__ = [
    # Common
    "Coordinates",
    "Currency",
    "EventKind",
    "FamousPreference",
    "MealType",
    "Provider",
    # Trip
    "TripRequest",
    # Itinerary
    "Itinerary",
    "Day",
    "Activity",
    "Meal",
    "Transport",
    "CostBreakdown",
    "Location",
    # Advisories
    "Advisory",
    "AdvisoryKind",
    # Fact check
    "LocationCheck",
    "PriceCheck",
    # Results
    "GenerationResult",
    "EventModification",
    "ParseTier",
]
