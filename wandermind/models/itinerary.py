"""Itinerary models - final output for user consumption."""

from datetime import date

from pydantic import BaseModel, Field

from wandermind.models.common import Coordinates, EventKind, MealType


class Transport(BaseModel):
    """How the traveller gets to an activity."""

    method: str
    duration: str
    cost: float = Field(default=0.0, ge=0)


class Activity(BaseModel):
    """Single activity in itinerary."""

    name: str = Field(..., min_length=1)
    description: str = ""
    time: str = ""
    cost: float = Field(default=0.0, ge=0)
    coordinates: Coordinates | None = None
    transport: Transport | None = None

    @property
    def kind(self) -> EventKind:
        return EventKind.activity


class Meal(BaseModel):
    """Single meal in itinerary."""

    name: str = Field(..., min_length=1)
    type: MealType | None = None
    description: str = ""
    time: str = ""
    cost: float = Field(default=0.0, ge=0)
    coordinates: Coordinates | None = None

    @property
    def kind(self) -> EventKind:
        return EventKind.meal


class Day(BaseModel):
    """Itinerary for a single day."""

    date: date
    activities: list[Activity] = Field(default_factory=list)
    meals: list[Meal] = Field(default_factory=list)
    daily_total: float = 0.0
    degraded: bool = False


class CostBreakdown(BaseModel):
    """Per-person cost breakdown by category."""

    activities: float = 0.0
    food: float = 0.0
    transportation: float = 0.0


class Itinerary(BaseModel):
    """Complete multi-day plan."""

    days: list[Day] = Field(default_factory=list)
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
    per_person_total: float = 0.0
    group_total: float = 0.0

    @property
    def renderable_days(self) -> list[Day]:
        """Days with at least one activity and one meal."""
        return [day for day in self.days if not day.degraded]


class Location(BaseModel):
    """Map-ready point derived from the itinerary or supplied by the model."""

    name: str
    coordinates: Coordinates
    description: str = ""
