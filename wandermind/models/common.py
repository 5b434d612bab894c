"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    """Geographic coordinates (WGS84)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Currency(str, Enum):
    """Currencies offered on the trip form."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"
    JPY = "JPY"
    AUD = "AUD"
    CAD = "CAD"
    CHF = "CHF"
    CNY = "CNY"
    SEK = "SEK"
    NZD = "NZD"
    MXN = "MXN"
    SGD = "SGD"
    HKD = "HKD"
    NOK = "NOK"
    KRW = "KRW"
    TRY = "TRY"
    BRL = "BRL"
    ZAR = "ZAR"
    AED = "AED"


class FamousPreference(str, Enum):
    """How much the itinerary should lean on well-known places."""

    city_highlights = "city_highlights"
    nearby_day_trips = "nearby_day_trips"
    both = "both"
    hidden_gems = "hidden_gems"


class Provider(str, Enum):
    """Language-model provider."""

    groq = "groq"
    gemini = "gemini"


class MealType(str, Enum):
    """Meal slot."""

    breakfast = "Breakfast"
    lunch = "Lunch"
    dinner = "Dinner"

    @classmethod
    def parse(cls, value: object) -> "MealType | None":
        """Case-insensitive lookup; None for anything unrecognised."""
        if isinstance(value, MealType):
            return value
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None


class EventKind(str, Enum):
    """Kind of scheduled itinerary entry."""

    activity = "activity"
    meal = "meal"
