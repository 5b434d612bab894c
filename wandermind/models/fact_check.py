"""Fact-check result models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from wandermind.models.common import Coordinates

PriceConfidence = Literal["high", "medium", "low"]


class LocationCheck(BaseModel):
    """Outcome of verifying that a place exists near the trip centre."""

    verified: bool
    exists: bool | None = None
    too_far: bool | None = None
    distance_km: float | None = None
    coordinates: Coordinates | None = None
    type: str | None = None
    category: str | None = None
    opening_hours: str | None = None
    website: str | None = None
    phone: str | None = None
    wheelchair: str | None = None
    description: str | None = None
    checked_at: datetime | None = None


class PriceCheck(BaseModel):
    """Outcome of comparing a suggested price with public data."""

    verified: bool
    suggested_price: float | None = None
    price_confidence: PriceConfidence | None = None
    checked_at: datetime | None = None
