"""Trip request models - user input and preferences."""

from datetime import date, timedelta
from typing import Annotated

from pydantic import BaseModel, Field, SecretStr, ValidationInfo, field_validator

from wandermind.models.common import Currency, FamousPreference, Provider


class TripRequest(BaseModel):
    """User parameters for one itinerary generation."""

    destination: Annotated[str, Field(min_length=1)]
    start_date: date
    end_date: date
    budget: Annotated[float, Field(gt=0)]
    currency: Currency = Currency.USD
    num_people: Annotated[int, Field(ge=1)] = 1
    interests: list[str] = Field(default_factory=list)
    extra_wishes: str = ""
    famous_preference: FamousPreference = FamousPreference.city_highlights
    provider: Provider = Provider.groq
    api_key: SecretStr | None = Field(default=None, exclude=True)

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        """Strip whitespace and reject blank destinations."""
        v = v.strip()
        if not v:
            raise ValueError("destination must not be blank")
        return v

    @field_validator("end_date")
    @classmethod
    def validate_end_after_start(cls, v: date, info: ValidationInfo) -> date:
        """Ensure end >= start."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must be >= start_date")
        return v

    @field_validator("interests")
    @classmethod
    def dedupe_interests(cls, v: list[str]) -> list[str]:
        """Drop blanks and repeated tags, keeping first-seen order."""
        seen: dict[str, None] = {}
        for tag in v:
            tag = tag.strip()
            if tag:
                seen.setdefault(tag, None)
        return list(seen)

    @property
    def num_days(self) -> int:
        """Inclusive day count."""
        return (self.end_date - self.start_date).days + 1

    @property
    def trip_dates(self) -> list[date]:
        """Every calendar date in the trip, inclusive."""
        return [self.start_date + timedelta(days=i) for i in range(self.num_days)]

    @property
    def budget_per_person(self) -> float:
        return self.budget / self.num_people

    @property
    def budget_per_person_per_day(self) -> float:
        return self.budget_per_person / self.num_days
