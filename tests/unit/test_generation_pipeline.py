"""Unit tests for trip validation and the generation pipeline."""

import json
from datetime import date
from typing import Any

import pytest

from wandermind.config import Settings
from wandermind.errors import (
    BudgetTooLowError,
    CredentialError,
    InputValidationError,
    InvalidDateRangeError,
    ProviderError,
    TripTooLongError,
)
from wandermind.models.common import Provider
from wandermind.models.results import ParseTier
from wandermind.models.trip import TripRequest
from wandermind.normalize.defaults import NullLocationResolver
from wandermind.pipeline.generation import (
    ItineraryGenerator,
    generate_itinerary,
    parse_trip_request,
    validate_trip_request,
)


def _trip(**overrides: Any) -> TripRequest:
    data: dict[str, Any] = {
        "destination": "Bangalore",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 1, 3),
        "budget": 600,
        "num_people": 2,
        "provider": Provider.groq,
    }
    data.update(overrides)
    return TripRequest(**data)


class TestParseTripRequest:
    def test_form_data(self) -> None:
        trip = parse_trip_request(
            {
                "destination": "  Mysore ",
                "start_date": "2024-03-01",
                "end_date": "2024-03-02",
                "budget": "400",
                "currency": "INR",
                "num_people": 1,
                "interests": ["food", "food", "history"],
            }
        )
        assert trip.destination == "Mysore"
        assert trip.num_days == 2
        assert trip.interests == ["food", "history"]

    @pytest.mark.parametrize("missing", ["destination", "start_date", "end_date", "budget"])
    def test_missing_required_field(self, missing: str) -> None:
        data = {
            "destination": "Mysore",
            "start_date": "2024-03-01",
            "end_date": "2024-03-02",
            "budget": 400,
        }
        data[missing] = ""
        with pytest.raises(InputValidationError, match="Missing required trip data"):
            parse_trip_request(data)

    def test_inverted_dates(self) -> None:
        with pytest.raises(InvalidDateRangeError):
            parse_trip_request(
                {
                    "destination": "Mysore",
                    "start_date": "2024-03-05",
                    "end_date": "2024-03-01",
                    "budget": 400,
                }
            )

    def test_non_positive_budget(self) -> None:
        with pytest.raises(InputValidationError, match="budget"):
            parse_trip_request(
                {
                    "destination": "Mysore",
                    "start_date": "2024-03-01",
                    "end_date": "2024-03-01",
                    "budget": -5,
                }
            )


class TestValidateTripRequest:
    def test_accepts_valid_trip(self, settings: Settings) -> None:
        validate_trip_request(_trip(), settings)

    def test_fourteen_days_allowed(self, settings: Settings) -> None:
        validate_trip_request(_trip(end_date=date(2024, 1, 14), budget=10_000), settings)

    def test_fifteen_days_rejected(self, settings: Settings) -> None:
        with pytest.raises(TripTooLongError, match="maximum 14 days"):
            validate_trip_request(_trip(end_date=date(2024, 1, 15), budget=10_000), settings)

    def test_budget_below_minimum(self, settings: Settings) -> None:
        # 200 / 2 people / 3 days = 33.3 per person per day
        with pytest.raises(BudgetTooLowError):
            validate_trip_request(_trip(budget=200), settings)

    def test_budget_at_minimum(self, settings: Settings) -> None:
        validate_trip_request(_trip(budget=300), settings)


def _two_day_response(make_activity: Any, make_meal: Any) -> str:
    days = [
        {
            "date": "2024-01-01",
            "activities": [make_activity("Lalbagh", lat=12.95, lng=77.58)],
            "meals": [make_meal("MTR", "Breakfast")],
        },
        {
            "date": "2024-01-02",
            "activities": [make_activity("Bangalore Palace", lat=12.99, lng=77.59)],
            "meals": [make_meal("CTR", "Lunch", lat=12.99, lng=77.57)],
        },
    ]
    return json.dumps({"itinerary": {"days": days}, "locations": []})


class TestItineraryGenerator:
    @pytest.mark.asyncio
    async def test_end_to_end_with_embedded_json(
        self,
        sample_trip: TripRequest,
        settings: Settings,
        fake_llm: Any,
        make_activity: Any,
        make_meal: Any,
    ) -> None:
        text = f"Here is your trip!\n{_two_day_response(make_activity, make_meal)}\nEnjoy."
        client = fake_llm([text])
        generator = ItineraryGenerator(settings=settings)

        result = await generator.generate(sample_trip, client)

        assert result.parse_tier is ParseTier.brace_extract
        assert [d.date for d in result.itinerary.days] == [date(2024, 1, 1), date(2024, 1, 2)]
        assert result.has_map_points
        assert [loc.name for loc in result.locations] == [
            "Lalbagh",
            "MTR",
            "Bangalore Palace",
            "CTR",
        ]
        assert client.calls[0]["temperature"] == 0.3
        assert client.calls[0]["max_tokens"] == 4000

    @pytest.mark.asyncio
    async def test_unusable_response_falls_back(
        self, sample_trip: TripRequest, settings: Settings, fake_llm: Any
    ) -> None:
        generator = ItineraryGenerator(settings=settings)

        result = await generator.generate(sample_trip, fake_llm(["no idea"]))

        assert result.parse_tier is ParseTier.fallback
        assert len(result.itinerary.days) == 1
        assert result.itinerary.days[0].date == sample_trip.start_date
        assert result.advisories[0].code == "FALLBACK_ITINERARY"
        assert result.locations[0].name == "Explore Bangalore"

    @pytest.mark.asyncio
    async def test_one_shot_entry_point(
        self, sample_trip: TripRequest, settings: Settings, fake_llm: Any
    ) -> None:
        result = await generate_itinerary(sample_trip, fake_llm(["not json"]), settings)

        assert result.parse_tier is ParseTier.fallback

    @pytest.mark.asyncio
    async def test_invalid_trip_rejected_before_any_call(
        self, settings: Settings, fake_llm: Any
    ) -> None:
        client = fake_llm([])
        generator = ItineraryGenerator(settings=settings)

        with pytest.raises(BudgetTooLowError):
            await generator.generate(_trip(budget=10), client)
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_no_map_points_advisory(
        self, sample_trip: TripRequest, settings: Settings, fake_llm: Any, make_activity: Any
    ) -> None:
        activity = make_activity("Lost Place", lat=500, lng=0)
        day = {"date": "2024-01-01", "activities": [activity]}
        text = json.dumps({"itinerary": {"days": [day]}})
        generator = ItineraryGenerator(settings=settings, resolver=NullLocationResolver())

        result = await generator.generate(sample_trip, fake_llm([text]))

        assert result.locations == []
        codes = [a.code for a in result.advisories]
        assert "INVALID_COORDINATES" in codes
        assert "NO_MAP_POINTS" in codes

    @pytest.mark.asyncio
    async def test_provider_error_propagates(
        self, sample_trip: TripRequest, settings: Settings, fake_llm: Any
    ) -> None:
        generator = ItineraryGenerator(settings=settings)

        with pytest.raises(ProviderError):
            await generator.generate(sample_trip, fake_llm([ProviderError()]))

    @pytest.mark.asyncio
    async def test_missing_key_is_credential_error(self, settings: Settings) -> None:
        generator = ItineraryGenerator(settings=settings)

        with pytest.raises(CredentialError, match="console.groq.com"):
            await generator.generate(_trip())

    def test_client_factory_receives_trip_key(self, settings: Settings, fake_llm: Any) -> None:
        seen: list[Any] = []

        def factory(provider: Provider, api_key: Any, _settings: Settings) -> Any:
            seen.append((provider, api_key.get_secret_value()))
            return fake_llm([], provider=provider)

        generator = ItineraryGenerator(settings=settings, client_factory=factory)
        client = generator.client_for(_trip(provider=Provider.gemini, api_key="g-key"))

        assert client.provider is Provider.gemini
        assert seen == [(Provider.gemini, "g-key")]
