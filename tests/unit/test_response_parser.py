"""Unit tests for tiered response parsing."""

import json
from datetime import date

import pytest

from wandermind.models.results import ParseTier
from wandermind.models.trip import TripRequest
from wandermind.normalize.defaults import StaticCityResolver
from wandermind.parsing.repair import (
    ResponseParseError,
    ResponseShapeError,
    check_shape,
    decode_json_object,
    extract_json_object,
    parse_itinerary_response,
)

VALID = {
    "itinerary": {"days": [{"date": "2024-01-01", "activities": [], "meals": []}]},
    "locations": [{"name": "Lalbagh", "coordinates": {"lat": 12.95, "lng": 77.58}}],
}


class TestExtractJsonObject:
    def test_slices_first_to_last_brace(self) -> None:
        text = 'Here is your plan:\n```json\n{"a": {"b": 1}}\n```\nEnjoy!'
        assert extract_json_object(text) == '{"a": {"b": 1}}'

    def test_no_braces_raises(self) -> None:
        with pytest.raises(ResponseParseError):
            extract_json_object("no json here")


class TestDecodeJsonObject:
    def test_strict_tier(self) -> None:
        data, tier = decode_json_object('{"name": "x"}')
        assert data == {"name": "x"}
        assert tier is ParseTier.strict

    def test_brace_extract_tier(self) -> None:
        data, tier = decode_json_object('Sure! {"name": "x"} Hope that helps.')
        assert data == {"name": "x"}
        assert tier is ParseTier.brace_extract

    def test_array_is_not_an_object(self) -> None:
        with pytest.raises(ResponseParseError):
            decode_json_object("[1, 2, 3]")


class TestCheckShape:
    def test_wraps_bare_days(self) -> None:
        parsed = check_shape({"days": [{"date": "2024-01-01"}], "locations": []})
        assert parsed.itinerary == {"days": [{"date": "2024-01-01"}]}
        assert parsed.locations == []

    def test_days_must_be_a_list(self) -> None:
        with pytest.raises(ResponseShapeError):
            check_shape({"itinerary": {"days": "monday"}})

    def test_non_list_locations_are_ignored(self) -> None:
        parsed = check_shape({"itinerary": {"days": []}, "locations": "none"})
        assert parsed.locations == []


class TestParseItineraryResponse:
    def test_strict_json(self, sample_trip: TripRequest) -> None:
        parsed = parse_itinerary_response(json.dumps(VALID), sample_trip)
        assert parsed.tier is ParseTier.strict
        assert parsed.itinerary["days"][0]["date"] == "2024-01-01"
        assert parsed.locations[0]["name"] == "Lalbagh"

    def test_prose_wrapped_json_uses_brace_extraction(self, sample_trip: TripRequest) -> None:
        text = f"Here is your itinerary:\n{json.dumps(VALID)}\nHave a great trip!"
        parsed = parse_itinerary_response(text, sample_trip)
        assert parsed.tier is ParseTier.brace_extract
        assert len(parsed.itinerary["days"]) == 1

    @pytest.mark.parametrize(
        "text",
        [
            None,
            "",
            "I cannot help with that.",
            '{"itinerary": {"days": [{"date": "2024-01-01", "activities": [',
            '{"itinerary": {}}',
            '{"plan": "three days of fun"}',
        ],
    )
    def test_unusable_text_synthesizes_fallback(
        self, sample_trip: TripRequest, text: str | None
    ) -> None:
        parsed = parse_itinerary_response(text, sample_trip)

        assert parsed.tier is ParseTier.fallback
        days = parsed.itinerary["days"]
        assert len(days) == 1
        assert days[0]["date"] == date(2024, 1, 1).isoformat()
        assert len(days[0]["activities"]) == 1
        assert len(days[0]["meals"]) == 1
        assert days[0]["activities"][0]["coordinates"] == {"lat": 0.0, "lng": 0.0}

    def test_fallback_uses_resolver_coordinates(self, sample_trip: TripRequest) -> None:
        parsed = parse_itinerary_response("garbage", sample_trip, StaticCityResolver())
        activity = parsed.itinerary["days"][0]["activities"][0]
        assert activity["name"] == "Explore Bangalore"
        assert activity["coordinates"] == {"lat": 12.97, "lng": 77.59}


def test_brace_extraction_recovers_embedded_object() -> None:
    text = 'prose text {"itinerary":{"days":[]}} trailing'
    assert extract_json_object(text) == '{"itinerary":{"days":[]}}'
    data, tier = decode_json_object(text)
    assert data == {"itinerary": {"days": []}}
    assert tier is ParseTier.brace_extract
