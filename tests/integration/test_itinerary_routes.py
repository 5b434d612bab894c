"""Integration tests for POST /itineraries and POST /itineraries/events/modify."""

import json
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from wandermind.api.routes.itineraries import get_generator
from wandermind.config import Settings
from wandermind.errors import CredentialError, ProviderError
from wandermind.main import app
from wandermind.models.common import Provider
from wandermind.pipeline.generation import ItineraryGenerator

TRIP = {
    "destination": "Bangalore",
    "start_date": "2024-01-01",
    "end_date": "2024-01-03",
    "budget": 600,
    "num_people": 2,
    "provider": "groq",
    "api_key": "test-key",
}


class ScriptedClients:
    """Client factory whose clients share one queue of scripted responses."""

    def __init__(self, fake_llm: Any) -> None:
        self.client = fake_llm([])

    @property
    def responses(self) -> list[str | Exception]:
        return self.client.responses

    def __call__(self, provider: Provider, api_key: Any, settings: Settings) -> Any:
        if api_key is None:
            raise CredentialError("Please provide a valid Groq API key.")
        return self.client


@pytest.fixture
def scripted(fake_llm: Any, settings: Settings) -> Iterator[ScriptedClients]:
    clients = ScriptedClients(fake_llm)
    generator = ItineraryGenerator(settings=settings, client_factory=clients)
    app.dependency_overrides[get_generator] = lambda: generator
    yield clients
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def two_days(make_activity: Callable[..., Any], make_meal: Callable[..., Any]) -> str:
    days = [
        {
            "date": "2024-01-01",
            "activities": [make_activity("Lalbagh", lat=12.95, lng=77.58)],
            "meals": [make_meal("MTR", "Breakfast")],
        },
        {
            "date": "2024-01-02",
            "activities": [make_activity("Bangalore Palace", lat=12.99, lng=77.59)],
            "meals": [make_meal("CTR", "Dinner", lat=12.99, lng=77.57)],
        },
    ]
    return "Here you go:\n" + json.dumps({"itinerary": {"days": days}})


class TestCreateItinerary:
    def test_generates_render_safe_itinerary(
        self, client: TestClient, scripted: ScriptedClients, two_days: str
    ) -> None:
        scripted.responses.append(two_days)

        response = client.post("/itineraries", json=TRIP)

        assert response.status_code == 200
        data = response.json()
        assert data["parse_tier"] == "brace_extract"
        assert [d["date"] for d in data["itinerary"]["days"]] == ["2024-01-01", "2024-01-02"]
        assert len(data["locations"]) == 4
        assert len(data["map"]["waypoints"]) == 4
        assert "api_key" not in json.dumps(data)

    def test_missing_fields(self, client: TestClient, scripted: ScriptedClients) -> None:
        response = client.post("/itineraries", json={"destination": "Bangalore"})

        assert response.status_code == 422
        assert "Missing required trip data" in response.json()["detail"]

    def test_trip_too_long(self, client: TestClient, scripted: ScriptedClients) -> None:
        trip = {**TRIP, "end_date": "2024-01-20", "budget": 100_000}

        response = client.post("/itineraries", json=trip)

        assert response.status_code == 422
        assert "maximum 14 days" in response.json()["detail"]

    def test_missing_key(self, client: TestClient, scripted: ScriptedClients) -> None:
        trip = {k: v for k, v in TRIP.items() if k != "api_key"}

        response = client.post("/itineraries", json=trip)

        assert response.status_code == 401

    def test_provider_failure(self, client: TestClient, scripted: ScriptedClients) -> None:
        scripted.responses.append(ProviderError("Service unavailable", status_code=503))

        response = client.post("/itineraries", json=TRIP)

        assert response.status_code == 502
        assert response.json()["detail"] == "Service unavailable"


def _edit(name: str) -> str:
    return json.dumps(
        {
            "name": name,
            "time": "16:00",
            "description": "Rock garden",
            "cost": 0,
            "coordinates": {"lat": 12.94, "lng": 77.57},
            "transport": {"method": "auto", "duration": "10 min", "cost": 3},
        }
    )


class TestModifyEvent:
    def _itinerary(self, client: TestClient, scripted: ScriptedClients, two_days: str) -> Any:
        scripted.responses.append(two_days)
        return client.post("/itineraries", json=TRIP).json()["itinerary"]

    def test_replaces_event(
        self, client: TestClient, scripted: ScriptedClients, two_days: str
    ) -> None:
        itinerary = self._itinerary(client, scripted, two_days)
        scripted.responses.append(_edit("Bugle Rock"))

        response = client.post(
            "/itineraries/events/modify",
            json={
                "trip": TRIP,
                "itinerary": itinerary,
                "day_index": 0,
                "kind": "activity",
                "name": "lalbagh",
                "instruction": "somewhere less crowded",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["attempts"] == 1
        assert data["updated_event"]["name"] == "Bugle Rock"
        assert data["itinerary"]["days"][0]["activities"][0]["name"] == "Bugle Rock"
        assert data["locations"][0]["name"] == "Bugle Rock"

    def test_duplicate_twice_is_422(
        self, client: TestClient, scripted: ScriptedClients, two_days: str
    ) -> None:
        itinerary = self._itinerary(client, scripted, two_days)
        scripted.responses.extend([_edit("Bangalore Palace"), _edit("bangalore palace")])

        response = client.post(
            "/itineraries/events/modify",
            json={
                "trip": TRIP,
                "itinerary": itinerary,
                "day_index": 0,
                "kind": "activity",
                "name": "Lalbagh",
                "instruction": "a palace",
            },
        )

        assert response.status_code == 422
        assert "already in your itinerary" in response.json()["detail"]

    def test_unknown_event_is_422(
        self, client: TestClient, scripted: ScriptedClients, two_days: str
    ) -> None:
        itinerary = self._itinerary(client, scripted, two_days)

        response = client.post(
            "/itineraries/events/modify",
            json={
                "trip": TRIP,
                "itinerary": itinerary,
                "day_index": 1,
                "kind": "meal",
                "name": "MTR",
                "instruction": "anything",
            },
        )

        assert response.status_code == 422
