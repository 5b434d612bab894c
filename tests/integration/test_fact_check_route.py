"""Integration tests for POST /fact-check/location."""

from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from wandermind.api.routes.fact_check import get_fact_checker
from wandermind.config import Settings
from wandermind.factcheck.cache import FactCheckCache
from wandermind.factcheck.checker import FactChecker
from wandermind.factcheck.ratelimit import MinIntervalRateLimiter
from wandermind.main import app


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/search"):
        if request.url.params.get("q") == "Atlantis":
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[{"lat": "12.9507", "lon": "77.5848"}])
    if request.url.path.endswith("/reverse"):
        return httpx.Response(200, json={"type": "garden", "category": "leisure"})
    return httpx.Response(500)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    checker = FactChecker(
        client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
        rate_limiter=MinIntervalRateLimiter(0),
        cache=FactCheckCache(),
        settings=settings,
    )
    app.dependency_overrides[get_fact_checker] = lambda: checker
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_known_place(client: TestClient) -> None:
    response = client.post(
        "/fact-check/location",
        json={"name": "Lalbagh", "center": {"lat": 12.97, "lng": 77.59}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["verified"] is True
    assert data["too_far"] is False
    assert data["type"] == "garden"
    # Wikipedia lookup failed; the check still succeeds
    assert data["description"] is None


def test_unknown_place(client: TestClient) -> None:
    response = client.post(
        "/fact-check/location",
        json={"name": "Atlantis", "center": {"lat": 12.97, "lng": 77.59}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["verified"] is False
    assert data["exists"] is False


def test_invalid_center(client: TestClient) -> None:
    response = client.post(
        "/fact-check/location",
        json={"name": "Lalbagh", "center": {"lat": 123, "lng": 77.59}},
    )

    assert response.status_code == 422
