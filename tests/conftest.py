"""Shared pytest fixtures for all test suites."""

from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from wandermind.config import Settings
from wandermind.llm.prompts import Message
from wandermind.models.common import Provider
from wandermind.models.trip import TripRequest


class FakeLLMClient:
    """Scripted LLM client that records every call.

    Each call pops the next response; an Exception instance is raised
    instead of returned.
    """

    def __init__(self, responses: list[str | Exception], provider: Provider = Provider.groq):
        self.provider = provider
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        groq_api_key=None,
        gemini_api_key=None,
        credential_store_path=tmp_path / "credentials.json",
    )


@pytest.fixture
def sample_trip() -> TripRequest:
    """Three-day Bangalore trip for two."""
    return TripRequest(
        destination="Bangalore",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 3),
        budget=600,
        num_people=2,
        interests=["culture", "food"],
        provider=Provider.groq,
        api_key="test-key",
    )


def _activity(
    name: str, cost: float = 20, lat: float = 12.97, lng: float = 77.59
) -> dict[str, Any]:
    return {
        "name": name,
        "time": "10:00",
        "description": f"{name} description",
        "cost": cost,
        "coordinates": {"lat": lat, "lng": lng},
        "transport": {"method": "taxi", "duration": "15 min", "cost": 5},
    }


def _meal(
    name: str, meal_type: str = "Lunch", cost: float = 10, lat: float = 12.98, lng: float = 77.6
) -> dict[str, Any]:
    return {
        "name": name,
        "type": meal_type,
        "time": "13:00",
        "description": f"{name} description",
        "cost": cost,
        "coordinates": {"lat": lat, "lng": lng},
    }


@pytest.fixture
def make_activity() -> Callable[..., dict[str, Any]]:
    """Factory for raw (model-shaped) activity dicts."""
    return _activity


@pytest.fixture
def make_meal() -> Callable[..., dict[str, Any]]:
    """Factory for raw (model-shaped) meal dicts."""
    return _meal


@pytest.fixture
def fake_llm() -> type[FakeLLMClient]:
    """Factory for scripted LLM clients."""
    return FakeLLMClient
