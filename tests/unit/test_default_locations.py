"""Unit tests for default-location resolvers."""

import pytest

from wandermind.models.common import Coordinates
from wandermind.normalize.defaults import NullLocationResolver, StaticCityResolver


@pytest.mark.parametrize("destination", ["Bangalore", "bengaluru, India", "Trip to BANGALORE!"])
def test_static_resolver_matches_whole_words(destination: str) -> None:
    location = StaticCityResolver().resolve(destination)

    assert location is not None
    assert location.coordinates == Coordinates(lat=12.97, lng=77.59)


@pytest.mark.parametrize("destination", ["Bangkok", "Bangladesh", ""])
def test_static_resolver_ignores_partial_matches(destination: str) -> None:
    assert StaticCityResolver().resolve(destination) is None


def test_custom_table() -> None:
    resolver = StaticCityResolver({"Mysore": ("Mysore Palace", Coordinates(lat=12.3, lng=76.65))})

    location = resolver.resolve("mysore")

    assert location is not None
    assert location.name == "Mysore Palace"
    assert resolver.resolve("Bangalore") is None


def test_null_resolver() -> None:
    assert NullLocationResolver().resolve("Bangalore") is None
