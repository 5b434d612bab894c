"""Advisory fact checking against OpenStreetMap Nominatim and Wikipedia.

Findings are advisory only. Every lookup degrades to ``verified=False``
on network or parse failures and never raises, so fact checking cannot
block rendering or editing.
"""

import logging
import math
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import httpx

from wandermind.config import Settings, get_settings
from wandermind.factcheck.cache import FactCheckCache
from wandermind.factcheck.ratelimit import MinIntervalRateLimiter
from wandermind.geo.coordinates import try_coordinates
from wandermind.geo.distance import haversine_km
from wandermind.models.advisories import Advisory, AdvisoryKind
from wandermind.models.common import Coordinates
from wandermind.models.fact_check import LocationCheck, PriceCheck, PriceConfidence
from wandermind.models.itinerary import Activity, Itinerary, Location, Meal
from wandermind.normalize.normalizer import dedupe_locations, itinerary_locations
from wandermind.utils.metrics import fact_check_total

logger = logging.getLogger(__name__)

# Failures that mean "could not verify" rather than a bug
_LOOKUP_ERRORS = (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError)

_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_fee(fee: object) -> float | None:
    """Read a numeric price out of an OSM ``fee`` tag ("yes", "5 EUR", "2.50")."""
    if isinstance(fee, int | float) and not isinstance(fee, bool):
        return float(fee) if math.isfinite(fee) else None
    if not isinstance(fee, str):
        return None
    match = _NUMBER.search(fee)
    if not match:
        return None
    return float(match.group().replace(",", "."))


def calculate_average_price(provided: float | None, *others: float | None) -> float:
    """Rounded mean of the finite estimates; the provided price if none are."""
    prices = [p for p in (provided, *others) if p is not None and math.isfinite(p)]
    if not prices:
        return provided or 0.0
    return float(round(sum(prices) / len(prices)))


def price_confidence(provided: float | None, *others: float | None) -> PriceConfidence:
    """Agreement between estimates, from their coefficient of variation."""
    prices = [p for p in (provided, *others) if p is not None and math.isfinite(p)]
    if len(prices) < 2:
        return "low"

    avg = calculate_average_price(provided, *others)
    if avg == 0:
        return "high" if all(p == 0 for p in prices) else "low"
    variance = sum((p - avg) ** 2 for p in prices) / len(prices)
    variation = math.sqrt(variance) / avg * 100

    if variation < 15:
        return "high"
    if variation < 30:
        return "medium"
    return "low"


class FactChecker:
    """Verifies place existence, distance from centre and price plausibility."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        rate_limiter: MinIntervalRateLimiter | None = None,
        cache: FactCheckCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize fact checker.

        Args:
            client: Optional httpx client (for testing with mocks)
            rate_limiter: Shared outbound gate (default: settings interval)
            cache: Result cache (default: fresh cache from settings)
            settings: Settings override
        """
        self._settings = settings or get_settings()
        self._client = client
        self._rate_limiter = rate_limiter or MinIntervalRateLimiter(
            self._settings.fact_check_min_interval_seconds
        )
        self._cache = cache or FactCheckCache(
            ttl_seconds=self._settings.fact_check_cache_ttl_seconds,
            max_entries=self._settings.fact_check_cache_max_entries,
        )

    async def _get_json(self, url: str, params: dict[str, str | float]) -> Any:
        """Rate-limited GET returning decoded JSON."""
        await self._rate_limiter.wait()

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._settings.fact_check_timeout_seconds)
            close_client = True

        try:
            response = await client.get(
                url,
                params=params,
                headers={"User-Agent": self._settings.fact_check_user_agent},
            )
            response.raise_for_status()
            return response.json()
        finally:
            if close_client:
                await client.aclose()

    async def validate_location(
        self, location: Location | str, center: Coordinates
    ) -> LocationCheck:
        """Check that a place exists and how far it is from the trip centre.

        Args:
            location: Location (or bare place name) to look up
            center: Trip centre point

        Returns:
            LocationCheck; verified=False when anything could not be checked
        """
        name = location if isinstance(location, str) else location.name
        cache_key = FactCheckCache.location_key(name)
        cached = self._cache.get(cache_key)
        if cached is not None:
            fact_check_total.labels(check="location", outcome="cache_hit").inc()
            return LocationCheck.model_validate(cached)

        try:
            results = await self._get_json(
                f"{self._settings.nominatim_url}/search",
                {"q": name, "format": "json", "limit": 1, "addressdetails": 1, "extratags": 1},
            )
            if not results:
                fact_check_total.labels(check="location", outcome="not_found").inc()
                return LocationCheck(verified=False, exists=False)

            coordinates = try_coordinates(
                {"lat": float(results[0]["lat"]), "lng": float(results[0]["lon"])}
            )
            distance = haversine_km(center, coordinates) if coordinates else None
            if coordinates is None or distance is None:
                fact_check_total.labels(check="location", outcome="unverified").inc()
                return LocationCheck(verified=False, exists=True, coordinates=coordinates)

            details = await self.get_location_details(name, coordinates)
            result = LocationCheck(
                verified=True,
                exists=True,
                too_far=distance > self._settings.max_distance_km,
                distance_km=round(distance, 2),
                coordinates=coordinates,
                checked_at=datetime.now(UTC),
                **details,
            )
        except _LOOKUP_ERRORS as e:
            logger.warning(f"Location check failed for {name!r}: {type(e).__name__}")
            fact_check_total.labels(check="location", outcome="error").inc()
            return LocationCheck(verified=False)

        self._cache.set(cache_key, result.model_dump())
        fact_check_total.labels(check="location", outcome="verified").inc()
        return result

    async def validate_price(self, event: Activity | Meal) -> PriceCheck:
        """Compare an event's cost with the OSM ``fee`` tag."""
        cache_key = FactCheckCache.price_key(event.name)
        cached = self._cache.get(cache_key)
        if cached is not None:
            fact_check_total.labels(check="price", outcome="cache_hit").inc()
            return PriceCheck.model_validate(cached)

        osm_price = await self.get_osm_price(event.name)
        result = PriceCheck(
            verified=True,
            suggested_price=calculate_average_price(event.cost, osm_price),
            price_confidence=price_confidence(event.cost, osm_price),
            checked_at=datetime.now(UTC),
        )
        self._cache.set(cache_key, result.model_dump())
        fact_check_total.labels(check="price", outcome="verified").inc()
        return result

    async def get_location_details(self, name: str, coordinates: Coordinates) -> dict[str, Any]:
        """Reverse-geocode metadata plus a Wikipedia summary."""
        try:
            data = await self._get_json(
                f"{self._settings.nominatim_url}/reverse",
                {
                    "lat": coordinates.lat,
                    "lon": coordinates.lng,
                    "format": "json",
                    "extratags": 1,
                },
            )
        except _LOOKUP_ERRORS as e:
            logger.info(f"Reverse lookup failed for {name!r}: {type(e).__name__}")
            return {"description": None}

        data = _as_dict(data)
        extratags = _as_dict(data.get("extratags"))
        description = await self.get_wiki_description(name)
        return {
            "type": data.get("type"),
            "category": data.get("category"),
            "opening_hours": extratags.get("opening_hours"),
            "website": extratags.get("website"),
            "phone": extratags.get("phone"),
            "wheelchair": extratags.get("wheelchair"),
            "description": description,
        }

    async def get_wiki_description(self, name: str) -> str | None:
        """Intro extract of the Wikipedia page with this title, if any."""
        try:
            data = await self._get_json(
                self._settings.wikipedia_api_url,
                {
                    "action": "query",
                    "format": "json",
                    "prop": "extracts",
                    "exintro": 1,
                    "explaintext": 1,
                    "titles": name,
                },
            )
            pages = _as_dict(_as_dict(_as_dict(data).get("query")).get("pages"))
        except _LOOKUP_ERRORS as e:
            logger.info(f"Wikipedia lookup failed for {name!r}: {type(e).__name__}")
            return None
        page = _as_dict(next(iter(pages.values()), None))
        extract = page.get("extract")
        return extract if isinstance(extract, str) and extract else None

    async def get_osm_price(self, name: str) -> float | None:
        """Numeric OSM ``fee`` for the first match, if it has one."""
        try:
            results = await self._get_json(
                f"{self._settings.nominatim_url}/search",
                {"q": name, "format": "json", "extratags": 1},
            )
            first = results[0] if isinstance(results, list) and results else None
            extratags = _as_dict(_as_dict(first).get("extratags"))
        except _LOOKUP_ERRORS as e:
            logger.info(f"Price lookup failed for {name!r}: {type(e).__name__}")
            return None
        return parse_fee(extratags.get("fee"))

    async def review_locations(
        self, locations: Iterable[Location], center: Coordinates
    ) -> list[Advisory]:
        """Check each location in turn and report the doubtful ones."""
        advisories: list[Advisory] = []
        for location in locations:
            check = await self.validate_location(location, center)
            if check.exists is False:
                advisories.append(
                    Advisory(
                        kind=AdvisoryKind.FACT_CHECK,
                        code="LOCATION_NOT_FOUND",
                        message=f'"{location.name}" could not be found on OpenStreetMap.',
                        details={"name": location.name},
                    )
                )
            elif check.verified and check.too_far:
                advisories.append(
                    Advisory(
                        kind=AdvisoryKind.FACT_CHECK,
                        code="LOCATION_TOO_FAR",
                        message=(
                            f'"{location.name}" is {check.distance_km:.0f} km from the city '
                            "centre."
                        ),
                        details={"name": location.name, "distance_km": check.distance_km},
                    )
                )
        return advisories

    async def review_itinerary(
        self, itinerary: Itinerary, center: Coordinates
    ) -> list[Advisory]:
        """Review every unique located event of an itinerary."""
        return await self.review_locations(
            dedupe_locations(itinerary_locations(itinerary)), center
        )
