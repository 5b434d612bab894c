"""Itinerary generation pipeline.

TripRequest -> prompt -> language model -> parse & repair -> normalize ->
location derivation. Input and credential problems fail fast, before any
network call; everything after the model call degrades instead of failing.
"""

import time
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import SecretStr, ValidationError

from wandermind.config import Settings, get_settings
from wandermind.errors import (
    BudgetTooLowError,
    InputValidationError,
    InvalidDateRangeError,
    TripTooLongError,
)
from wandermind.llm.client import LLMClient, get_llm_client
from wandermind.llm.prompts import build_itinerary_prompt
from wandermind.models.advisories import Advisory, AdvisoryKind
from wandermind.models.common import Provider
from wandermind.models.results import GenerationResult, ParseTier
from wandermind.models.trip import TripRequest
from wandermind.normalize.defaults import DefaultLocationResolver, StaticCityResolver
from wandermind.normalize.normalizer import NormalizerPolicy, derive_locations, normalize_itinerary
from wandermind.parsing.repair import parse_itinerary_response
from wandermind.utils.logging import StructuredPipelineLogger

ClientFactory = Callable[[Provider, SecretStr | str | None, Settings], LLMClient]

_REQUIRED_FORM_FIELDS = ("destination", "start_date", "end_date", "budget")


def parse_trip_request(data: Mapping[str, Any]) -> TripRequest:
    """Build a TripRequest from loosely typed form data.

    Raises:
        InputValidationError: With a user-facing message for the first problem
    """
    if any(data.get(f) in (None, "") for f in _REQUIRED_FORM_FIELDS):
        raise InputValidationError("Missing required trip data: destination, dates, and budget")
    try:
        return TripRequest.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "trip"
        if field == "end_date":
            raise InvalidDateRangeError("Invalid date range: select valid travel dates") from e
        raise InputValidationError(f"Invalid {field}: {error['msg']}") from e


def validate_trip_request(trip: TripRequest, settings: Settings | None = None) -> None:
    """Policy checks that must pass before any network call.

    Raises:
        InvalidDateRangeError: End date before start date
        TripTooLongError: More than settings.max_trip_days days
        BudgetTooLowError: Per-person-per-day budget below the minimum
    """
    settings = settings or get_settings()

    if trip.end_date < trip.start_date:
        raise InvalidDateRangeError("Invalid date range: select valid travel dates")
    if trip.num_days > settings.max_trip_days:
        raise TripTooLongError(
            f"Trip duration too long: maximum {settings.max_trip_days} days supported"
        )
    if trip.budget_per_person_per_day < settings.min_budget_per_person_per_day:
        raise BudgetTooLowError(
            f"Budget too low: minimum {settings.min_budget_per_person_per_day:g} "
            f"{trip.currency.value} per person per day required"
        )


class ItineraryGenerator:
    """Runs one trip request through the whole pipeline."""

    def __init__(
        self,
        settings: Settings | None = None,
        resolver: DefaultLocationResolver | None = None,
        policy: NormalizerPolicy | None = None,
        client_factory: ClientFactory | None = None,
        pipeline_logger: StructuredPipelineLogger | None = None,
    ) -> None:
        """Initialize generator.

        Args:
            settings: Settings override
            resolver: Default-location resolver (default: static city table)
            policy: Normalizer policy
            client_factory: Builds the LLM client for a provider and key
            pipeline_logger: Structured logger (optional)
        """
        self._settings = settings or get_settings()
        self.resolver = resolver or StaticCityResolver()
        self.policy = policy or NormalizerPolicy()
        self._client_factory = client_factory or get_llm_client
        self._log = pipeline_logger or StructuredPipelineLogger()

    def client_for(self, trip: TripRequest) -> LLMClient:
        """LLM client for the trip's provider and key."""
        return self._client_factory(trip.provider, trip.api_key, self._settings)

    async def generate(
        self, trip: TripRequest, client: LLMClient | None = None
    ) -> GenerationResult:
        """Generate a render-safe itinerary.

        Args:
            trip: Trip request
            client: LLM client override (default: built from the trip's provider)

        Returns:
            GenerationResult with itinerary, unique locations and advisories

        Raises:
            InputValidationError: Trip rejected before any network call
            CredentialError: Missing or rejected provider key
            ProviderError: Provider call failed
        """
        validate_trip_request(trip, self._settings)
        client = client or self.client_for(trip)

        prompt = build_itinerary_prompt(trip)
        start = time.monotonic()
        text = await client.complete(
            prompt.to_messages(),
            temperature=self._settings.itinerary_temperature,
            max_tokens=self._settings.itinerary_max_tokens,
        )
        self._log.log_stage(
            "llm",
            "success",
            latency_ms=(time.monotonic() - start) * 1000,
            provider=trip.provider.value,
            chars=len(text),
        )

        parsed = parse_itinerary_response(text, trip, self.resolver)
        normalized = normalize_itinerary(parsed.itinerary, trip, self.policy)
        location_set = derive_locations(
            normalized.itinerary,
            parsed.locations,
            destination=trip.destination,
            resolver=self.resolver,
        )

        advisories: list[Advisory] = []
        if parsed.tier is ParseTier.fallback:
            advisories.append(
                Advisory(
                    kind=AdvisoryKind.STRUCTURE,
                    code="FALLBACK_ITINERARY",
                    message=(
                        "The generated plan could not be read; showing a placeholder "
                        "itinerary instead. Try generating again."
                    ),
                )
            )
        advisories.extend(normalized.advisories)
        advisories.extend(location_set.advisories)

        self._log.log_stage(
            "generate",
            "success",
            tier=parsed.tier.value,
            days=len(normalized.itinerary.days),
            locations=len(location_set.locations),
            advisories=len(advisories),
        )
        return GenerationResult(
            itinerary=normalized.itinerary,
            locations=location_set.locations,
            advisories=advisories,
            parse_tier=parsed.tier,
        )


async def generate_itinerary(
    trip: TripRequest,
    client: LLMClient | None = None,
    settings: Settings | None = None,
) -> GenerationResult:
    """Main entry point for one-shot generation."""
    return await ItineraryGenerator(settings=settings).generate(trip, client)
