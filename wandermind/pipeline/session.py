"""Planner session state - one user's current trip, itinerary and map.

Generation is single-flight with supersede semantics: every submit takes a
new generation number and cancels the previous in-flight run, and a result
is committed only if its generation is still current. Event edits are
single-flight per event and merge atomically into the current itinerary.
"""

import asyncio
import logging
from typing import Literal

from pydantic import BaseModel

from wandermind.config import Settings, get_settings
from wandermind.credentials import CredentialStore
from wandermind.editing.modifier import EventModifier, EventRef, RetryPolicy, apply_event_update
from wandermind.errors import (
    EditInProgressError,
    EventModificationError,
    EventNotFoundError,
    WanderMindError,
)
from wandermind.factcheck.checker import FactChecker
from wandermind.models.advisories import Advisory
from wandermind.models.common import EventKind
from wandermind.models.itinerary import Itinerary, Location
from wandermind.models.results import EventModification, GenerationResult
from wandermind.models.trip import TripRequest
from wandermind.normalize.normalizer import derive_locations, name_key
from wandermind.pipeline.generation import ItineraryGenerator
from wandermind.presentation.map_view import MapView, build_map_view

logger = logging.getLogger(__name__)


class Banner(BaseModel):
    """The single message shown to the user."""

    level: Literal["error", "advisory"]
    message: str


class PlannerSession:
    """Holds the state a trip-planning screen renders from."""

    def __init__(
        self,
        generator: ItineraryGenerator | None = None,
        settings: Settings | None = None,
        credential_store: CredentialStore | None = None,
        fact_checker: FactChecker | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._generator = generator or ItineraryGenerator(settings=self._settings)
        self._credentials = credential_store or CredentialStore(
            self._settings.credential_store_path
        )
        self._fact_checker = fact_checker
        self._retry_policy = retry_policy

        self.trip: TripRequest | None = None
        self.itinerary: Itinerary | None = None
        self.locations: list[Location] = []
        self.advisories: list[Advisory] = []
        self.banner: Banner | None = None

        self._generation = 0
        self._task: asyncio.Task[GenerationResult] | None = None
        self._edits_in_flight: set[tuple[int, EventKind, str]] = set()

    @property
    def is_generating(self) -> bool:
        return self._task is not None and not self._task.done()

    def _with_credentials(self, trip: TripRequest) -> TripRequest:
        if trip.api_key and trip.api_key.get_secret_value().strip():
            self._credentials.set(trip.provider, trip.api_key)
            return trip
        stored = self._credentials.get(trip.provider)
        return trip.model_copy(update={"api_key": stored}) if stored else trip

    async def submit(self, trip: TripRequest) -> GenerationResult | None:
        """Generate an itinerary for a new trip, superseding any run in flight.

        Failures are reported through ``banner`` rather than raised.

        Returns:
            The committed result, or None if the run failed or was superseded
        """
        self._generation += 1
        generation = self._generation
        if self._task is not None and not self._task.done():
            logger.info(f"Superseding in-flight generation {generation - 1}")
            self._task.cancel()

        trip = self._with_credentials(trip)
        self.banner = None
        task = asyncio.create_task(self._generator.generate(trip))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return None
            raise
        except WanderMindError as e:
            if generation != self._generation:
                return None
            self._fail(trip, e)
            return None
        finally:
            if self._task is task:
                self._task = None

        if generation != self._generation:
            logger.info(f"Discarding stale result of generation {generation}")
            return None

        self.trip = trip
        self.itinerary = result.itinerary
        self.locations = result.locations
        self.advisories = list(result.advisories)
        if not result.locations:
            self.banner = Banner(
                level="advisory", message="No valid coordinates found for map points."
            )
        return result

    def _fail(self, trip: TripRequest, error: WanderMindError) -> None:
        logger.warning(f"Generation failed: {type(error).__name__}: {error}")
        self.banner = Banner(level="error", message=str(error))
        self.trip = trip
        self.itinerary = None
        self.advisories = []
        # Keep the map populated for recognisable destinations
        default = self._generator.resolver.resolve(trip.destination)
        self.locations = [default] if default else []

    def refresh_locations(self) -> list[Location]:
        """Recompute the full location list from the current itinerary."""
        if self.itinerary is None or self.trip is None:
            self.locations = []
            return self.locations
        location_set = derive_locations(
            self.itinerary,
            destination=self.trip.destination,
            resolver=self._generator.resolver,
        )
        self.locations = location_set.locations
        return self.locations

    def map_view(self, highlighted: str | None = None) -> MapView:
        """Map view of the current locations."""
        default = self._generator.resolver.resolve(self.trip.destination) if self.trip else None
        return build_map_view(self.locations, highlighted=highlighted, default_center=default)

    async def modify_event(self, ref: EventRef, instruction: str) -> EventModification:
        """Replace one activity or meal following a natural-language request.

        Raises:
            EditInProgressError: The same event is already being edited
            EventModificationError: Proposal invalid, duplicate or stale
            CredentialError / ProviderError: From the language-model client
        """
        if self.itinerary is None or self.trip is None:
            raise EventNotFoundError("There is no itinerary to edit yet")

        key = (ref.day_index, ref.kind, name_key(ref.name))
        if key in self._edits_in_flight:
            raise EditInProgressError(f'"{ref.name}" is already being edited')

        self._edits_in_flight.add(key)
        generation = self._generation
        trip = self.trip
        try:
            modifier = EventModifier(
                self._generator.client_for(trip),
                retry_policy=self._retry_policy,
                settings=self._settings,
            )
            modification = await modifier.modify(self.itinerary, ref, instruction)

            if generation != self._generation or self.itinerary is None:
                raise EventModificationError("The itinerary changed while this edit was running")

            self.itinerary = apply_event_update(
                self.itinerary,
                ref,
                modification.updated_event,
                trip.num_people,
                policy=self._generator.policy,
            )
            self.refresh_locations()
            self.banner = None
            return modification
        except WanderMindError as e:
            self.banner = Banner(level="error", message=str(e))
            raise
        finally:
            self._edits_in_flight.discard(key)

    async def fact_check(self) -> list[Advisory]:
        """Run the advisory fact checker over the current map points."""
        if self._fact_checker is None or not self.locations:
            return []
        center = self.locations[0].coordinates
        findings = await self._fact_checker.review_locations(self.locations, center)
        self.advisories.extend(findings)
        return findings

    async def close(self) -> None:
        """Cancel outstanding work on teardown."""
        self._generation += 1
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
