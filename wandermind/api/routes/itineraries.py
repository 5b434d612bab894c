"""Itinerary endpoints - POST /itineraries, POST /itineraries/events/modify.

The API is stateless: each request carries the trip (and, for edits, the
current itinerary) and gets back the render-safe result.
"""

import logging
from typing import Annotated, Any, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel, Field

from wandermind.editing.modifier import EventModifier, EventRef, apply_event_update
from wandermind.errors import (
    CredentialError,
    EditInProgressError,
    EventModificationError,
    InputValidationError,
    ProviderError,
    WanderMindError,
)
from wandermind.models.common import EventKind
from wandermind.models.itinerary import Activity, Itinerary, Location, Meal
from wandermind.models.results import GenerationResult
from wandermind.models.trip import TripRequest
from wandermind.normalize.normalizer import derive_locations
from wandermind.pipeline.generation import ItineraryGenerator, parse_trip_request
from wandermind.presentation.map_view import MapView, build_map_view

router = APIRouter(prefix="/itineraries", tags=["itineraries"])
logger = logging.getLogger(__name__)


class ItineraryResponse(GenerationResult):
    """Generation result plus the map view built from it."""

    map: MapView


class ModifyEventRequest(BaseModel):
    trip: TripRequest
    itinerary: Itinerary
    day_index: int = Field(..., ge=0)
    kind: EventKind
    name: str = Field(..., min_length=1)
    instruction: str = Field(..., min_length=1)


class ModifyEventResponse(BaseModel):
    message: str
    attempts: int
    updated_event: Activity | Meal
    itinerary: Itinerary
    locations: list[Location]


def get_generator() -> ItineraryGenerator:
    """Generator dependency (overridden in tests)."""
    return ItineraryGenerator()


def raise_http_error(error: WanderMindError) -> NoReturn:
    """Translate a pipeline error into the matching HTTP error."""
    if isinstance(error, InputValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, CredentialError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(error, ProviderError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, EditInProgressError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, EventModificationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=code, detail=str(error)) from error


@router.post("", response_model=ItineraryResponse)
async def create_itinerary(
    payload: Annotated[dict[str, Any], Body()],
    generator: Annotated[ItineraryGenerator, Depends(get_generator)],
) -> ItineraryResponse:
    """Generate an itinerary for a trip request.

    Returns:
        200 with itinerary, unique locations, advisories and map view
        422 if the trip is invalid, 401 on key problems, 502 on provider failure
    """
    try:
        trip = parse_trip_request(payload)
        result = await generator.generate(trip)
    except WanderMindError as e:
        logger.info(f"Itinerary request failed: {type(e).__name__}")
        raise_http_error(e)

    default = generator.resolver.resolve(trip.destination)
    return ItineraryResponse(
        **result.model_dump(),
        map=build_map_view(result.locations, default_center=default),
    )


@router.post("/events/modify", response_model=ModifyEventResponse)
async def modify_event(
    request: ModifyEventRequest,
    generator: Annotated[ItineraryGenerator, Depends(get_generator)],
) -> ModifyEventResponse:
    """Replace one activity or meal following a natural-language instruction.

    Returns:
        200 with the new event, the merged itinerary and recomputed locations
        422 if the proposal is invalid or still duplicated after retrying
    """
    ref = EventRef(day_index=request.day_index, kind=request.kind, name=request.name)
    try:
        modifier = EventModifier(generator.client_for(request.trip))
        modification = await modifier.modify(request.itinerary, ref, request.instruction)
        itinerary = apply_event_update(
            request.itinerary,
            ref,
            modification.updated_event,
            request.trip.num_people,
            policy=generator.policy,
        )
    except WanderMindError as e:
        logger.info(f"Event modification failed: {type(e).__name__}")
        raise_http_error(e)

    location_set = derive_locations(
        itinerary, destination=request.trip.destination, resolver=generator.resolver
    )
    return ModifyEventResponse(
        message=modification.message,
        attempts=modification.attempts,
        updated_event=modification.updated_event,
        itinerary=itinerary,
        locations=location_set.locations,
    )
