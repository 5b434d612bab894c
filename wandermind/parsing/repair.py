"""Response parsing with tiered repair.

RAW_TEXT -> STRICT_PARSE -> BRACE_EXTRACT -> SYNTHESIZE_FALLBACK -> DONE

Each parse tier must produce an object with an ``itinerary.days`` list;
a tier that fails to decode, or decodes to the wrong shape, hands over to
the next one. The last tier always succeeds, so ``parse_itinerary_response``
never raises.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from wandermind.models.results import ParseTier
from wandermind.models.trip import TripRequest
from wandermind.normalize.defaults import DefaultLocationResolver, NullLocationResolver
from wandermind.utils.metrics import parse_tier_total

logger = logging.getLogger(__name__)


class ResponseParseError(ValueError):
    """Text did not decode to a JSON object."""

    pass


class ResponseShapeError(ValueError):
    """Decoded object lacks an ``itinerary.days`` sequence."""

    pass


@dataclass
class ParsedResponse:
    """Parsed-but-untrusted model output."""

    itinerary: dict[str, Any]
    locations: list[Any] = field(default_factory=list)
    tier: ParseTier = ParseTier.strict


def strict_decode(text: str) -> dict[str, Any]:
    """Decode the whole text as one JSON object."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ResponseParseError(f"strict parse failed: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError(f"expected JSON object, got {type(data).__name__}")
    return data


def extract_json_object(text: str) -> str:
    """Slice from the first ``{`` through the last ``}``.

    Raises:
        ResponseParseError: If the text has no brace pair
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ResponseParseError("no JSON object found in text")
    return text[start : end + 1]


def decode_json_object(text: str) -> tuple[dict[str, Any], ParseTier]:
    """Decode a JSON object, falling back to brace extraction.

    Returns:
        Decoded object and the tier that produced it

    Raises:
        ResponseParseError: If neither tier decodes an object
    """
    try:
        return strict_decode(text), ParseTier.strict
    except ResponseParseError:
        return strict_decode(extract_json_object(text)), ParseTier.brace_extract


def check_shape(data: dict[str, Any]) -> ParsedResponse:
    """Apply the structural contract to a decoded object.

    A bare ``{"days": [...]}`` object is accepted and wrapped.

    Raises:
        ResponseShapeError: If no ``days`` sequence is present
    """
    itinerary = data.get("itinerary")
    if isinstance(itinerary, dict) and isinstance(itinerary.get("days"), list):
        body = itinerary
    elif isinstance(data.get("days"), list):
        body = {k: v for k, v in data.items() if k != "locations"}
    else:
        raise ResponseShapeError("response has no itinerary.days sequence")

    locations = data.get("locations")
    if not isinstance(locations, list):
        locations = body.get("locations") if isinstance(body.get("locations"), list) else []
    return ParsedResponse(itinerary=body, locations=locations)


def synthesize_fallback(
    trip: TripRequest,
    resolver: DefaultLocationResolver | None = None,
) -> ParsedResponse:
    """Minimal one-day itinerary used when the response is unusable."""
    resolver = resolver or NullLocationResolver()
    default = resolver.resolve(trip.destination)
    coordinates = (
        {"lat": default.coordinates.lat, "lng": default.coordinates.lng}
        if default
        else {"lat": 0.0, "lng": 0.0}
    )

    day = {
        "date": trip.start_date.isoformat(),
        "activities": [
            {
                "name": f"Explore {trip.destination}",
                "time": "10:00",
                "description": "Placeholder activity: the generated plan could not be read.",
                "cost": 0,
                "coordinates": dict(coordinates),
            }
        ],
        "meals": [
            {
                "name": f"Local restaurant in {trip.destination}",
                "type": "Lunch",
                "time": "13:00",
                "description": "Placeholder meal: the generated plan could not be read.",
                "cost": 0,
                "coordinates": dict(coordinates),
            }
        ],
    }
    return ParsedResponse(itinerary={"days": [day]}, locations=[], tier=ParseTier.fallback)


def parse_itinerary_response(
    text: str | None,
    trip: TripRequest,
    resolver: DefaultLocationResolver | None = None,
) -> ParsedResponse:
    """Turn raw model output into a parsed-but-untrusted itinerary.

    Args:
        text: Raw response text (may be prose, fenced, truncated or None)
        trip: Trip the response was generated for (fallback date/destination)
        resolver: Default-location resolver for the synthesized fallback

    Returns:
        ParsedResponse; tier records which repair step produced it
    """
    text = text or ""

    for tier in (ParseTier.strict, ParseTier.brace_extract):
        try:
            if tier is ParseTier.strict:
                data = strict_decode(text)
            else:
                data = strict_decode(extract_json_object(text))
            parsed = check_shape(data)
        except (ResponseParseError, ResponseShapeError) as e:
            logger.info(f"Parser tier {tier.value} failed: {e}")
            continue
        parsed.tier = tier
        parse_tier_total.labels(tier=tier.value).inc()
        return parsed

    logger.warning(
        f"Model output unusable, synthesizing fallback itinerary for {trip.destination}",
        extra={"structured": {"stage": "parse", "outcome": "fallback", "chars": len(text)}},
    )
    parse_tier_total.labels(tier=ParseTier.fallback.value).inc()
    return synthesize_fallback(trip, resolver)
