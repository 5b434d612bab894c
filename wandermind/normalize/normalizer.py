"""Itinerary normalizer - untrusted model output to render-safe itinerary.

Per day, in original order:
1. decode every activity and meal into typed records, pruning entities
   without a name or without valid coordinates
2. recompute the daily total from surviving costs
3. flag days left without an activity or a meal as degraded

Location derivation runs afterwards over the whole itinerary. Nothing in
this module raises for data-quality reasons; discarded data is reported
as advisories.
"""

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from wandermind.geo.coordinates import try_coordinates
from wandermind.models.advisories import Advisory, AdvisoryKind
from wandermind.models.common import EventKind, MealType
from wandermind.models.itinerary import (
    Activity,
    CostBreakdown,
    Day,
    Itinerary,
    Location,
    Meal,
    Transport,
)
from wandermind.models.trip import TripRequest
from wandermind.normalize.defaults import DefaultLocationResolver, NullLocationResolver
from wandermind.utils.metrics import pruned_entities_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizerPolicy:
    """Knobs for how strict the normalizer is."""

    # Unlocated entities cannot be mapped; keeping them is opt-in
    keep_unlocated: bool = False


@dataclass
class NormalizedItinerary:
    """Render-safe itinerary plus what was discarded on the way."""

    itinerary: Itinerary
    advisories: list[Advisory] = field(default_factory=list)


@dataclass
class LocationSet:
    """Unique map points derived from an itinerary."""

    locations: list[Location]
    advisories: list[Advisory] = field(default_factory=list)
    used_default: bool = False


@dataclass(frozen=True)
class _Pruned:
    day: date
    kind: EventKind
    name: str | None
    reason: str


def name_key(name: str) -> str:
    """Identity key for names: trimmed and case-insensitive."""
    return name.strip().lower()


def read_cost(value: object) -> float:
    """Read an advisory cost field; anything unusable counts as 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _read_text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return ""


def _read_date(value: object) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def decode_transport(raw: object) -> Transport | None:
    """Transport sub-record, or None when it is malformed."""
    if not isinstance(raw, Mapping):
        return None
    method = _read_text(raw.get("method"))
    if not method:
        return None
    return Transport(
        method=method,
        duration=_read_text(raw.get("duration")),
        cost=read_cost(raw.get("cost")),
    )


def decode_event(
    raw: object,
    kind: EventKind,
    policy: NormalizerPolicy = NormalizerPolicy(),
) -> tuple[Activity | Meal | None, str | None]:
    """Decode one untrusted activity or meal.

    Args:
        raw: Model-supplied record
        kind: Which record type to build
        policy: Normalizer policy

    Returns:
        (event, None) on success, (None, reason) when the entity is pruned
    """
    if not isinstance(raw, Mapping):
        return None, "not_an_object"

    name = _read_text(raw.get("name"))
    if not name:
        return None, "missing_name"

    raw_coordinates = raw.get("coordinates")
    coordinates = try_coordinates(raw_coordinates) if raw_coordinates is not None else None
    if coordinates is None:
        if raw_coordinates is not None:
            return None, "invalid_coordinates"
        if not policy.keep_unlocated:
            return None, "missing_coordinates"

    cost = read_cost(raw["cost"] if "cost" in raw else raw.get("price"))
    description = _read_text(raw.get("description"))
    time = _read_text(raw.get("time"))

    if kind is EventKind.activity:
        return (
            Activity(
                name=name,
                description=description,
                time=time,
                cost=cost,
                coordinates=coordinates,
                transport=decode_transport(raw.get("transport")),
            ),
            None,
        )
    return (
        Meal(
            name=name,
            type=MealType.parse(raw.get("type")),
            description=description,
            time=time,
            cost=cost,
            coordinates=coordinates,
        ),
        None,
    )


def day_total(day: Day) -> float:
    """Activity costs + meal costs + activity transport costs."""
    activities = sum(a.cost for a in day.activities)
    meals = sum(m.cost for m in day.meals)
    transport = sum(a.transport.cost for a in day.activities if a.transport)
    return round(activities + meals + transport, 2)


def reconcile_costs(itinerary: Itinerary, num_people: int) -> Itinerary:
    """Recompute daily totals, degraded flags and trip totals.

    Args:
        itinerary: Itinerary with typed days
        num_people: Party size for the group total

    Returns:
        New Itinerary; the input is not modified
    """
    breakdown = CostBreakdown()
    days: list[Day] = []
    for day in itinerary.days:
        breakdown.activities += sum(a.cost for a in day.activities)
        breakdown.food += sum(m.cost for m in day.meals)
        breakdown.transportation += sum(a.transport.cost for a in day.activities if a.transport)
        days.append(
            day.model_copy(
                update={
                    "daily_total": day_total(day),
                    "degraded": not day.activities or not day.meals,
                }
            )
        )

    per_person = round(sum(d.daily_total for d in days), 2)
    return Itinerary(
        days=days,
        cost_breakdown=CostBreakdown(
            activities=round(breakdown.activities, 2),
            food=round(breakdown.food, 2),
            transportation=round(breakdown.transportation, 2),
        ),
        per_person_total=per_person,
        group_total=round(per_person * max(num_people, 1), 2),
    )


def _decode_events(
    raw_events: object,
    kind: EventKind,
    day_date: date,
    policy: NormalizerPolicy,
    pruned: list[_Pruned],
) -> list[Any]:
    if not isinstance(raw_events, list):
        return []
    events = []
    for raw in raw_events:
        event, reason = decode_event(raw, kind, policy)
        if event is None:
            name = raw.get("name") if isinstance(raw, Mapping) else None
            pruned.append(
                _Pruned(
                    day=day_date,
                    kind=kind,
                    name=name if isinstance(name, str) else None,
                    reason=reason or "unknown",
                )
            )
            pruned_entities_total.labels(kind=kind.value, reason=reason or "unknown").inc()
            continue
        events.append(event)
    return events


def _pruned_advisories(pruned: list[_Pruned]) -> list[Advisory]:
    advisories: list[Advisory] = []

    located = [p for p in pruned if p.reason in ("invalid_coordinates", "missing_coordinates")]
    if located:
        advisories.append(
            Advisory(
                kind=AdvisoryKind.COORDINATES,
                code="INVALID_COORDINATES",
                message="Some places were removed because they had no valid map coordinates.",
                details={
                    "count": len(located),
                    "names": [p.name for p in located if p.name],
                    "reasons": dict(Counter(p.reason for p in located)),
                },
            )
        )

    malformed = [p for p in pruned if p.reason in ("missing_name", "not_an_object")]
    if malformed:
        advisories.append(
            Advisory(
                kind=AdvisoryKind.STRUCTURE,
                code="MISSING_NAME",
                message="Some entries were removed because they were malformed or unnamed.",
                details={"count": len(malformed), "dates": [p.day.isoformat() for p in malformed]},
            )
        )
    return advisories


def normalize_itinerary(
    raw: Mapping[str, Any],
    trip: TripRequest,
    policy: NormalizerPolicy | None = None,
) -> NormalizedItinerary:
    """Convert a parsed-but-untrusted itinerary into a render-safe one.

    Args:
        raw: Object with a ``days`` sequence (parser output)
        trip: Trip the itinerary belongs to (date range, party size)
        policy: Normalizer policy (default: prune unlocated entities)

    Returns:
        NormalizedItinerary with typed days and advisories
    """
    policy = policy or NormalizerPolicy()
    allowed = trip.trip_dates
    allowed_set = set(allowed)
    used: set[date] = set()
    pruned: list[_Pruned] = []
    advisories: list[Advisory] = []
    days: list[Day] = []

    raw_days = raw.get("days")
    if not isinstance(raw_days, Sequence) or isinstance(raw_days, str):
        raw_days = []

    for index, raw_day in enumerate(raw_days):
        if not isinstance(raw_day, Mapping):
            advisories.append(
                Advisory(
                    kind=AdvisoryKind.STRUCTURE,
                    code="MALFORMED_DAY",
                    message=(
                        f"Day {index + 1} of the generated plan was unreadable and was skipped."
                    ),
                    details={"index": index},
                )
            )
            continue

        day_date = _read_date(raw_day.get("date"))
        if day_date is None and index < len(allowed) and allowed[index] not in used:
            day_date = allowed[index]

        if day_date is None or day_date not in allowed_set:
            advisories.append(
                Advisory(
                    kind=AdvisoryKind.STRUCTURE,
                    code="DAY_OUT_OF_RANGE",
                    message="A generated day fell outside your travel dates and was removed.",
                    details={"index": index, "date": str(raw_day.get("date"))},
                )
            )
            continue
        if day_date in used:
            advisories.append(
                Advisory(
                    kind=AdvisoryKind.STRUCTURE,
                    code="DUPLICATE_DAY",
                    message=(
                        f"The plan listed {day_date.isoformat()} twice; the first one was kept."
                    ),
                    details={"index": index, "date": day_date.isoformat()},
                )
            )
            continue
        used.add(day_date)

        activities = _decode_events(
            raw_day.get("activities"), EventKind.activity, day_date, policy, pruned
        )
        meals = _decode_events(raw_day.get("meals"), EventKind.meal, day_date, policy, pruned)
        days.append(Day(date=day_date, activities=activities, meals=meals))

    itinerary = reconcile_costs(Itinerary(days=days), trip.num_people)

    advisories.extend(_pruned_advisories(pruned))
    for day in itinerary.days:
        if day.degraded:
            advisories.append(
                Advisory(
                    kind=AdvisoryKind.STRUCTURE,
                    code="DEGRADED_DAY",
                    message=(
                        f"{day.date.isoformat()} is missing activities or meals and will not "
                        "be shown."
                    ),
                    details={
                        "date": day.date.isoformat(),
                        "activities": len(day.activities),
                        "meals": len(day.meals),
                    },
                )
            )

    logger.info(
        f"Normalized itinerary: {len(itinerary.days)} day(s), {len(pruned)} pruned",
        extra={
            "structured": {
                "stage": "normalize",
                "days": len(itinerary.days),
                "pruned": len(pruned),
                "degraded": sum(1 for d in itinerary.days if d.degraded),
            }
        },
    )
    return NormalizedItinerary(itinerary=itinerary, advisories=advisories)


def dedupe_locations(candidates: Iterable[Location]) -> list[Location]:
    """Unique by case-insensitive name; first occurrence wins."""
    seen: set[str] = set()
    unique: list[Location] = []
    for location in candidates:
        key = name_key(location.name)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(location)
    return unique


def itinerary_locations(itinerary: Itinerary) -> list[Location]:
    """Flatten located activities then meals, day by day."""
    candidates: list[Location] = []
    for day in itinerary.days:
        for activity in day.activities:
            coordinates = try_coordinates(activity.coordinates)
            if coordinates is not None:
                candidates.append(
                    Location(
                        name=activity.name,
                        coordinates=coordinates,
                        description=activity.description,
                    )
                )
        for meal in day.meals:
            coordinates = try_coordinates(meal.coordinates)
            if coordinates is not None:
                label = meal.type.value if meal.type else "Meal"
                candidates.append(
                    Location(
                        name=meal.name,
                        coordinates=coordinates,
                        description=f"{label} - {meal.description}",
                    )
                )
    return candidates


def decode_locations(provided: Iterable[object]) -> list[Location]:
    """Validate model-supplied locations, dropping unusable entries."""
    decoded: list[Location] = []
    for raw in provided:
        if not isinstance(raw, Mapping):
            continue
        name = _read_text(raw.get("name"))
        coordinates = try_coordinates(raw.get("coordinates"))
        if not name or coordinates is None:
            continue
        decoded.append(
            Location(
                name=name,
                coordinates=coordinates,
                description=_read_text(raw.get("description")) or name,
            )
        )
    return decoded


def derive_locations(
    itinerary: Itinerary,
    provided: Sequence[object] | None = None,
    *,
    destination: str = "",
    resolver: DefaultLocationResolver | None = None,
) -> LocationSet:
    """Derive the unique map point list.

    Args:
        itinerary: Normalized itinerary
        provided: Model-supplied ``locations`` array; used when non-empty
        destination: Trip destination for the default-location fallback
        resolver: Default-location resolver (default: none)

    Returns:
        LocationSet; ``NO_MAP_POINTS`` advisory when nothing is mappable
    """
    resolver = resolver or NullLocationResolver()

    if provided:
        locations = dedupe_locations(decode_locations(provided))
    else:
        locations = dedupe_locations(itinerary_locations(itinerary))

    if locations:
        return LocationSet(locations=locations)

    default = resolver.resolve(destination) if destination else None
    if default is not None:
        logger.info(f"No map points derived, using default location for {destination}")
        return LocationSet(
            locations=[default],
            advisories=[
                Advisory(
                    kind=AdvisoryKind.MAP,
                    code="DEFAULT_LOCATION_USED",
                    message=f"No places could be mapped; showing the centre of {destination}.",
                    details={"destination": destination, "name": default.name},
                )
            ],
            used_default=True,
        )

    logger.warning(f"No valid map points for {destination or 'itinerary'}")
    return LocationSet(
        locations=[],
        advisories=[
            Advisory(
                kind=AdvisoryKind.MAP,
                code="NO_MAP_POINTS",
                message="No valid coordinates found for map points.",
                details={"destination": destination},
            )
        ],
    )
