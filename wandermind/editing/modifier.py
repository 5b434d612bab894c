"""Single-event modification with uniqueness enforcement.

The model proposes a replacement for one activity or meal. A proposal is
accepted only if it carries every required field and its name does not
collide (case-insensitively) with any other event in the itinerary.
Duplicate proposals are retried with a stronger prompt, up to the retry
policy's bound; malformed proposals fail immediately.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from wandermind.config import Settings, get_settings
from wandermind.errors import DuplicateEventError, EventNotFoundError, EventStructureError
from wandermind.geo.coordinates import CoordinateError, try_coordinates, validate_coordinates
from wandermind.llm.client import LLMClient
from wandermind.llm.prompts import build_edit_prompt, build_edit_retry_prompt
from wandermind.models.common import EventKind, MealType
from wandermind.models.itinerary import Activity, Itinerary, Meal, Transport
from wandermind.models.results import EventModification
from wandermind.normalize.normalizer import NormalizerPolicy, name_key, read_cost, reconcile_costs
from wandermind.parsing.repair import ResponseParseError, decode_json_object
from wandermind.utils.logging import StructuredPipelineLogger
from wandermind.utils.metrics import event_edit_attempts_total

logger = logging.getLogger(__name__)

ACTIVITY_REQUIRED_FIELDS = ("name", "time", "description", "cost", "coordinates", "transport")
MEAL_REQUIRED_FIELDS = ("name", "time", "description", "cost", "type")


@dataclass(frozen=True)
class RetryPolicy:
    """Bound on extra attempts after a duplicate suggestion."""

    max_retries: int = 1


@dataclass(frozen=True)
class EventRef:
    """Position of the event under edit: day, type and original name."""

    day_index: int
    kind: EventKind
    name: str


def _events(itinerary: Itinerary, day_index: int, kind: EventKind) -> list[Activity] | list[Meal]:
    day = itinerary.days[day_index]
    return day.activities if kind is EventKind.activity else day.meals


def find_event(itinerary: Itinerary, ref: EventRef) -> tuple[int, Activity | Meal]:
    """Locate the first event in the referenced day/type with the given name.

    Raises:
        EventNotFoundError: If the day or the event does not exist
    """
    if not 0 <= ref.day_index < len(itinerary.days):
        raise EventNotFoundError(f"Day {ref.day_index + 1} is not in the itinerary")
    key = name_key(ref.name)
    for index, event in enumerate(_events(itinerary, ref.day_index, ref.kind)):
        if name_key(event.name) == key:
            return index, event
    raise EventNotFoundError(f'No {ref.kind.value} named "{ref.name}" on day {ref.day_index + 1}')


def existing_names(itinerary: Itinerary, ref: EventRef) -> set[str]:
    """Lower-cased names of every event except the one under edit."""
    edited_index, _ = find_event(itinerary, ref)
    names: set[str] = set()
    for day_index, day in enumerate(itinerary.days):
        for kind, events in ((EventKind.activity, day.activities), (EventKind.meal, day.meals)):
            for index, event in enumerate(events):
                if day_index == ref.day_index and kind is ref.kind and index == edited_index:
                    continue
                names.add(name_key(event.name))
    return names


def _unwrap(data: Mapping[str, object]) -> Mapping[str, object]:
    # Models sometimes answer {"activity": {...}} instead of the bare record
    if "name" not in data and len(data) == 1:
        (inner,) = data.values()
        if isinstance(inner, Mapping):
            return inner
    return data


def _required_text(data: Mapping[str, object], field: str) -> str:
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        raise EventStructureError(f"Invalid event structure returned: missing {field}")
    return str(value).strip()


def _required_number(value: object, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise EventStructureError(f"Invalid event structure returned: {field} must be numeric")
    return read_cost(value)


def validate_event_structure(data: object, kind: EventKind) -> Activity | Meal:
    """Validate a proposed event against its type's required-field set.

    Args:
        data: Decoded JSON proposal
        kind: Activity or meal

    Returns:
        Typed event

    Raises:
        EventStructureError: If any required field is missing or malformed
    """
    if not isinstance(data, Mapping):
        raise EventStructureError("Invalid event structure returned: expected an object")
    data = _unwrap(data)

    required = ACTIVITY_REQUIRED_FIELDS if kind is EventKind.activity else MEAL_REQUIRED_FIELDS
    missing = [f for f in required if data.get(f) is None]
    if missing:
        raise EventStructureError(
            f"Invalid event structure returned: missing {', '.join(missing)}"
        )

    name = _required_text(data, "name")
    if not name:
        raise EventStructureError("Invalid event structure returned: empty name")
    time = _required_text(data, "time")
    description = _required_text(data, "description")
    cost = read_cost(data.get("cost"))

    if kind is EventKind.activity:
        try:
            coordinates = validate_coordinates(data.get("coordinates"))
        except CoordinateError as e:
            raise EventStructureError(f"Invalid event structure returned: {e}") from e

        transport = data.get("transport")
        if not isinstance(transport, Mapping) or not transport.get("method") or not transport.get(
            "duration"
        ):
            raise EventStructureError("Invalid event structure returned: incomplete transport")
        return Activity(
            name=name,
            time=time,
            description=description,
            cost=cost,
            coordinates=coordinates,
            transport=Transport(
                method=str(transport["method"]).strip(),
                duration=str(transport["duration"]).strip(),
                cost=_required_number(transport.get("cost"), "transport.cost"),
            ),
        )

    meal_type = MealType.parse(data.get("type"))
    if meal_type is None:
        raise EventStructureError(
            f"Invalid event structure returned: unknown meal type {data.get('type')!r}"
        )
    raw_coordinates = data.get("coordinates")
    meal_coordinates = try_coordinates(raw_coordinates) if raw_coordinates is not None else None
    if raw_coordinates is not None and meal_coordinates is None:
        raise EventStructureError("Invalid event structure returned: invalid coordinates")
    return Meal(
        name=name,
        type=meal_type,
        time=time,
        description=description,
        cost=cost,
        coordinates=meal_coordinates,
    )


class EventModifier:
    """Asks the model for a replacement event and validates it."""

    def __init__(
        self,
        client: LLMClient,
        retry_policy: RetryPolicy | None = None,
        settings: Settings | None = None,
        pipeline_logger: StructuredPipelineLogger | None = None,
    ) -> None:
        """Initialize modifier.

        Args:
            client: Language-model client
            retry_policy: Duplicate retry bound (defaults to settings.edit_max_retries)
            settings: Settings override
            pipeline_logger: Structured logger (optional)
        """
        self._client = client
        self._settings = settings or get_settings()
        self._retry_policy = retry_policy or RetryPolicy(
            max_retries=self._settings.edit_max_retries
        )
        self._log = pipeline_logger or StructuredPipelineLogger()

    async def modify(
        self, itinerary: Itinerary, ref: EventRef, instruction: str
    ) -> EventModification:
        """Produce a validated, unique replacement for one event.

        Args:
            itinerary: Current itinerary
            ref: Event under edit
            instruction: Natural-language change request

        Returns:
            EventModification with the replacement event

        Raises:
            EventNotFoundError: ref does not point at an event
            EventStructureError: A proposal was malformed
            DuplicateEventError: Still a duplicate after the last retry
            CredentialError / ProviderError: From the language-model client
        """
        _, current = find_event(itinerary, ref)
        excluded = existing_names(itinerary, ref)

        first_prompt = build_edit_prompt(current, instruction, excluded)
        prompt = first_prompt
        temperature = self._settings.edit_temperature
        attempts = 0

        while True:
            attempts += 1
            text = await self._client.complete(
                prompt.to_messages(),
                temperature=temperature,
                max_tokens=self._settings.edit_max_tokens,
            )

            try:
                data, _ = decode_json_object(text)
            except ResponseParseError as e:
                event_edit_attempts_total.labels(outcome="parse_error").inc()
                self._log.log_stage("edit", "parse_error", attempt=attempts, kind=ref.kind.value)
                raise EventStructureError(
                    "Failed to parse the AI response. Please try again."
                ) from e

            try:
                candidate = validate_event_structure(data, ref.kind)
            except EventStructureError:
                event_edit_attempts_total.labels(outcome="invalid_structure").inc()
                self._log.log_stage(
                    "edit", "invalid_structure", attempt=attempts, kind=ref.kind.value
                )
                raise

            if name_key(candidate.name) not in excluded:
                event_edit_attempts_total.labels(outcome="success").inc()
                self._log.log_stage("edit", "success", attempt=attempts, kind=ref.kind.value)
                message = (
                    "I've updated the event based on your request while ensuring it's unique "
                    "in your itinerary."
                    if attempts == 1
                    else "I've found a unique alternative that meets your requirements."
                )
                return EventModification(
                    message=message, updated_event=candidate, attempts=attempts
                )

            event_edit_attempts_total.labels(outcome="duplicate").inc()
            self._log.log_stage(
                "edit", "duplicate", attempt=attempts, kind=ref.kind.value, name=candidate.name
            )
            if attempts > self._retry_policy.max_retries:
                raise DuplicateEventError(candidate.name, attempts)

            prompt = build_edit_retry_prompt(first_prompt, candidate.name, excluded)
            temperature = self._settings.edit_retry_temperature


def apply_event_update(
    itinerary: Itinerary,
    ref: EventRef,
    event: Activity | Meal,
    num_people: int,
    policy: NormalizerPolicy | None = None,
) -> Itinerary:
    """Replace exactly one event and reconcile costs.

    Uniqueness is checked against the itinerary being merged into, not the
    one the proposal was generated from, since other edits may have landed
    in between. The caller must re-derive the location list from the
    returned itinerary.

    Raises:
        EventNotFoundError: If ref no longer points at an event
        EventStructureError: If the event type does not match ref.kind, or it
            has no usable coordinates and the policy drops unlocated events
        DuplicateEventError: If another event already has the same name
    """
    policy = policy or NormalizerPolicy()
    if event.kind is not ref.kind:
        raise EventStructureError(f"Expected a {ref.kind.value}, got a {event.kind.value}")
    index, _ = find_event(itinerary, ref)
    if name_key(event.name) in existing_names(itinerary, ref):
        raise DuplicateEventError(event.name)

    # Coordinates are revalidated at every merge
    coordinates = try_coordinates(event.coordinates) if event.coordinates else None
    if coordinates is None and not policy.keep_unlocated:
        raise EventStructureError(
            f'"{event.name}" has no valid coordinates and cannot be shown on the map'
        )
    event = event.model_copy(update={"coordinates": coordinates})

    days = list(itinerary.days)
    day = days[ref.day_index]
    if ref.kind is EventKind.activity:
        activities = list(day.activities)
        activities[index] = event  # type: ignore[call-overload]
        days[ref.day_index] = day.model_copy(update={"activities": activities})
    else:
        meals = list(day.meals)
        meals[index] = event  # type: ignore[call-overload]
        days[ref.day_index] = day.model_copy(update={"meals": meals})

    logger.info(f"Replaced {ref.kind.value} {ref.name!r} on day {ref.day_index + 1}")
    return reconcile_costs(itinerary.model_copy(update={"days": days}), num_people)
