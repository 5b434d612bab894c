"""Prompt contracts sent to the language model.

The itinerary prompt declares the exact JSON shape the parser and
normalizer expect; the edit prompts carry the uniqueness constraint for
single-event replacement.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from wandermind.models.common import EventKind, FamousPreference
from wandermind.models.itinerary import Activity, Meal
from wandermind.models.trip import TripRequest

# Sample response used both as the declared schema and as a prompt example
ITINERARY_RESPONSE_TEMPLATE: dict[str, Any] = {
    "itinerary": {
        "days": [
            {
                "date": "yyyy-MM-dd",
                "activities": [
                    {
                        "name": "Sample Activity",
                        "time": "09:00",
                        "description": "Activity description",
                        "cost": 50,
                        "coordinates": {"lat": 0, "lng": 0},
                        "transport": {"method": "taxi", "duration": "20 min", "cost": 10},
                    }
                ],
                "meals": [
                    {
                        "type": "Breakfast",
                        "time": "08:00",
                        "name": "Sample Restaurant",
                        "description": "Restaurant description",
                        "cost": 20,
                        "coordinates": {"lat": 0, "lng": 0},
                    }
                ],
                "dailyTotal": 80,
            }
        ]
    },
    "locations": [
        {"name": "Sample Activity", "coordinates": {"lat": 0, "lng": 0}, "description": "..."}
    ],
}

FAMOUS_PREFERENCE_TEXT: dict[FamousPreference, str] = {
    FamousPreference.city_highlights: "focus on the top highlights inside the city",
    FamousPreference.nearby_day_trips: "include nearby day trips and must-see places around the city",
    FamousPreference.both: "mix city highlights with nearby gems",
    FamousPreference.hidden_gems: "prefer hidden gems over crowded tourist spots",
}

Message = dict[str, str]


@dataclass(frozen=True)
class PromptContract:
    """System + user instruction pair."""

    system: str
    user: str

    def to_messages(self) -> list[Message]:
        """Chat-style message list."""
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def build_itinerary_prompt(trip: TripRequest) -> PromptContract:
    """Build the generation prompt for a trip.

    Args:
        trip: Validated trip request

    Returns:
        PromptContract with task framing, output schema and trip parameters
    """
    dates = [d.isoformat() for d in trip.trip_dates]
    currency = trip.currency.value

    system = f"""You are a travel planning assistant for WanderMind. Generate a detailed itinerary
in the following JSON format:

{json.dumps(ITINERARY_RESPONSE_TEMPLATE, indent=2)}

Requirements:
1. Output a single, valid JSON object and nothing else.
2. Include 2-3 activities and 3 meals (Breakfast, Lunch, Dinner) per day.
3. Ensure costs are realistic for the destination and expressed in {currency}.
4. Provide exact coordinates for every activity and meal as {{"lat": ..., "lng": ...}}.
5. Schedule activities between 08:00 and 22:00.
6. Include transport details (method, duration, cost) for each activity.
7. Stay within the provided budget per person.
8. Avoid duplicate activities or restaurants.
9. Generate one day entry for each provided date, and no others."""

    interests = ", ".join(trip.interests) if trip.interests else "general sightseeing"
    lines = [
        f"Create a {trip.num_days}-day itinerary for {trip.destination}:",
        f"- Budget per person: {trip.budget_per_person:.2f} {currency}",
        f"- Dates: {', '.join(dates)}",
        f"- Number of people: {trip.num_people}",
        f"- Interests: {interests}",
        f"- Famous places preference: {FAMOUS_PREFERENCE_TEXT[trip.famous_preference]}",
    ]
    if trip.extra_wishes.strip():
        lines.append(f"- Extra wishes: {trip.extra_wishes.strip()}")

    return PromptContract(system=system, user="\n".join(lines))


def event_details(event: Activity | Meal) -> dict[str, Any]:
    """Fields of an event as shown to the model."""
    return event.model_dump(mode="json", exclude_none=True)


def build_edit_prompt(
    event: Activity | Meal,
    instruction: str,
    excluded_names: Iterable[str],
) -> PromptContract:
    """Build the prompt asking for a replacement event.

    Args:
        event: Event being edited
        instruction: User's natural-language change request
        excluded_names: Lower-cased names the replacement must not reuse

    Returns:
        PromptContract for the first attempt
    """
    kind = event.kind.value
    excluded = ", ".join(sorted(excluded_names)) or "(none)"
    if event.kind is EventKind.activity:
        shape = (
            "name, time, description, cost, coordinates {lat, lng} and "
            "transport {method, duration, cost}"
        )
    else:
        shape = "name, time, description, cost and type (Breakfast/Lunch/Dinner)"

    system = f"""You are a travel planning assistant. Your task is to modify a {kind} based on the
user's request.
Important constraints:
1. NEVER suggest any of these existing places: {excluded}
2. Keep all locations within 50km of the city center
3. Activities must be between 8:00-22:00
4. Use realistic local prices
5. The {kind} must include {shape}
6. Suggest unique places that aren't already in the itinerary
7. Ensure suggestions are location-appropriate and culturally relevant

The response must be a valid JSON object with the same structure as the current details."""

    user = f"""Current {kind} details:
{json.dumps(event_details(event), indent=2)}

User request: {instruction}

Respond with a JSON object containing the modified {kind} details. Maintain the exact structure
of the current details while incorporating the requested changes."""

    return PromptContract(system=system, user=user)


def build_edit_retry_prompt(
    first: PromptContract,
    duplicate_name: str,
    excluded_names: Iterable[str],
) -> PromptContract:
    """Strengthen an edit prompt after the model suggested a duplicate."""
    excluded = ", ".join(sorted(excluded_names))
    user = (
        f"{first.user}\n\nIMPORTANT: The suggested place \"{duplicate_name}\" is already in the "
        f"itinerary. Please suggest a completely different place that's not in this list: "
        f"{excluded}"
    )
    return PromptContract(system=first.system, user=user)
