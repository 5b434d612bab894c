"""Helpers that shape an itinerary for the itinerary view."""

from typing import Any

from wandermind.models.common import Currency
from wandermind.models.itinerary import Activity, Itinerary, Meal
from wandermind.models.trip import TripRequest

CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
    Currency.INR: "₹",
    Currency.JPY: "¥",
    Currency.AUD: "A$",
    Currency.CAD: "C$",
    Currency.CHF: "CHF",
    Currency.CNY: "¥",
    Currency.SEK: "kr",
    Currency.NZD: "NZ$",
    Currency.MXN: "Mex$",
    Currency.SGD: "S$",
    Currency.HKD: "HK$",
    Currency.NOK: "kr",
    Currency.KRW: "₩",
    Currency.TRY: "₺",
    Currency.BRL: "R$",
    Currency.ZAR: "R",
    Currency.AED: "د.إ",
}

DEFAULT_ACTIVITY_TIME = "09:00 AM"
DEFAULT_MEAL_TIME = "12:00 PM"


def currency_symbol(currency: Currency) -> str:
    return CURRENCY_SYMBOLS.get(currency, "$")


def format_money(amount: float, currency: Currency) -> str:
    """Amount with its currency symbol, without trailing zero cents."""
    text = f"{amount:,.2f}".removesuffix(".00")
    return f"{currency_symbol(currency)}{text}"


def _schedule_item(event: Activity | Meal, currency: Currency) -> dict[str, Any]:
    if isinstance(event, Meal):
        title = f"{event.name} ({event.type.value})" if event.type else event.name
        time = event.time or DEFAULT_MEAL_TIME
    else:
        title = event.name
        time = event.time or DEFAULT_ACTIVITY_TIME
    return {
        "kind": event.kind.value,
        "name": event.name,
        "title": title,
        "time": time,
        "description": event.description,
        "price": format_money(event.cost, currency) if event.cost else None,
    }


def build_itinerary_view(itinerary: Itinerary, trip: TripRequest) -> dict[str, Any]:
    """Header, per-day schedule and totals for rendering.

    Only renderable days are included; day numbers follow the rendered order.
    """
    currency = trip.currency
    days = []
    for number, day in enumerate(itinerary.renderable_days, start=1):
        items = [_schedule_item(a, currency) for a in day.activities]
        items += [_schedule_item(m, currency) for m in day.meals]
        days.append(
            {
                "title": f"Day {number}: {day.date.isoformat()}",
                "date": day.date.isoformat(),
                "items": items,
                "total": format_money(day.daily_total, currency),
            }
        )

    return {
        "title": f"{trip.destination} Trip Itinerary",
        "dates": f"{trip.start_date.isoformat()} - {trip.end_date.isoformat()}",
        "budget": (
            f"Budget: {format_money(trip.budget, currency)} for {trip.num_people} "
            f"{'person' if trip.num_people == 1 else 'people'}"
        ),
        "days": days,
        "per_person_total": format_money(itinerary.per_person_total, currency),
        "group_total": format_money(itinerary.group_total, currency),
    }
