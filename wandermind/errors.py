"""Exception hierarchy for the planning pipeline.

Input, credential and provider errors are fatal to the current submission.
Parse and data-quality problems never surface as exceptions: the parser
falls back and the normalizer records advisories instead.
"""


class WanderMindError(Exception):
    """Base class for all pipeline errors."""

    pass


# Input validation
class InputValidationError(WanderMindError):
    """Trip request rejected before any network call."""

    pass


class InvalidDateRangeError(InputValidationError):
    """Start date is after end date."""

    pass


class TripTooLongError(InputValidationError):
    """Trip spans more days than supported."""

    pass


class BudgetTooLowError(InputValidationError):
    """Per-person-per-day budget is below the configured minimum."""

    pass


# Provider
class CredentialError(WanderMindError):
    """Missing or rejected provider API key."""

    pass


class ProviderError(WanderMindError):
    """Provider call failed (non-2xx response or network failure)."""

    def __init__(self, message: str = "request failed", status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# Event modification
class EventModificationError(WanderMindError):
    """Replacement event cannot be merged into the itinerary."""

    pass


class EventStructureError(EventModificationError):
    """Model returned an event missing required fields."""

    pass


class DuplicateEventError(EventModificationError):
    """Model kept suggesting a place already in the itinerary."""

    def __init__(self, name: str, attempts: int | None = None):
        message = f'"{name}" is already in your itinerary'
        if attempts is not None:
            message += f" and no unique alternative was found after {attempts} attempt(s)"
        super().__init__(message)
        self.name = name
        self.attempts = attempts


class EventNotFoundError(EventModificationError):
    """Referenced event does not exist in the itinerary."""

    pass


class EditInProgressError(EventModificationError):
    """Another edit of the same event is still running."""

    pass
