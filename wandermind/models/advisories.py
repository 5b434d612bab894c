"""Advisory models - non-blocking data-quality signals."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

# JSON-serializable value types for advisory details
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class AdvisoryKind(str, Enum):
    """Categories of advisories."""

    COORDINATES = "coordinates"
    STRUCTURE = "structure"
    MAP = "map"
    FACT_CHECK = "fact_check"


class Advisory(BaseModel):
    """Something the user should know about, never a reason to fail.

    Advisories describe data the pipeline discarded or replaced while
    producing a render-safe itinerary.
    """

    kind: AdvisoryKind
    code: str  # Machine-usable short code, e.g., "INVALID_COORDINATES"
    message: str  # Human-readable description (1-2 sentences)
    severity: Literal["advisory"] = "advisory"
    details: dict[str, JsonValue] = Field(default_factory=dict)
