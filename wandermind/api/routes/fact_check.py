"""Advisory fact-check endpoint - POST /fact-check/location."""

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from wandermind.factcheck.checker import FactChecker
from wandermind.models.common import Coordinates
from wandermind.models.fact_check import LocationCheck

router = APIRouter(prefix="/fact-check", tags=["fact-check"])


class LocationCheckRequest(BaseModel):
    name: str = Field(..., min_length=1)
    center: Coordinates


@lru_cache
def get_fact_checker() -> FactChecker:
    """Process-wide checker, so every request shares one rate limit and cache."""
    return FactChecker()


@router.post("/location", response_model=LocationCheck)
async def check_location(
    request: LocationCheckRequest,
    checker: Annotated[FactChecker, Depends(get_fact_checker)],
) -> LocationCheck:
    """Check that a place exists and how far it is from the trip centre.

    Always 200: lookups that fail come back with verified=false.
    """
    return await checker.validate_location(request.name.strip(), request.center)
