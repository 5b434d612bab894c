"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes the pipeline metrics, including:
    - llm_latency_ms{provider, outcome}
    - itinerary_parse_tier_total{tier}
    - itinerary_pruned_entities_total{kind, reason}
    - fact_check_total{check, outcome}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
