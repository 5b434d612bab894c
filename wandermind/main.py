"""FastAPI application."""

from fastapi import FastAPI

from wandermind.api.routes.fact_check import router as fact_check_router
from wandermind.api.routes.health import router as health_router
from wandermind.api.routes.itineraries import router as itineraries_router
from wandermind.api.routes.metrics import router as metrics_router

app = FastAPI(title="WanderMind API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(itineraries_router)
app.include_router(fact_check_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "WanderMind API", "version": "0.1.0"}
