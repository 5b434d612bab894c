"""Health check endpoint."""

from fastapi import APIRouter

from wandermind.config import get_settings

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, object]:
    """Liveness plus which providers have a server-side key configured.

    Returns:
        200 OK always (application is running)
    """
    settings = get_settings()
    return {
        "status": "ok",
        "providers": {
            "groq": settings.groq_api_key is not None,
            "gemini": settings.gemini_api_key is not None,
        },
    }
