"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import redis.asyncio as redis

from config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Reports which upstream keys are configured and whether Redis answers.
    """
    health_status = {
        "ok": True,
        "status": "healthy",
        "booksKeySeen": bool(settings.BOOKS_API_KEY),
        "ytKeySeen": bool(settings.YOUTUBE_API_KEY),
        "nlbKeySeen": bool(settings.NLB_API_KEY),
        "redis": "disabled",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    # Redis is optional: caches and quotas fall back to in-process state.
    if settings.REDIS_URL:
        try:
            r = redis.from_url(settings.REDIS_URL)
            try:
                await r.ping()
            finally:
                await r.aclose()
            health_status["redis"] = "up"
        except Exception as e:
            health_status["redis"] = f"down: {str(e)}"
            health_status["status"] = "degraded"

    return health_status


@router.get("/health/ready")
async def readiness_check():
    """Kubernetes-style readiness probe."""
    missing = [
        name
        for name, value in (("BOOKS_API_KEY", settings.BOOKS_API_KEY), ("YOUTUBE_API_KEY", settings.YOUTUBE_API_KEY))
        if not value
    ]
    if len(missing) == 2:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": missing},
        )
    return {"ready": True, "missing": missing}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}
