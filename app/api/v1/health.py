# 📄 File: app/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# Health check endpoints that tell us the diagnosis service is up, like a quick checkup for the
# system and the shared Redis store it depends on.
# 🧪 Purpose (Technical Summary):
# Liveness endpoint and a detailed health check reporting the shared state backend and the
# registered external API clients.
# 🔗 Dependencies:
# FastAPI, app.shared.config (settings, Redis), app.shared.infrastructure.external_apis
# 🔄 Connected Modules / Calls From:
# app.main (router registration), load balancers, monitoring systems

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.shared.config.redis import get_redis_client
from app.shared.config.settings import get_settings
from app.shared.infrastructure.external_apis import get_api_status
from app.shared.utils.logging import get_logger

logger = get_logger(__name__)

# Create router for health endpoints
health_router = APIRouter()

# Application start time for uptime calculation
_app_start_time = datetime.now(timezone.utc)


@health_router.get("/health",
                   summary="Basic Health Check",
                   description="Basic health check endpoint for load balancers and monitoring",
                   tags=["Health Check"])
async def health_check() -> JSONResponse:
    """
    Basic health check endpoint

    Returns simple OK status for quick health verification.
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "plant-diagnosis-api",
            "version": get_settings().APP_VERSION
        }
    )


@health_router.get("/health/detailed",
                   summary="Detailed Health Check",
                   description="Health of the shared state backend and external API clients",
                   tags=["Health Check"])
async def detailed_health_check() -> JSONResponse:
    """
    Detailed health check

    Checks the shared state backend (Redis when configured) and reports
    request statistics of every registered provider client.
    """
    settings = get_settings()
    overall_status = "healthy"
    components: Dict[str, Any] = {}

    if settings.STATE_BACKEND == "redis":
        try:
            await get_redis_client().ping()
            components["redis"] = {"status": "healthy"}
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            components["redis"] = {"status": "unhealthy", "error_type": type(e).__name__}
            overall_status = "unhealthy"
    else:
        components["state_backend"] = {"status": "healthy", "backend": "memory"}

    components["external_apis"] = get_api_status()

    uptime = (datetime.now(timezone.utc) - _app_start_time).total_seconds()
    return JSONResponse(
        status_code=200 if overall_status == "healthy" else 503,
        content={
            "status": overall_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(uptime, 1),
            "environment": settings.ENVIRONMENT,
            "components": components,
        }
    )
