# 📄 File: app/main.py
#
# 🧭 Purpose (Layman Explanation):
# The main control center that starts up the Plant Diagnosis app, connects all the different
# parts together, and makes sure everything is ready to analyse plant photos.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factory and entry point with middleware setup, router registration,
# exception handlers that never leak provider details, and shared-resource cleanup on shutdown.
#
# 🔗 Dependencies:
# - FastAPI framework, uvicorn
# - app.shared.config (settings, Redis)
# - app.modules.plant_analysis.presentation.dependencies (module container)
#
# 🔄 Connected Modules / Calls From:
# - uvicorn server startup
# - Docker container entry point
# - Tests (create_application with an injected container)

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.middleware import RequestLoggingMiddleware
from app.api.v1 import api_v1_router, health_router
from app.modules.plant_analysis.presentation.dependencies import PlantAnalysisContainer
from app.shared.config.redis import close_redis
from app.shared.config.settings import Settings, get_settings
from app.shared.core.exceptions import DiagnosisException, exception_to_dict
from app.shared.infrastructure.external_apis import cleanup_external_apis
from app.shared.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events, closing provider sessions and
    pooled Redis connections on the way out.
    """
    logger.info("🌱 Plant Diagnosis API starting up...")
    try:
        yield
    finally:
        logger.info("🔄 Plant Diagnosis API shutting down...")
        try:
            await cleanup_external_apis()
            await close_redis()
            logger.info("✅ Plant Diagnosis API shutdown complete")
        except Exception as e:
            logger.error(f"❌ Shutdown error: {e}")


def _error_body(request: Request, payload: dict) -> dict:
    payload["error"]["request_id"] = getattr(request.state, "request_id", None)
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    """Map application exceptions to JSON error bodies."""

    @app.exception_handler(DiagnosisException)
    async def diagnosis_exception_handler(request: Request, exc: DiagnosisException) -> JSONResponse:
        """Handle custom application exceptions; provider errors are sanitised."""
        payload = exception_to_dict(exc)
        return JSONResponse(
            status_code=payload["error"]["status_code"],
            content=_error_body(request, payload),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed requests (missing images, bad form fields) are caller errors."""
        errors = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": "INVALID_REQUEST",
                    "message": "Invalid request",
                    "details": {"errors": errors},
                    "status_code": 400,
                    "request_id": getattr(request.state, "request_id", None),
                }
            },
        )

    @app.exception_handler(Exception)
    async def internal_server_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle 500 Internal Server Error without exposing exception text."""
        logger.error(f"Internal server error: {type(exc).__name__}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, exception_to_dict(exc)),
        )


def create_application(
    settings: Optional[Settings] = None,
    container: Optional[PlantAnalysisContainer] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Settings to use (defaults to environment settings)
        container: Pre-built plant analysis container (tests inject fakes here)

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_settings()
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )
    app.state.plant_analysis = container or PlantAnalysisContainer(settings)

    # =========================================================================
    # MIDDLEWARE CONFIGURATION
    # =========================================================================

    if settings.ENVIRONMENT != "test":
        app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # =========================================================================
    # ROUTER REGISTRATION
    # =========================================================================

    app.include_router(health_router)
    app.include_router(api_v1_router, prefix="/api/v1")

    register_exception_handlers(app)

    # =========================================================================
    # ROOT ENDPOINTS
    # =========================================================================

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": settings.APP_DESCRIPTION,
            "docs_url": "/docs" if settings.DEBUG else None,
            "health_check": "/health",
            "api_base": "/api/v1",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        """Favicon endpoint to prevent 404 errors."""
        return Response(status_code=204)

    return app


def main():
    """
    Main function for running the application in development.

    This function is used when running the application directly
    with python -m app.main or as a script entry point.
    """
    settings = get_settings()
    uvicorn.run(
        "app.main:create_application",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
