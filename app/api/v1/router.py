# 📄 File: app/api/v1/router.py
# 🧭 Purpose (Layman Explanation):
# This file acts like a traffic director for all API version 1 requests, sending plant photo
# uploads to the plant analysis handlers.
# 🧪 Purpose (Technical Summary):
# Main API v1 router aggregation that combines module routers and exposes an API info endpoint.
# 🔗 Dependencies:
# FastAPI, app.modules.plant_analysis.presentation.api.v1
# 🔄 Connected Modules / Calls From:
# app.main.py

from typing import Any, Dict

from fastapi import APIRouter

from app.modules.plant_analysis.presentation.api.v1 import identify_router
from app.shared.config.settings import get_settings

# Create main API v1 router
api_v1_router = APIRouter()

api_v1_router.include_router(identify_router, tags=["Plant Analysis"])


@api_v1_router.get("/",
                   summary="API v1 Information",
                   description="Get API v1 version information and available endpoints",
                   tags=["API Info"])
async def api_v1_info() -> Dict[str, Any]:
    """API v1 information endpoint"""
    settings = get_settings()
    return {
        "name": settings.APP_NAME,
        "version": "v1",
        "app_version": settings.APP_VERSION,
        "endpoints": {
            "identify": "/api/v1/identify",
            "free_tier_status": "/api/v1/free-tier-status",
            "analysis": "/api/v1/analyses/{analysis_id}",
            "health_check": "/health",
        },
        "limits": {
            "max_images_per_request": settings.MAX_IMAGES_PER_REQUEST,
            "max_image_size_bytes": settings.MAX_IMAGE_SIZE,
            "allowed_image_types": settings.allowed_image_types_list,
            "free_tier_allowance": settings.FREE_TIER_ALLOWANCE,
            "free_tier_window_days": settings.FREE_TIER_WINDOW_DAYS,
        },
    }
