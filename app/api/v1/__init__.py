# 📄 File: app/api/v1/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups version 1 of the public API: plant analysis endpoints and health checks.
# 🧪 Purpose (Technical Summary):
# API v1 package exposing the aggregated v1 router and the health router.
# 🔗 Dependencies:
# router, health
# 🔄 Connected Modules / Calls From:
# app.main

from .health import health_router
from .router import api_v1_router

__all__ = ["api_v1_router", "health_router"]
