# 📄 File: app/modules/plant_analysis/presentation/api/v1/__init__.py
# 🧭 Purpose (Layman Explanation):
# Version 1 of the plant analysis web endpoints.
# 🧪 Purpose (Technical Summary):
# Exposes the v1 plant analysis router for inclusion under /api/v1.
# 🔗 Dependencies:
# identify endpoints
# 🔄 Connected Modules / Calls From:
# app.api.v1.router

from .identify import identify_router

__all__ = ["identify_router"]
