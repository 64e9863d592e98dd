# 📄 File: app/modules/plant_analysis/presentation/api/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the plant analysis web endpoints by API version.
# 🧪 Purpose (Technical Summary):
# API package for plant analysis: versioned routers and schemas.
# 🔗 Dependencies:
# FastAPI routers
# 🔄 Connected Modules / Calls From:
# app.api.v1.router
