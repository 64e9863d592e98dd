# 📄 File: app/modules/plant_analysis/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the plant diagnosis system that looks at a user's plant photos, works out the species,
# checks its health and writes a care plan.
# 🧪 Purpose (Technical Summary):
# Package initialization for the plant analysis module: a layered pipeline over rate-limited
# external AI and catalog providers with caching, fallback and free-tier gating.
# 🔗 Dependencies:
# FastAPI, pydantic, aiohttp, redis, app.shared
# 🔄 Connected Modules / Calls From:
# app.main, app.api.v1.router

"""
Plant Analysis Module

Architecture follows the same layering as the rest of the app:
- Domain: models, repository interfaces and the stage services
- Application: the analyze command and the pipeline controller
- Infrastructure: provider adapters and ledger/result stores
- Presentation: the identify API and its schemas
"""
