# 📄 File: app/modules/plant_analysis/presentation/__init__.py
# 🧭 Purpose (Layman Explanation):
# The part of plant analysis that faces the outside world: web endpoints and their wiring.
# 🧪 Purpose (Technical Summary):
# Presentation layer: FastAPI routers, response schemas and the module's composition root.
# 🔗 Dependencies:
# FastAPI, plant_analysis application layer
# 🔄 Connected Modules / Calls From:
# app.main, app.api.v1.router
