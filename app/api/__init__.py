# 📄 File: app/api/__init__.py
# 🧭 Purpose (Layman Explanation):
# This file marks the api folder as a Python package so other parts of the app can import and use
# the API functionality, like a table of contents for all our API features.
# 🧪 Purpose (Technical Summary):
# Package initialization for the API layer, providing versioned routers and middleware.
# 🔗 Dependencies:
# None (package initialization)
# 🔄 Connected Modules / Calls From:
# app.main.py, all API route imports, middleware imports

"""
Plant Diagnosis API Package

Structure:
    api/
    ├── __init__.py          # This file
    ├── middleware/          # API middleware components
    │   └── logging.py
    └── v1/                  # API version 1
        ├── __init__.py
        ├── router.py        # Main v1 router
        └── health.py        # Health check endpoints
"""

# API package metadata
__version__ = "1.0.0"
__description__ = "Plant Diagnosis REST API"
