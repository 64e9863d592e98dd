# 📄 File: app/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# The main entry point that tells Python this 'app' folder contains our Plant Diagnosis
# application code and sets up the basic version and package information.
#
# 🧪 Purpose (Technical Summary):
# Application package initialization with version info and package metadata for the
# Plant Diagnosis FastAPI application.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - main.py (application entry point)
# - Package imports throughout the application

"""
Plant Diagnosis Application

Backend API that turns 1-3 plant photos into a species identification,
a health assessment and a personalised care plan.
"""

__version__ = "1.0.0"
__title__ = "Plant Diagnosis API"
__description__ = "Plant photo identification, health assessment and care planning"
__license__ = "MIT"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
