# 📄 File: app/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Contains the settings that tell our Plant Diagnosis app which providers to call, how often,
# and where to keep shared counters.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization with exports for settings management and
# Redis connection configuration.
#
# 🔗 Dependencies:
# - settings.py (application settings)
# - redis.py (shared state connection)
#
# 🔄 Connected Modules / Calls From:
# - app.main (application startup)
# - All modules requiring configuration

"""
Configuration Management Package

Handles all application configuration including:
- Environment-based settings
- External provider credentials and quotas
- Redis configuration for shared state
"""

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
