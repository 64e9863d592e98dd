# 📄 File: app/shared/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shared' folder as a Python package containing common tools that every part of
# the diagnosis app can use, like settings, logging and the provider clients.
#
# 🧪 Purpose (Technical Summary):
# Shared kernel package initialization for configuration, cross-cutting infrastructure
# and utilities used by the plant analysis module.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - All application modules importing shared utilities

"""
Shared Kernel - Common Utilities and Infrastructure

- Configuration management (settings, Redis)
- Exceptions and the provider quota limiter
- Response cache and external API clients
- Logging and upload validators
"""

__all__ = []
