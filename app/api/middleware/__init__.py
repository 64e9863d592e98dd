# 📄 File: app/api/middleware/__init__.py
# 🧭 Purpose (Layman Explanation):
# This file organizes the helpers that watch every request on its way in and out, such as the
# request logger.
# 🧪 Purpose (Technical Summary):
# Package initialization for API middleware components.
# 🔗 Dependencies:
# Starlette middleware base classes
# 🔄 Connected Modules / Calls From:
# app.main.py, middleware registration

"""
Plant Diagnosis API Middleware Package

Middleware Components:
    - RequestLoggingMiddleware: HTTP request and response logging with request ids
"""

from .logging import REQUEST_ID_HEADER, RequestLoggingMiddleware

__all__ = ["REQUEST_ID_HEADER", "RequestLoggingMiddleware"]
