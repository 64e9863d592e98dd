"""
Infrastructure layer package for the Plant Diagnosis application.
Provides the response cache and external provider clients.
"""

__all__ = [
    "cache",
    "external_apis",
]
