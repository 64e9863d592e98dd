"""
Core utilities package for the Plant Diagnosis application.
Provides the exception hierarchy and the provider quota store.
"""

from .exceptions import (
    AnalysisFailedError,
    DiagnosisException,
    ImageValidationError,
    LowImageQualityError,
    MalformedProviderResponseError,
    ProviderError,
    ProviderQuotaExceededError,
    ProviderUnavailableError,
    UnidentifiableError,
    UsageExhaustedError,
    exception_to_dict,
)

from .rate_limiter import (
    InMemoryQuotaStore,
    QuotaStore,
    QuotaWindow,
    RedisQuotaStore,
    ThrottleConfig,
)

__all__ = [
    # Exceptions
    "AnalysisFailedError",
    "DiagnosisException",
    "ImageValidationError",
    "LowImageQualityError",
    "MalformedProviderResponseError",
    "ProviderError",
    "ProviderQuotaExceededError",
    "ProviderUnavailableError",
    "UnidentifiableError",
    "UsageExhaustedError",
    "exception_to_dict",

    # Rate Limiter
    "InMemoryQuotaStore",
    "QuotaStore",
    "QuotaWindow",
    "RedisQuotaStore",
    "ThrottleConfig",
]
