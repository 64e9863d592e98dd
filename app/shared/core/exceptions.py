# 📄 File: app/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines all the special error types the diagnosis app uses to communicate
# what went wrong in a clear, organized way instead of generic error messages.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy providing specific error types with HTTP status codes,
# error details, and serialization. Separates user-facing rejections from internal
# provider failures that must never reach the caller verbatim.
# 🔗 Dependencies:
# FastAPI status constants, typing
# 🔄 Connected Modules / Calls From:
# Throttled client, provider adapters, pipeline controller, API error handlers

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class DiagnosisException(Exception):
    """
    Base exception class for the Plant Diagnosis application.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict()["error"]
        )


# =============================================================================
# USER-FACING EXCEPTIONS (recoverable by the caller)
# =============================================================================

class UsageExhaustedError(DiagnosisException):
    """
    Raised when a free-tier user has consumed all analyses in the current window.
    Recoverable by waiting for the window to reset or by subscribing.
    """

    def __init__(
        self,
        remaining_uses: int = 0,
        days_left: int = 0,
        message: Optional[str] = None
    ):
        if message is None:
            message = (
                f"Free tier limit reached. Upgrade for unlimited access or wait "
                f"{days_left} days for reset."
                if days_left > 0
                else "Free tier expired. Upgrade for unlimited plant identifications."
            )
        super().__init__(
            message=message,
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"remaining_uses": remaining_uses, "days_left": days_left},
            error_code="USAGE_EXHAUSTED"
        )
        self.remaining_uses = remaining_uses
        self.days_left = days_left


class LowImageQualityError(DiagnosisException):
    """Raised when submitted photos are unsuitable for identification."""

    def __init__(
        self,
        issues: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        message: str = "Image quality insufficient for identification"
    ):
        self.issues = list(issues or [])
        self.suggestions = list(suggestions or [])
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"issues": self.issues, "suggestions": self.suggestions},
            error_code="LOW_IMAGE_QUALITY"
        )


class UnidentifiableError(DiagnosisException):
    """Raised when no species could be identified with enough confidence."""

    def __init__(
        self,
        message: str = "Unable to identify plant from the provided images",
        confidence: Optional[float] = None
    ):
        details = {}
        if confidence is not None:
            details["confidence"] = confidence
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code="UNIDENTIFIABLE"
        )
        self.confidence = confidence


class ImageValidationError(DiagnosisException):
    """
    Raised at the upload boundary when images violate count, size or type
    constraints. Such images never reach the pipeline.
    """

    def __init__(
        self,
        message: str = "Invalid image upload",
        errors: Optional[List[str]] = None
    ):
        self.errors = list(errors or [])
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"errors": self.errors},
            error_code="INVALID_IMAGE_UPLOAD"
        )


# =============================================================================
# PROVIDER EXCEPTIONS (internal, never surfaced verbatim)
# =============================================================================

class ProviderError(DiagnosisException):
    """
    Base class for failures talking to external AI/data providers.
    Details are for server-side logs only.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        if not details:
            details = {}
        if provider:
            details["provider"] = provider
        super().__init__(
            message=message,
            status_code=status_code,
            details=details,
            error_code=error_code
        )
        self.provider = provider


class ProviderQuotaExceededError(ProviderError):
    """Raised when a provider's daily quota is exhausted or the provider reports 429/402."""

    def __init__(
        self,
        message: str = "Provider quota exceeded",
        provider: Optional[str] = None,
        limit: Optional[int] = None,
        retry_after: Optional[int] = None
    ):
        details = {}
        if limit is not None:
            details["limit"] = limit
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__(
            message=message,
            provider=provider,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details=details,
            error_code="PROVIDER_QUOTA_EXCEEDED"
        )
        self.limit = limit
        self.retry_after = retry_after


class ProviderUnavailableError(ProviderError):
    """Raised on network failures, timeouts, error statuses or empty result sets."""

    def __init__(
        self,
        message: str = "Provider unavailable",
        provider: Optional[str] = None,
        upstream_status: Optional[int] = None
    ):
        details = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            provider=provider,
            details=details,
            error_code="PROVIDER_UNAVAILABLE"
        )
        self.upstream_status = upstream_status


class MalformedProviderResponseError(ProviderUnavailableError):
    """
    Raised when a provider answers with a body that cannot be parsed.
    Treated like ProviderUnavailableError for fallback purposes.
    """

    def __init__(
        self,
        message: str = "Malformed provider response",
        provider: Optional[str] = None,
        raw_response: Optional[str] = None
    ):
        super().__init__(message=message, provider=provider)
        self.error_code = "MALFORMED_PROVIDER_RESPONSE"
        self.raw_response = raw_response


# =============================================================================
# PIPELINE BOUNDARY
# =============================================================================

SERVICE_BUSY = "service_busy"
SERVICE_ERROR = "service_error"

_FAILURE_MESSAGES = {
    SERVICE_BUSY: "Our plant analysis service is busy right now. Please try again later.",
    SERVICE_ERROR: "Failed to analyze plant. Please try again later.",
}


class AnalysisFailedError(DiagnosisException):
    """
    Caller-safe failure raised by the pipeline boundary.
    Carries a reason code and a generic message, never provider identity or error text.
    """

    def __init__(self, reason: str = SERVICE_ERROR, failed_stage: Optional[str] = None):
        status_code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if reason == SERVICE_BUSY
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        super().__init__(
            message=_FAILURE_MESSAGES.get(reason, _FAILURE_MESSAGES[SERVICE_ERROR]),
            status_code=status_code,
            details={"reason": reason},
            error_code="ANALYSIS_FAILED"
        )
        self.reason = reason
        # kept off the serialized payload
        self.failed_stage = failed_stage

    @classmethod
    def from_exception(cls, exc: BaseException, failed_stage: Optional[str] = None) -> "AnalysisFailedError":
        """Translate any internal exception into a caller-safe failure."""
        if isinstance(exc, ProviderQuotaExceededError):
            return cls(SERVICE_BUSY, failed_stage)
        return cls(SERVICE_ERROR, failed_stage)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def exception_to_dict(exception: Exception) -> Dict[str, Any]:
    """
    Convert any exception to a caller-safe dictionary format.

    Args:
        exception: Exception to convert

    Returns:
        Dictionary representation of exception
    """
    if isinstance(exception, ProviderError):
        return AnalysisFailedError.from_exception(exception).to_dict()
    if isinstance(exception, DiagnosisException):
        return exception.to_dict()

    return {
        "error": {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": {},
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
        }
    }
