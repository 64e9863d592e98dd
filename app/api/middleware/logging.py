# 📄 File: app/api/middleware/logging.py
# 🧭 Purpose (Layman Explanation):
# This file keeps a diary of every request made to the diagnosis app, recording what was asked
# for, how long it took, and tagging each one with an id so its whole journey can be followed.
# 🧪 Purpose (Technical Summary):
# Request logging middleware that assigns or propagates X-Request-ID, binds it into the logging
# context, and records method, path, status and timing with security-filtered headers.
# 🔗 Dependencies:
# Starlette BaseHTTPMiddleware, app.shared.utils.logging, uuid
# 🔄 Connected Modules / Calls From:
# app.main.py (middleware registration), all API endpoints

import time
import uuid
from typing import Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.shared.utils.logging import get_logger, log_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Paths not worth a log line
EXCLUDED_PATHS = {"/health", "/favicon.ico"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware

    Features:
    - Request id propagation (X-Request-ID in and out)
    - Request/response timing
    - Slow request classification
    - Sensitive header filtering
    """

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 5.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

        # Sensitive headers that should not be logged
        self.sensitive_headers = {
            "authorization",
            "x-api-key",
            "api-key",
            "cookie",
        }

    async def dispatch(self, request: Request, call_next) -> Response:
        """
        Process and log HTTP requests/responses

        Args:
            request: HTTP request
            call_next: Next middleware or endpoint

        Returns:
            HTTP response
        """
        request_id = request.headers.get(REQUEST_ID_HEADER.lower()) or str(uuid.uuid4())
        request.state.request_id = request_id

        if request.url.path in EXCLUDED_PATHS:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        start_time = time.perf_counter()
        with log_context(request_id=request_id, user_id=request.headers.get("x-user-id")):
            logger.info(
                f"{request.method} {request.url.path}",
                event_type="http_request",
                method=request.method,
                path=request.url.path,
                headers=self._filter_sensitive_headers(dict(request.headers)),
            )
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"{request.method} {request.url.path} raised {type(e).__name__}",
                    event_type="http_error",
                    processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    exception_type=type(e).__name__,
                )
                raise

            processing_time = time.perf_counter() - start_time
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                event_type="http_response",
                status_code=response.status_code,
                processing_time_ms=round(processing_time * 1000, 2),
                performance="slow" if processing_time > self.slow_request_threshold else "normal",
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _filter_sensitive_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Replace sensitive header values"""
        return {
            key: "[FILTERED]" if key.lower() in self.sensitive_headers else value
            for key, value in headers.items()
        }
