# 📄 File: app/shared/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# This file sets up a smart logging system that records what happens in the app in a structured way,
# making it easy to follow one plant analysis from upload to care plan across all the services it calls.

# 🧪 Purpose (Technical Summary):
# Implements structured logging with JSON formatting, contextual information (request/user ids)
# and helpers for external provider calls and cache operations.

# 🔗 Dependencies:
# - python-json-logger: JSON log formatting
# - logging: Python standard logging
# - contextvars: Request context tracking

# 🔄 Connected Modules / Calls From:
# Used by: All application modules for consistent logging, provider adapters, throttled client,
# pipeline controller, API error handlers

import functools
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from pythonjsonlogger import jsonlogger

from app.shared.config.settings import get_settings

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

# Global logging configuration
_logging_configured = False
_loggers_cache: Dict[str, "StructuredLogger"] = {}

SERVICE_NAME = 'plant-diagnosis-api'


class ContextFilter(logging.Filter):
    """Attaches request context and extra fields to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get('')
        record.user_id = user_id_var.get('')
        record.service = SERVICE_NAME
        record.timestamp = datetime.now(timezone.utc).isoformat()

        extra_fields = getattr(record, 'extra_fields', None)
        if extra_fields:
            for key, value in extra_fields.items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        return True


class JSONFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for structured logging.

    Outputs logs in JSON format with consistent structure for
    log aggregation and analysis tools.
    """

    def __init__(self):
        super().__init__('%(timestamp)s %(levelname)s %(name)s %(message)s')

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = getattr(record, 'service', SERVICE_NAME)
        if getattr(record, 'request_id', ''):
            log_record['request_id'] = record.request_id
        if getattr(record, 'user_id', ''):
            log_record['user_id'] = record.user_id
        log_record.pop('extra_fields', None)


class StructuredLogger:
    """
    Logger wrapper with structured logging capabilities.

    Keyword arguments passed to the log methods become structured
    fields on the record.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, message: str, extra: Dict = None, **kwargs):
        """Log debug message with extra fields."""
        self._log(logging.DEBUG, message, extra, **kwargs)

    def info(self, message: str, extra: Dict = None, **kwargs):
        """Log info message with extra fields."""
        self._log(logging.INFO, message, extra, **kwargs)

    def warning(self, message: str, extra: Dict = None, **kwargs):
        """Log warning message with extra fields."""
        self._log(logging.WARNING, message, extra, **kwargs)

    def error(self, message: str, extra: Dict = None, exc_info: bool = False, **kwargs):
        """Log error message with extra fields."""
        self._log(logging.ERROR, message, extra, exc_info=exc_info, **kwargs)

    def exception(self, message: str, extra: Dict = None, **kwargs):
        """Log error message with the active exception's traceback."""
        self._log(logging.ERROR, message, extra, exc_info=True, **kwargs)

    def _log(self, level: int, message: str, extra: Dict = None, **kwargs):
        """Internal log method with extra fields handling."""
        extra_fields = dict(extra or {})

        passthrough = ('exc_info', 'stack_info', 'stacklevel')
        for key, value in kwargs.items():
            if key not in passthrough:
                extra_fields[key] = value

        clean_kwargs = {k: v for k, v in kwargs.items() if k in passthrough}
        if extra_fields:
            clean_kwargs['extra'] = {'extra_fields': extra_fields}

        self.logger.log(level, message, **clean_kwargs)

    def log_external_api_call(
        self,
        api_name: str,
        endpoint: str,
        method: str,
        status_code: Optional[int],
        duration_ms: float,
        success: bool
    ):
        """Log external API call performance."""
        level = logging.INFO if success else logging.WARNING
        self._log(
            level,
            f"API {api_name} {method} {endpoint} - {status_code} - {duration_ms:.2f}ms",
            {
                'event_type': 'external_api_call',
                'api_name': api_name,
                'endpoint': endpoint,
                'method': method,
                'status_code': status_code,
                'duration_ms': duration_ms,
                'success': success,
            }
        )

    def log_cache_operation(self, operation: str, key: str, hit: Optional[bool] = None):
        """Log cache operation."""
        fields: Dict[str, Any] = {
            'event_type': 'cache_operation',
            'operation': operation,
            'cache_key': key,
        }
        if hit is not None:
            fields['cache_hit'] = hit
        self._log(logging.DEBUG, f"Cache {operation} - {key}", fields)


def setup_logging(
    log_level: str = None,
    log_format: str = None,
    log_file: str = None,
    enable_console: bool = True
) -> logging.Logger:
    """
    Setup application logging configuration.

    Safe to call repeatedly; only the first call configures handlers.
    """
    global _logging_configured

    if _logging_configured:
        return logging.getLogger("startup")

    settings = get_settings()
    log_level = log_level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT
    log_file = log_file or settings.LOG_FILE

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format.lower() == 'json':
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(timestamp)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s'
        )

    context_filter = ContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(context_filter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        root_logger.addHandler(file_handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    _logging_configured = True
    return logging.getLogger("startup")


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        StructuredLogger instance
    """
    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = StructuredLogger(name)
    _loggers_cache[name] = logger

    return logger


@contextmanager
def log_context(request_id: str = None, user_id: str = None):
    """
    Context manager for adding contextual information to logs.

    Args:
        request_id: Request identifier (generated when omitted)
        user_id: User identifier
    """
    if request_id is None:
        request_id = str(uuid4())

    request_token = request_id_var.set(request_id)
    user_token = user_id_var.set(user_id or '')

    try:
        yield {'request_id': request_id, 'user_id': user_id}
    finally:
        request_id_var.reset(request_token)
        user_id_var.reset(user_token)


def log_stage(stage_name: str):
    """
    Decorator for logging an async pipeline stage with timing.

    Args:
        stage_name: Stage name used in the log records
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration = (time.perf_counter() - start_time) * 1000
                logger.warning(
                    f"Stage {stage_name} failed: {type(e).__name__}",
                    stage=stage_name,
                    duration_ms=duration,
                    event_type='pipeline_stage',
                )
                raise
            duration = (time.perf_counter() - start_time) * 1000
            logger.debug(
                f"Stage {stage_name} completed",
                stage=stage_name,
                duration_ms=duration,
                event_type='pipeline_stage',
            )
            return result
        return wrapper
    return decorator
