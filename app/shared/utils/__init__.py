# 📄 File: app/shared/utils/__init__.py

# 🧭 Purpose (Layman Explanation):
# This file sets up a collection of helpful tools that other parts of the app use for
# common tasks like logging and checking uploaded photos.

# 🧪 Purpose (Technical Summary):
# Initializes the utilities package with structured logging and upload validation helpers.

# 🔗 Dependencies:
# - logging: Structured logging utilities
# - validators: Upload and image validation functions

# 🔄 Connected Modules / Calls From:
# Used by: All application modules for logging and validation

"""
Shared Utilities Package

- Structured logging with JSON formatting and request-scoped context
- Upload validation and image inspection
"""

from .logging import get_logger, log_context, log_stage, setup_logging
from .validators import (
    ImageInspection,
    UploadedImage,
    ValidationResult,
    inspect_image,
    sanitize_filename,
    sniff_image_type,
    strict_bool,
    string_list,
    validate_image_file,
    validate_image_upload,
)

__all__ = [
    "get_logger",
    "log_context",
    "log_stage",
    "setup_logging",
    "ImageInspection",
    "UploadedImage",
    "ValidationResult",
    "inspect_image",
    "sanitize_filename",
    "sniff_image_type",
    "strict_bool",
    "string_list",
    "validate_image_file",
    "validate_image_upload",
]
