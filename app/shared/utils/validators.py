# 📄 File: app/shared/utils/validators.py
# 🧭 Purpose (Layman Explanation):
# Checkers that make sure uploaded plant photos are the right kind, size and number before
# the app spends any money analysing them.
# 🧪 Purpose (Technical Summary):
# Upload constraint validation (image count, byte size, declared MIME type checked against the
# format sniffed from the file header, extension) returning ValidationResult objects, plus
# Pillow-based decoding checks used by the quality gate and coercion helpers for JSON returned by
# providers.
# 🔗 Dependencies:
# re, pathlib, mimetypes, Pillow (PIL)
# 🔄 Connected Modules / Calls From:
# Identify endpoint (upload boundary), image quality gate, health assessor, provider adapters

import io
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional

from PIL import Image, UnidentifiedImageError

# File validation constants
MAX_IMAGE_SIZE = 100 * 1024  # 100KB
MAX_IMAGES_PER_REQUEST = 3
ALLOWED_IMAGE_TYPES = {'image/jpeg', 'image/png'}
ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png'}
DANGEROUS_EXTENSIONS = {'.exe', '.bat', '.cmd', '.com', '.pif', '.scr', '.vbs', '.js'}

PIL_FORMAT_TO_MIME = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
}


class ValidationResult:
    """Result object for validation operations"""
    def __init__(self, is_valid: bool, errors: List[str] = None, warnings: List[str] = None):
        self.is_valid = is_valid
        self.errors = errors or []
        self.warnings = warnings or []

    def add_error(self, error: str):
        """Add validation error"""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add validation warning"""
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult", prefix: str = ""):
        """Fold another result's errors and warnings into this one"""
        for error in other.errors:
            self.add_error(f"{prefix}{error}")
        for warning in other.warnings:
            self.add_warning(f"{prefix}{warning}")


@dataclass
class UploadedImage:
    """Boundary view of one uploaded file"""
    filename: str
    content_type: Optional[str]
    size: int
    data: Optional[bytes] = None


@dataclass
class ImageInspection:
    """What Pillow could tell about an image's bytes"""
    decodable: bool
    width: int = 0
    height: int = 0
    format: Optional[str] = None
    error: Optional[str] = None

    @property
    def mime_type(self) -> Optional[str]:
        return PIL_FORMAT_TO_MIME.get(self.format or '')


# ==============================================================================
# FILE AND UPLOAD VALIDATION
# ==============================================================================

def validate_image_file(
    filename: str,
    file_size: int,
    content_type: str = None,
    max_size: int = MAX_IMAGE_SIZE,
    allowed_types: Iterable[str] = ALLOWED_IMAGE_TYPES,
    data: Optional[bytes] = None,
) -> ValidationResult:
    """
    Validate one uploaded image

    Args:
        filename: Original filename
        file_size: File size in bytes
        content_type: MIME content type
        max_size: Maximum size in bytes
        allowed_types: Allowed MIME types
        data: File bytes; when given, the real format must match content_type

    Returns:
        ValidationResult with validation status and errors
    """
    result = ValidationResult(True)
    allowed_types = set(allowed_types)

    if file_size <= 0:
        result.add_error("File is empty")
    elif file_size > max_size:
        result.add_error(f"File size exceeds maximum allowed size ({max_size // 1024}KB)")

    if not content_type or content_type not in allowed_types:
        result.add_error(f"File type '{content_type}' is not allowed")

    if filename:
        extension = Path(filename).suffix.lower()
        if extension in DANGEROUS_EXTENSIONS:
            result.add_error(f"File type '{extension}' is not allowed for security reasons")
        elif extension and extension not in ALLOWED_IMAGE_EXTENSIONS:
            result.add_error(f"Image file extension '{extension}' is not allowed")

        expected_type, _ = mimetypes.guess_type(filename)
        if content_type and expected_type and expected_type != content_type:
            result.add_warning("File extension doesn't match content type")

    if data and file_size <= max_size:
        actual_type = sniff_image_type(data)
        if actual_type is None or actual_type not in allowed_types:
            result.add_error("File content is not a JPEG or PNG image")
        elif content_type in allowed_types and actual_type != content_type:
            result.add_error(f"File content is {actual_type}, not the declared '{content_type}'")

    return result


def validate_image_upload(
    images: List[UploadedImage],
    max_images: int = MAX_IMAGES_PER_REQUEST,
    max_size: int = MAX_IMAGE_SIZE,
    allowed_types: Iterable[str] = ALLOWED_IMAGE_TYPES,
) -> ValidationResult:
    """
    Validate a whole upload: 1..max_images files, each within size and type limits

    Args:
        images: Uploaded files in submission order
        max_images: Maximum number of files
        max_size: Maximum size per file in bytes
        allowed_types: Allowed MIME types

    Returns:
        ValidationResult with aggregated validation status
    """
    result = ValidationResult(True)

    if not images:
        result.add_error("At least one image is required")
        return result

    if len(images) > max_images:
        result.add_error(f"Too many images (max {max_images} allowed)")
        return result

    for i, image in enumerate(images):
        item_result = validate_image_file(
            image.filename, image.size, image.content_type, max_size, allowed_types, image.data
        )
        result.merge(item_result, prefix=f"Image {i + 1}: ")

    return result


# ==============================================================================
# IMAGE CONTENT INSPECTION
# ==============================================================================

def sniff_image_type(data: bytes) -> Optional[str]:
    """
    MIME type of the image format found in the file header, whatever the
    client declared. Only JPEG and PNG are recognised; anything else is None.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            return PIL_FORMAT_TO_MIME.get(image.format or '')
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError):
        return None


def inspect_image(data: bytes) -> ImageInspection:
    """
    Decode image bytes with Pillow without keeping the pixels around

    Args:
        data: Raw image bytes

    Returns:
        ImageInspection describing the image or why it could not be read
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
        # verify() leaves the image unusable, reopen for size/format
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            return ImageInspection(True, width, height, image.format)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        return ImageInspection(False, error=type(e).__name__)


# ==============================================================================
# UTILITY FUNCTIONS
# ==============================================================================

def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename for logging and storage

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    if not filename:
        return "unnamed_file"

    filename = re.sub(r'[^\w\-_\.\s]', '', filename)
    filename = re.sub(r'\s+', '_', filename)
    filename = filename.strip('._')

    if len(filename) > 100:
        name, ext = Path(filename).stem[:95], Path(filename).suffix
        filename = f"{name}{ext}"

    return filename or "unnamed_file"


# ==============================================================================
# PROVIDER OUTPUT COERCION
# ==============================================================================

def string_list(value: Any) -> List[str]:
    """
    Non-empty strings of a JSON list; anything that is not a list yields []

    A bare string is not split into characters and non-string items are dropped.
    """
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def strict_bool(value: Any, default: bool = False) -> bool:
    """A real JSON boolean, or default for anything else (the string "false" included)"""
    return value if isinstance(value, bool) else default
