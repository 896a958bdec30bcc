"""File validation utilities for wizard uploads.

Security: Validates file content (magic bytes), enforces size limits,
and sanitizes filenames before they reach object storage or the AI layer.
"""

import enum
import re
from typing import TYPE_CHECKING

import magic
import structlog

if TYPE_CHECKING:
    from fastapi import UploadFile

from profile_builder.core.errors import ValidationError

logger = structlog.get_logger()

# Chunk size for reading files (64 KB)
CHUNK_SIZE_BYTES = 64 * 1024

_BYTES_PER_MB = 1024 * 1024


class FileCategory(enum.Enum):
    """What a wizard upload is for. Decides which content types are allowed."""

    CERTIFICATE = "certificate"
    IMAGE = "image"
    CV = "cv"


# Allowed MIME types per category, mapped to the extension used when storing
ALLOWED_MIMES: dict[FileCategory, dict[str, str]] = {
    FileCategory.CERTIFICATE: {
        "application/pdf": "pdf",
        "image/jpeg": "jpg",
        "image/png": "png",
    },
    FileCategory.IMAGE: {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
        "image/gif": "gif",
    },
    FileCategory.CV: {
        "application/pdf": "pdf",
        "application/msword": "doc",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    },
}

_ALLOWED_LABELS: dict[FileCategory, str] = {
    FileCategory.CERTIFICATE: "PDF, JPG, PNG",
    FileCategory.IMAGE: "JPG, PNG, WEBP, GIF",
    FileCategory.CV: "PDF, DOC, DOCX",
}


def max_size_bytes(size_mb: int) -> int:
    """Convert a configured megabyte limit to bytes."""
    return size_mb * _BYTES_PER_MB


async def read_file_with_size_limit(
    file: "UploadFile",
    max_size: int,
) -> bytes:
    """Read file content with size limit to prevent DoS.

    Args:
        file: UploadFile from FastAPI.
        max_size: Maximum allowed file size in bytes.

    Returns:
        File content as bytes.

    Raises:
        ValidationError: If file exceeds size limit or is empty.
    """
    content = b""
    total_size = 0

    while True:
        chunk = await file.read(CHUNK_SIZE_BYTES)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise ValidationError(
                message=f"File too large. Maximum size: {max_size // _BYTES_PER_MB}MB",
                details=[{"field": "file", "error": "FILE_TOO_LARGE"}],
            )
        content += chunk

    if not content:
        raise ValidationError(
            message="File is empty.",
            details=[{"field": "file", "error": "EMPTY_FILE"}],
        )

    return content


def validate_file_content(
    content: bytes, filename: str, category: FileCategory
) -> tuple[str, str]:
    """Validate file content using magic bytes (not just extension).

    Args:
        content: File binary content.
        filename: Original filename (for error messages).
        category: What the upload is for.

    Returns:
        Tuple of (detected MIME type, storage extension).

    Raises:
        ValidationError: If file content doesn't match allowed MIME types.
    """
    detected_mime = magic.from_buffer(content, mime=True)
    allowed = ALLOWED_MIMES[category]

    if detected_mime not in allowed:
        # Log detected MIME for server-side debugging; do NOT expose to client
        logger.warning(
            "File content validation failed",
            detected_mime=detected_mime,
            filename=filename,
            category=category.value,
        )
        raise ValidationError(
            message=f"Invalid file type. Allowed: {_ALLOWED_LABELS[category]}.",
            details=[{"field": "file", "error": "INVALID_FILE_CONTENT"}],
        )

    return detected_mime, allowed[detected_mime]


def sanitize_filename(filename: str, max_length: int = 200) -> str:
    """Sanitize a client-supplied filename before logging or storing it.

    Args:
        filename: Original filename.
        max_length: Maximum allowed filename length.

    Returns:
        Sanitized filename.
    """
    # Path separators, quotes and header-breaking characters
    safe = re.sub(r'["\r\n\\;/]', "", filename)

    # Remove any control characters
    safe = re.sub(r"[\x00-\x1f\x7f]", "", safe)

    if len(safe) > max_length:
        # Preserve extension if present
        if "." in safe:
            name, ext = safe.rsplit(".", 1)
            ext = f".{ext}"
            safe = name[: max_length - len(ext)] + ext
        else:
            safe = safe[:max_length]

    if not safe:
        safe = "upload"

    return safe
