"""Upload classification for the content storage endpoint.

Each accepted MIME type belongs to a category with its own size cap.
Anything not listed is rejected before the bytes are forwarded to the
pinning service.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


@dataclass(frozen=True)
class UploadCategory:
    name: str
    content_types: frozenset[str]
    max_bytes: int

    @property
    def max_size_mb(self) -> int:
        return self.max_bytes // _MB


UPLOAD_CATEGORIES: tuple[UploadCategory, ...] = (
    UploadCategory(
        "images",
        frozenset({"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}),
        10 * _MB,
    ),
    UploadCategory(
        "videos",
        frozenset({"video/mp4", "video/webm", "video/quicktime", "video/x-msvideo"}),
        100 * _MB,
    ),
    UploadCategory(
        "audio",
        frozenset({"audio/mpeg", "audio/wav", "audio/ogg", "audio/mp4", "audio/webm"}),
        50 * _MB,
    ),
    UploadCategory(
        "documents",
        frozenset(
            {
                "application/pdf",
                "application/msword",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "text/plain",
            }
        ),
        25 * _MB,
    ),
    UploadCategory(
        "archives",
        frozenset({"application/zip", "application/x-rar-compressed", "application/x-7z-compressed"}),
        50 * _MB,
    ),
)


def category_for(content_type: str | None) -> UploadCategory:
    """Find the category of a MIME type.

    Args:
        content_type: MIME type declared by the client (parameters ignored).

    Returns:
        The matching UploadCategory.

    Raises:
        ValidationAppError: If the type is not accepted.
    """
    mime = (content_type or "").split(";")[0].strip().lower()
    for category in UPLOAD_CATEGORIES:
        if mime in category.content_types:
            return category

    logger.warning("upload.invalid_type", extra={"content_type": mime or "missing"})
    raise ValidationAppError(
        code="invalid_file_type",
        message="Invalid file type. Allowed: Images, Videos, Audio, PDFs, Documents, Archives",
        details={"content_type": mime},
    )

