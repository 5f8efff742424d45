"""File validation utilities for upload security."""
from __future__ import annotations

import logging

from fastapi import HTTPException, UploadFile
from app.core.config import settings
from app.utils.file_validators import UploadCategory

logger = logging.getLogger(__name__)


def _too_large(limit_mb: int) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail=f"File too large. Maximum size: {limit_mb}MB",
    )


async def read_upload_file_limited(file: UploadFile, category: UploadCategory) -> bytes:
    """Read an uploaded file in chunks enforcing the size limit.

    The effective limit is the smaller of the category cap and the global
    ``APP_MAX_UPLOAD_SIZE_MB``. Uses file.size if available (multipart
    headers), falls back to chunked reading with enforcement.

    Args:
        file: FastAPI upload file instance.
        category: Category the declared content type belongs to.

    Returns:
        File content as bytes if within the allowed size limit.

    Raises:
        HTTPException: 413 if the file exceeds the size limit.
    """
    max_bytes = min(category.max_bytes, settings.app.max_upload_size_mb * 1024 * 1024)
    limit_mb = max_bytes // (1024 * 1024)

    # Check size from multipart headers if available
    file_size = getattr(file, "size", None)

    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes, "category": category.name},
        )
        raise _too_large(limit_mb)

    # Chunked reading with secondary enforcement
    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(64 * 1024)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes, "category": category.name},
            )
            raise _too_large(limit_mb)
        chunks.append(chunk)

    return b"".join(chunks)
