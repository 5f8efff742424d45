from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.adapters.storage.base import AbstractContentStore, ContentMetadata
from app.api.dependencies import get_content_store, require_address
from app.core.auth import verify_api_key
from app.core.errors import ValidationAppError
from app.core.file_validation import read_upload_file_limited
from app.core.rate_limit import RateLimitTier, rate_limit
from app.schemas.views import UploadView
from app.utils.file_validators import category_for

router = APIRouter(tags=["Uploads"])


@router.post(
    "/uploads",
    response_model=UploadView,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimitTier.UPLOAD)), Depends(verify_api_key)],
)
async def upload_content(
    store: Annotated[AbstractContentStore, Depends(get_content_store)],
    file: UploadFile = File(..., description="Image, video, audio, document or archive"),
    uploader_address: str = Form(..., description="Address of the uploading creator"),
) -> UploadView:
    """Store a file with the pinning service and return its content identifier.

    The identifier is what ``POST /v1/posts`` expects as ``content_ref``.

    Raises:
        ValidationAppError: 400 for an unsupported type, empty file or bad address.
        HTTPException: 413 if the file exceeds its category's size cap.
        StorageAppError: 502 if the pinning service fails.
    """
    uploader = require_address(uploader_address, "uploader")
    category = category_for(file.content_type)
    blob = await read_upload_file_limited(file, category)
    if not blob:
        raise ValidationAppError(code="empty_file", message="No file provided")

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    stored = await store.store(
        blob,
        ContentMetadata(
            name=file.filename or "upload",
            content_type=content_type,
            uploaded_by=uploader,
            keyvalues={"uploader": uploader, "category": category.name},
        ),
    )
    return UploadView(
        content_id=stored.content_id,
        url=stored.url,
        size=stored.size,
        content_type=stored.content_type,
        category=category.name,
    )
