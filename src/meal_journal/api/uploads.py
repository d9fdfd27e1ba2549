"""Validation of uploaded meal photos."""

from fastapi import UploadFile, status

from meal_journal.api.errors import ApiError
from meal_journal.config import Settings
from meal_journal.domain.meals import StoredImage

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})


async def read_image_upload(upload: UploadFile | None, settings: Settings) -> StoredImage:
    """Read an uploaded photo, rejecting missing, oversized or non-image files."""
    if upload is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No image file provided")
    content_type = (upload.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Only image files are allowed!")
    content = await upload.read(settings.max_upload_bytes + 1)
    if not content:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No image file provided")
    if len(content) > settings.max_upload_bytes:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Image file is too large")
    return StoredImage(
        filename=upload.filename or "upload",
        content=content,
        content_type=content_type,
    )
