"""Upload intake: type and size checks before any file is written.

Rejections raise HTTP 400 so nothing reaches the services layer.
"""

import logging

from fastapi import HTTPException, status
from starlette.datastructures import UploadFile

from domain.model.record import Upload

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
)
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB


async def read_image(file: UploadFile) -> Upload:
    """Validate one uploaded image and read it into memory."""
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_MIME_TYPES:
        logger.info("Upload rejected: type", extra={"file": file.filename, "contentType": content_type})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed (jpeg, jpg, png, gif, webp)",
        )

    # Read one byte past the limit so oversize files are detected without reading them whole
    content = await file.read(MAX_FILE_SIZE + 1)
    if len(content) > MAX_FILE_SIZE:
        logger.info("Upload rejected: size", extra={"file": file.filename})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File too large (max 5 MB)",
        )

    return Upload(filename=file.filename or "", content_type=content_type, content=content)


async def read_images(files: list[UploadFile], field: str, max_count: int) -> list[Upload]:
    """Validate every file sent under one form field."""
    if len(files) > max_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many files for {field} (max {max_count})",
        )
    return [await read_image(file) for file in files]
