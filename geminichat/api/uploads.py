"""Attachment handling for the relay endpoint.

Reads the optional multipart file, enforces the size limit and turns it
into an inline-data part for the provider.
"""

import base64
import logging

from fastapi import HTTPException, UploadFile, status

from geminichat.models.schemas import InlineData, Part

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
MAX_FIELD_SIZE = 10 * 1024 * 1024  # per text field; history carries earlier files as base64
DEFAULT_MIME_TYPE = "application/octet-stream"


async def read_and_validate_size(file: UploadFile) -> bytes:
    """Read file content and validate size.

    Args:
        file: The uploaded file.

    Returns:
        File content as bytes.

    Raises:
        HTTPException: 413 if file exceeds size limit.
    """
    content = await file.read()

    if len(content) > MAX_UPLOAD_SIZE:
        size_mb = len(content) / (1024 * 1024)
        logger.info(f"Rejected upload {file.filename!r}: {size_mb:.1f}MB")
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)",
        )

    return content


def to_inline_part(content: bytes, mime_type: str | None) -> Part:
    """Wrap raw file bytes as a base64 inline-data part."""
    return Part(
        inline_data=InlineData(
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            data=base64.b64encode(content).decode("ascii"),
        )
    )
