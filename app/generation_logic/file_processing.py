"""Validation of the source document uploaded at the FILE_UPLOAD step.

Checks run before the wizard state is touched, so a rejected upload never
replaces the previously submitted file.
"""

import asyncio
import logging
from pathlib import Path

import magic
from fastapi import HTTPException
from fastapi import UploadFile

from app.core.validation import ALLOWED_EXTENSIONS
from app.core.validation import MAX_FILE_SIZE
from app.core.validation import MIME_MAPPING
from app.models.wizard_models import UploadedFile

__all__ = [
    "read_and_validate_upload",
]

logger = logging.getLogger(__name__)


async def read_and_validate_upload(f_obj: UploadFile, request_id: str) -> UploadedFile:
    """Read *f_obj* fully and check extension, size and the MIME type detected from its bytes."""
    filename = Path(f_obj.filename or "").name or "unknown_file"
    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        logger.warning("[%s] Rejected file with invalid extension: %s for file %s", request_id, ext, filename)
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type ('{filename}'). Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    try:
        await f_obj.seek(0)
        contents = await f_obj.read()
    except Exception as read_err:
        logger.error("[%s] Failed to read file content for %s: %s", request_id, filename, read_err, exc_info=True)
        raise HTTPException(status_code=400, detail=f"Could not read '{filename}'.") from read_err

    size = len(contents)
    if size == 0:
        logger.warning("[%s] Rejected empty file: %s", request_id, filename)
        raise HTTPException(status_code=400, detail=f"The file '{filename}' is empty.")
    if size > MAX_FILE_SIZE:
        logger.warning("[%s] Rejected file exceeding size limit: %s (%d bytes)", request_id, filename, size)
        raise HTTPException(
            status_code=413,
            detail=f"File '{filename}' is too large ({size // (1024 * 1024)}MB). Limit: {MAX_FILE_SIZE // (1024 * 1024)}MB",
        )

    try:
        mime = await asyncio.to_thread(magic.from_buffer, contents, mime=True)
    except Exception as mime_err:
        logger.error("[%s] Failed to detect MIME type for: %s - %s", request_id, filename, str(mime_err))
        raise HTTPException(status_code=500, detail=f"Could not determine the type of '{filename}'.") from mime_err

    if mime not in MIME_MAPPING[ext]:
        logger.warning(
            "[%s] Rejected file with mismatched content type: %s. Expected one of %s, got %s",
            request_id,
            filename,
            sorted(MIME_MAPPING[ext]),
            mime,
        )
        raise HTTPException(
            status_code=400,
            detail=f"The content of '{filename}' ({mime}) does not match its extension '{ext}'.",
        )

    if f_obj.content_type and f_obj.content_type.split(";")[0].strip().lower() != mime:
        logger.debug("[%s] Declared content type %s differs from detected %s", request_id, f_obj.content_type, mime)

    logger.debug("[%s] File validation successful: %s (%d bytes, type: %s)", request_id, filename, size, mime)
    return UploadedFile(filename=filename, content_type=mime, content=contents)
