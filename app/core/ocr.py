import asyncio
import io
import logging

import pytesseract
from PIL import Image
from PIL import ImageOps

from app.core.config import settings

logger = logging.getLogger(__name__)


def ocr_image(image: Image.Image, lang: str | None = None) -> str:
    """Run Tesseract on a PIL image. Blocking: call it from a worker thread."""
    # Phone photos of ID cards carry their rotation in EXIF only
    image = ImageOps.exif_transpose(image) or image
    if image.mode not in ("L", "RGB"):
        image = image.convert("RGB")
    return pytesseract.image_to_string(image, lang=lang or settings.ocr_language)


async def ocr(image_bytes: bytes) -> str:
    """Performs OCR on raw image bytes without blocking the event loop."""

    def _sync_ocr(content: bytes) -> str:
        with Image.open(io.BytesIO(content)) as image:
            logger.debug("OCR_CORE: Image opened: format=%s, size=%s, mode=%s", image.format, image.size, image.mode)
            return ocr_image(image)

    try:
        return await asyncio.to_thread(_sync_ocr, image_bytes)
    except Exception as e:
        logger.error("OCR_CORE: OCR failed: %s: %s", type(e).__name__, str(e), exc_info=True)
        raise
