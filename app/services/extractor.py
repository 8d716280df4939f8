import asyncio
import io
import logging

import pdfplumber
from docx import Document
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError
from pdf2image.exceptions import PDFPageCountError
from pdf2image.exceptions import PDFSyntaxError

from app.core.config import settings
from app.core.ocr import ocr
from app.core.ocr import ocr_image
from app.models.wizard_models import UploadedFile

# Configure module logger
logger = logging.getLogger(__name__)

# Scanned PDFs (ID cards, stamped contracts) have no text layer
MIN_PDF_TEXT_LENGTH_FOR_DIRECT_EXTRACTION = 50
PDF_OCR_DPI = 200
TRUNCATION_MARKER = "\n\n[TEXT TRUNCATED]"


class ExtractorError(Exception):
    """Base exception for extraction-related errors"""


def _sync_ocr_pdf_pages(file_bytes: bytes, fname: str, request_id: str) -> str:
    try:
        pages = convert_from_bytes(file_bytes, dpi=PDF_OCR_DPI)
    except (PDFInfoNotInstalledError, PDFPageCountError) as e:
        logger.error("[%s] PDF_OCR: Poppler utilities not found or page count failed for '%s': %s", request_id, fname, e)
        raise ExtractorError(f"Poppler/PDF issue during PDF OCR for {fname}: {e}") from e
    except PDFSyntaxError as e:
        logger.error("[%s] PDF_OCR: PDF syntax error for '%s': %s", request_id, fname, e)
        raise ExtractorError(f"PDF syntax error during PDF OCR for {fname}: {e}") from e

    logger.info("[%s] PDF_OCR: '%s' rendered to %d page image(s)", request_id, fname, len(pages))
    try:
        page_texts = [ocr_image(page) for page in pages]
    except Exception as e:
        logger.error("[%s] PDF_OCR: Tesseract failed on '%s': %s: %s", request_id, fname, type(e).__name__, e)
        raise ExtractorError(f"OCR failed for {fname}: {e}") from e
    return "\n\n--- Page Break (OCR) ---\n\n".join(page_texts)


def _sync_pdf_text_layer(file_bytes: bytes, fname: str, request_id: str) -> str:
    try:
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            texts = [t for t in (p.extract_text() for p in pdf.pages) if t]
    except Exception as e:
        logger.warning("[%s] PDF_DIRECT: pdfplumber failed for '%s': %s. Will attempt OCR fallback.", request_id, fname, str(e))
        return ""
    return "\n".join(texts)


async def _pdf_to_text(file_bytes: bytes, fname: str, request_id: str) -> str:
    """Extract text from a PDF. Tries the text layer first, falls back to OCR for scans."""
    direct_text = await asyncio.to_thread(_sync_pdf_text_layer, file_bytes, fname, request_id)
    if len(direct_text.strip()) >= MIN_PDF_TEXT_LENGTH_FOR_DIRECT_EXTRACTION:
        logger.info("[%s] PDF_HANDLER: text layer sufficient for '%s' (%d chars)", request_id, fname, len(direct_text))
        return direct_text

    logger.warning(
        "[%s] PDF_HANDLER: '%s' text layer has only %d chars (threshold %d), attempting OCR.",
        request_id,
        fname,
        len(direct_text.strip()),
        MIN_PDF_TEXT_LENGTH_FOR_DIRECT_EXTRACTION,
    )
    try:
        ocr_text = await asyncio.to_thread(_sync_ocr_pdf_pages, file_bytes, fname, request_id)
    except ExtractorError:
        if direct_text.strip():
            logger.error("[%s] PDF_HANDLER: OCR failed for '%s', keeping short text layer", request_id, fname)
            return direct_text
        raise

    return ocr_text if len(ocr_text.strip()) > len(direct_text.strip()) else direct_text


async def _docx_to_text(file_bytes: bytes, fname: str, request_id: str) -> str:
    def _sync(content: bytes) -> str:
        doc = Document(io.BytesIO(content))
        parts = [p.text for p in doc.paragraphs]
        # Contracts often keep parties and amounts in tables
        for table in doc.tables:
            for row in table.rows:
                parts.append(" | ".join(cell.text for cell in row.cells))
        return "\n".join(parts)

    try:
        text = await asyncio.to_thread(_sync, file_bytes)
    except Exception as e:
        logger.error("[%s] DOCX: Failed to extract text from '%s': %s", request_id, fname, str(e), exc_info=True)
        raise ExtractorError(f"Failed to extract text from DOCX: {fname}") from e
    logger.debug("[%s] DOCX: Extracted %d chars from '%s'", request_id, len(text), fname)
    return text


async def _image_to_text(file_bytes: bytes, fname: str, request_id: str) -> str:
    try:
        text = await ocr(file_bytes)
    except Exception as e:
        raise ExtractorError(f"Failed to handle image file: {fname}") from e
    logger.debug("[%s] IMAGE_HANDLER: OCR for '%s' extracted %d chars", request_id, fname, len(text.strip()))
    return text


def _plain_text(file_bytes: bytes) -> str:
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_bytes.decode("cp1256", errors="replace")


async def extract(upload: UploadedFile, request_id: str) -> str:
    """Extract text from the uploaded document based on its extension."""
    ext = upload.extension
    fname = upload.filename
    logger.info("[%s] EXTRACT_MAIN: Starting extraction for file: '%s' (type: %s)", request_id, fname, ext)

    try:
        if ext == ".pdf":
            text = await _pdf_to_text(upload.content, fname, request_id)
        elif ext == ".docx":
            text = await _docx_to_text(upload.content, fname, request_id)
        elif ext in {".png", ".jpg", ".jpeg"}:
            text = await _image_to_text(upload.content, fname, request_id)
        elif ext == ".txt":
            text = _plain_text(upload.content)
        else:
            raise ExtractorError(f"Unsupported file type: '{ext}' for file '{fname}'")
    except ExtractorError:
        logger.error("[%s] EXTRACT_MAIN: Extraction failed for '%s'", request_id, fname)
        raise
    except Exception as e:
        logger.exception("[%s] EXTRACT_MAIN: Unexpected error during text extraction for '%s'", request_id, fname)
        raise ExtractorError(f"Unexpected failure to process file: {fname}") from e

    if not text.strip():
        raise ExtractorError(f"No readable text found in '{fname}'")

    logger.info("[%s] EXTRACT_MAIN: Extracted %d chars from '%s'", request_id, len(text.strip()), fname)
    return guard_text(text, request_id)


def guard_text(text: str, request_id: str) -> str:
    """Ensure the document text doesn't exceed the prompt budget."""
    if len(text) > settings.max_prompt_chars:
        logger.warning(
            "[%s] TEXT_GUARD: Text exceeds max length (%d > %d), truncating",
            request_id,
            len(text),
            settings.max_prompt_chars,
        )
        return text[: settings.max_prompt_chars] + TRUNCATION_MARKER
    return text
