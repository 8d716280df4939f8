"""Defines constants for source document upload validation."""

# Allowed file extensions and size limits
ALLOWED_EXTENSIONS: set[str] = {".pdf", ".docx", ".png", ".jpg", ".jpeg", ".txt"}
MAX_FILE_SIZE: int = 25 * 1024 * 1024  # 25 MB

# MIME types accepted per extension, as detected from the file bytes.
# libmagic reports DOCX files written by some tools as a plain zip archive.
MIME_MAPPING: dict[str, set[str]] = {
    ".pdf": {"application/pdf"},
    ".docx": {"application/vnd.openxmlformats-officedocument.wordprocessingml.document", "application/zip"},
    ".png": {"image/png"},
    ".jpg": {"image/jpeg"},
    ".jpeg": {"image/jpeg"},
    ".txt": {"text/plain"},
}
