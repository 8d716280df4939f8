import io

import pytest
from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.datastructures import UploadFile

from app.core.validation import MAX_FILE_SIZE
from app.generation_logic.file_processing import read_and_validate_upload


def _make_upload_file(name: str, data: bytes, content_type: str | None = None) -> UploadFile:
    """Utility to create an in-memory UploadFile for tests."""
    headers = Headers({"content-type": content_type}) if content_type else None
    return UploadFile(file=io.BytesIO(data), filename=name, headers=headers)


@pytest.fixture
def detected_mime(monkeypatch):
    """Patch magic detection to report the given MIME type."""

    def _set(mime: str) -> None:
        monkeypatch.setattr(
            "app.generation_logic.file_processing.magic.from_buffer",
            lambda _bytes, mime=True, _value=mime: _value,
        )

    return _set


@pytest.mark.asyncio
async def test_valid_pdf_is_read_into_memory(detected_mime):
    detected_mime("application/pdf")
    f = _make_upload_file("mandat.pdf", b"%PDF-1.4\n...", "application/pdf")

    upload = await read_and_validate_upload(f, request_id="test-happy")

    assert upload.filename == "mandat.pdf"
    assert upload.content == b"%PDF-1.4\n..."
    assert upload.content_type == "application/pdf"
    assert upload.extension == ".pdf"


@pytest.mark.asyncio
async def test_path_components_are_stripped_from_filename(detected_mime):
    detected_mime("image/png")
    f = _make_upload_file("../../etc/cin.png", b"\x89PNG", "image/png")

    upload = await read_and_validate_upload(f, request_id="test-path")

    assert upload.filename == "cin.png"


@pytest.mark.asyncio
async def test_detected_type_wins_over_declared_type(detected_mime):
    detected_mime("text/plain")
    f = _make_upload_file("notes.txt", b"hello", "application/octet-stream")

    upload = await read_and_validate_upload(f, request_id="test-declared")

    assert upload.content_type == "text/plain"


@pytest.mark.asyncio
async def test_docx_detected_as_zip_is_accepted(detected_mime):
    detected_mime("application/zip")
    f = _make_upload_file("contract.docx", b"PK\x03\x04")

    upload = await read_and_validate_upload(f, request_id="test-docx-zip")

    assert upload.extension == ".docx"


@pytest.mark.asyncio
async def test_invalid_extension_rejected():
    f = _make_upload_file("malware.exe", b"MZ")

    with pytest.raises(HTTPException) as exc:
        await read_and_validate_upload(f, request_id="test-ext")

    assert exc.value.status_code == 400
    assert "Unsupported file type" in exc.value.detail


@pytest.mark.asyncio
async def test_empty_file_rejected():
    f = _make_upload_file("empty.docx", b"")

    with pytest.raises(HTTPException) as exc:
        await read_and_validate_upload(f, request_id="test-empty")

    assert exc.value.status_code == 400
    assert "empty" in exc.value.detail


@pytest.mark.asyncio
async def test_file_too_large_rejected():
    f = _make_upload_file("big.pdf", b"0" * (MAX_FILE_SIZE + 1), "application/pdf")

    with pytest.raises(HTTPException) as exc:
        await read_and_validate_upload(f, request_id="test-large")

    assert exc.value.status_code == 413


@pytest.mark.asyncio
async def test_mismatched_detected_type_rejected(detected_mime):
    detected_mime("image/png")
    f = _make_upload_file("contract.pdf", b"%PDF-1.4", "application/pdf")

    with pytest.raises(HTTPException) as exc:
        await read_and_validate_upload(f, request_id="test-mime")

    assert exc.value.status_code == 400
    assert "does not match" in exc.value.detail


@pytest.mark.asyncio
async def test_executable_renamed_to_pdf_rejected_despite_declared_type():
    f = _make_upload_file("id.pdf", b"MZ\x90\x00 this is a windows executable", "application/pdf")

    with pytest.raises(HTTPException) as exc:
        await read_and_validate_upload(f, request_id="test-renamed-exe")

    assert exc.value.status_code == 400
    assert "does not match" in exc.value.detail


@pytest.mark.asyncio
async def test_detection_failure_is_server_error(monkeypatch):
    def _boom(_bytes, mime=True):
        raise RuntimeError("libmagic unavailable")

    monkeypatch.setattr("app.generation_logic.file_processing.magic.from_buffer", _boom)
    f = _make_upload_file("mandat.pdf", b"%PDF-1.4")

    with pytest.raises(HTTPException) as exc:
        await read_and_validate_upload(f, request_id="test-magic-error")

    assert exc.value.status_code == 500
