import pytest

from app.models.wizard_models import DocumentType
from app.models.wizard_models import FormData
from app.models.wizard_models import UploadedFile


# Fixture factory to create in-memory uploaded documents
@pytest.fixture
def make_upload():
    def _make_upload(filename: str = "contract.pdf", content: bytes = b"%PDF-1.4\n...", content_type: str | None = "application/pdf"):
        return UploadedFile(filename=filename, content_type=content_type, content=content)

    return _make_upload


@pytest.fixture
def extracted_form_data() -> FormData:
    return FormData.model_validate({"client": {"fullName": "Ali"}, "case": {}})


class FakeCollaborators:
    """Records collaborator calls and plays back scripted results."""

    def __init__(self):
        self.extract_calls: list[UploadedFile] = []
        self.generate_calls: list[tuple[FormData, DocumentType]] = []
        self.extraction_result: FormData | Exception = FormData()
        self.generation_failures: dict[DocumentType, Exception] = {}

    async def extract_form_data(self, request_id: str, upload: UploadedFile) -> FormData:
        self.extract_calls.append(upload)
        if isinstance(self.extraction_result, Exception):
            raise self.extraction_result
        return self.extraction_result

    async def generate_document(self, request_id: str, form_data: FormData, doc_type: DocumentType) -> str:
        self.generate_calls.append((form_data, doc_type))
        if doc_type in self.generation_failures:
            raise self.generation_failures[doc_type]
        return f"<div dir=\"rtl\">{doc_type.name}</div>"


@pytest.fixture
def fakes() -> FakeCollaborators:
    return FakeCollaborators()
