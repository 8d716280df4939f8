import logging
from uuid import uuid4

from fastapi import APIRouter
from fastapi import File
from fastapi import Request
from fastapi import UploadFile

from app.core.security import Depends
from app.core.security import verify_api_key
from app.generation_logic.file_processing import read_and_validate_upload
from app.generation_logic.wizard_controller import WizardController
from app.models.wizard_models import DocumentSelectionPayload
from app.models.wizard_models import DocumentType
from app.models.wizard_models import DocumentTypeInfo
from app.models.wizard_models import FormData
from app.models.wizard_models import WizardSnapshot

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(verify_api_key)])


def get_wizard(request: Request) -> WizardController:
    """The single in-process wizard session created at application start."""
    return request.app.state.wizard


@router.get("/document-types", response_model=list[DocumentTypeInfo], tags=["Wizard"])
async def list_document_types() -> list[DocumentTypeInfo]:
    return [DocumentTypeInfo(name=doc_type.name, label=doc_type.label) for doc_type in DocumentType]


@router.get("/wizard", response_model=WizardSnapshot, tags=["Wizard"])
async def get_wizard_state(wizard: WizardController = Depends(get_wizard)) -> WizardSnapshot:
    return wizard.snapshot()


@router.post("/wizard/documents", response_model=WizardSnapshot, tags=["Wizard"])
async def select_documents(
    payload: DocumentSelectionPayload,
    wizard: WizardController = Depends(get_wizard),
) -> WizardSnapshot:
    """Step 1: choose which documents to draft."""
    logger.info("/wizard/documents called with %d type(s)", len(payload.document_types))
    return wizard.select_documents(payload.document_types)


@router.post("/wizard/upload", response_model=WizardSnapshot, tags=["Wizard"])
async def upload_source_document(
    file: UploadFile = File(..., description="Source document (PDF, DOCX, image or text)."),
    wizard: WizardController = Depends(get_wizard),
) -> WizardSnapshot:
    """Step 2: upload the source document and extract the client/case data.

    An extraction failure is reported in the returned state (`error`), not as
    an HTTP error. Invalid files are rejected with 400/413 before the wizard
    state changes.
    """
    request_id = str(uuid4())
    logger.info("[%s] /wizard/upload called with file: %s", request_id, file.filename)
    upload = await read_and_validate_upload(file, request_id)
    return await wizard.submit_file(upload)


@router.post("/wizard/verify", response_model=WizardSnapshot, tags=["Wizard"])
async def verify_form_data(
    form_data: FormData,
    wizard: WizardController = Depends(get_wizard),
) -> WizardSnapshot:
    """Step 3: submit the verified data and generate every selected document.

    A generation failure is reported in the returned state (`error`).
    """
    logger.info("/wizard/verify called")
    return await wizard.verify_data(form_data)


@router.post("/wizard/back", response_model=WizardSnapshot, tags=["Wizard"])
async def go_back(wizard: WizardController = Depends(get_wizard)) -> WizardSnapshot:
    return wizard.back()


@router.post("/wizard/reset", response_model=WizardSnapshot, tags=["Wizard"])
async def reset_wizard(wizard: WizardController = Depends(get_wizard)) -> WizardSnapshot:
    return wizard.reset()
