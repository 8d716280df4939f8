"""The four-step wizard state machine.

    DOCUMENT_SELECT -> FILE_UPLOAD -> DATA_VERIFICATION -> PREVIEW

Forward moves happen only through the step's own operation; ``back`` moves a
single step and discards the data owned by the step that was left. ``reset``
returns to the first step from anywhere, at any time.

The two long-running operations (``submit_file`` and ``verify_data``) keep the
loading flag set for their whole duration. While it is set ``select_documents``,
``submit_file``, ``verify_data`` and ``back`` are rejected with
``OperationInProgressError``; ``snapshot`` stays available so the UI can render
the loading message. ``reset`` is never rejected: it starts a new session epoch,
and an operation that resumes under an older epoch drops its result without
touching the state.
"""

import logging
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from contextlib import asynccontextmanager
from uuid import uuid4

from app.core.exceptions import OperationInProgressError
from app.core.exceptions import StepTransitionError
from app.generation_logic.document_generation import DocumentGenerator
from app.generation_logic.document_generation import generate_documents
from app.generation_logic.static_content import EXTRACTION_ERROR_MESSAGE
from app.generation_logic.static_content import EXTRACTION_LOADING_MESSAGE
from app.generation_logic.static_content import GENERATION_ERROR_MESSAGE
from app.generation_logic.static_content import GENERATION_LOADING_MESSAGE
from app.models.wizard_models import DocumentType
from app.models.wizard_models import FormData
from app.models.wizard_models import GeneratedDocument
from app.models.wizard_models import UploadedFile
from app.models.wizard_models import WizardSnapshot
from app.models.wizard_models import WizardStep

__all__ = [
    "FormDataExtractor",
    "WizardController",
]

logger = logging.getLogger(__name__)

FormDataExtractor = Callable[[str, UploadedFile], Awaitable[FormData]]

# Step each forward operation is legal from, and the step it leads to on success
FORWARD_TRANSITIONS: dict[str, tuple[WizardStep, WizardStep]] = {
    "select_documents": (WizardStep.DOCUMENT_SELECT, WizardStep.FILE_UPLOAD),
    "submit_file": (WizardStep.FILE_UPLOAD, WizardStep.DATA_VERIFICATION),
    "verify_data": (WizardStep.DATA_VERIFICATION, WizardStep.PREVIEW),
}

BACK_TRANSITIONS: dict[WizardStep, WizardStep] = {
    WizardStep.PREVIEW: WizardStep.DATA_VERIFICATION,
    WizardStep.DATA_VERIFICATION: WizardStep.FILE_UPLOAD,
    WizardStep.FILE_UPLOAD: WizardStep.DOCUMENT_SELECT,
}


class WizardController:
    """Holds the transient state of one wizard session and drives its transitions."""

    def __init__(
        self,
        extract_form_data: FormDataExtractor | None = None,
        generate_document: DocumentGenerator | None = None,
    ):
        if extract_form_data is None or generate_document is None:
            # Deferred so the controller can be built with fakes without the LLM stack
            from app.services.extraction_service import ExtractionService
            from app.services.generation_service import GenerationService

            extract_form_data = extract_form_data or ExtractionService().extract_form_data
            generate_document = generate_document or GenerationService().generate_document

        self._extract_form_data = extract_form_data
        self._generate_document = generate_document
        # Bumped by reset(); operations started under an older epoch are stale
        self._epoch = 0
        self._clear()

    def _clear(self) -> None:
        self._step = WizardStep.DOCUMENT_SELECT
        self._selected_types: list[DocumentType] = []
        self._uploaded_file: UploadedFile | None = None
        self._form_data: FormData | None = None
        self._generated_documents: list[GeneratedDocument] = []
        self._is_loading = False
        self._loading_message = ""
        self._error: str | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def selected_document_types(self) -> list[DocumentType]:
        return list(self._selected_types)

    @property
    def uploaded_file(self) -> UploadedFile | None:
        return self._uploaded_file

    @property
    def form_data(self) -> FormData | None:
        return self._form_data

    @property
    def generated_documents(self) -> list[GeneratedDocument]:
        return list(self._generated_documents)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def loading_message(self) -> str:
        return self._loading_message

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def busy(self) -> bool:
        return self._is_loading

    def snapshot(self) -> WizardSnapshot:
        return WizardSnapshot(
            step=self._step,
            step_index=self._step.position,
            selected_document_types=list(self._selected_types),
            uploaded_filename=self._uploaded_file.filename if self._uploaded_file else None,
            form_data=self._form_data.model_copy(deep=True) if self._form_data else None,
            generated_documents=list(self._generated_documents),
            is_loading=self._is_loading,
            loading_message=self._loading_message,
            error=self._error,
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _ensure_idle(self, operation: str) -> None:
        if self._is_loading:
            logger.warning("Rejected '%s': operation in progress at step %s", operation, self._step.value)
            raise OperationInProgressError(operation)

    def _ensure_step(self, operation: str) -> WizardStep:
        source, target = FORWARD_TRANSITIONS[operation]
        if self._step is not source:
            raise StepTransitionError(operation, self._step.value)
        return target

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self._epoch

    @asynccontextmanager
    async def _loading(self, operation: str, message: str) -> AsyncIterator[tuple[str, int]]:
        """Hold the loading flag for the duration of the block.

        Yields the request id and the epoch the operation started under. When a
        reset happened meanwhile, the flag belongs to the new session and is
        left alone on exit.
        """
        self._ensure_idle(operation)
        request_id = str(uuid4())
        epoch = self._epoch
        self._error = None
        self._is_loading = True
        self._loading_message = message
        logger.info("[%s] %s started at step %s", request_id, operation, self._step.value)
        try:
            yield request_id, epoch
        finally:
            if self._is_stale(epoch):
                logger.info("[%s] %s superseded by a reset; result discarded", request_id, operation)
            else:
                self._is_loading = False
                self._loading_message = ""
                logger.info("[%s] %s finished at step %s", request_id, operation, self._step.value)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select_documents(self, doc_types: Sequence[DocumentType]) -> WizardSnapshot:
        """Record the chosen document types and move to the upload step.

        Duplicates and an empty selection are accepted as-is.
        """
        self._ensure_idle("select_documents")
        target = self._ensure_step("select_documents")
        self._selected_types = list(doc_types)
        self._step = target
        logger.info("Selected %d document type(s): %s", len(self._selected_types), [t.name for t in self._selected_types])
        return self.snapshot()

    async def submit_file(self, upload: UploadedFile) -> WizardSnapshot:
        """Store *upload* and extract form data from it.

        On failure the wizard stays on FILE_UPLOAD with the extraction error set;
        the file stays stored.
        """
        self._ensure_idle("submit_file")
        target = self._ensure_step("submit_file")
        async with self._loading("submit_file", EXTRACTION_LOADING_MESSAGE) as (request_id, epoch):
            self._uploaded_file = upload
            try:
                form_data = await self._extract_form_data(request_id, upload)
            except Exception:
                logger.exception("[%s] Error extracting data from '%s'", request_id, upload.filename)
                if not self._is_stale(epoch):
                    self._error = EXTRACTION_ERROR_MESSAGE
                    self._step = WizardStep.FILE_UPLOAD
            else:
                if not self._is_stale(epoch):
                    self._form_data = form_data
                    self._step = target
        return self.snapshot()

    async def verify_data(self, form_data: FormData) -> WizardSnapshot:
        """Store the verified *form_data* and generate every selected document.

        All generations must succeed; otherwise no document is kept, the wizard
        stays on DATA_VERIFICATION and the generation error is set.
        """
        self._ensure_idle("verify_data")
        target = self._ensure_step("verify_data")
        async with self._loading("verify_data", GENERATION_LOADING_MESSAGE) as (request_id, epoch):
            self._form_data = form_data
            self._generated_documents = []
            try:
                documents = await generate_documents(
                    request_id,
                    form_data,
                    list(self._selected_types),
                    self._generate_document,
                )
            except Exception:
                logger.exception("[%s] Error generating document(s)", request_id)
                if not self._is_stale(epoch):
                    self._error = GENERATION_ERROR_MESSAGE
            else:
                if not self._is_stale(epoch):
                    self._generated_documents = documents
                    self._step = target
        return self.snapshot()

    def back(self) -> WizardSnapshot:
        """Move one step backwards, discarding the data of the step being left.

        The uploaded file is kept when leaving DATA_VERIFICATION. From
        DOCUMENT_SELECT only the pending error is cleared.
        """
        self._ensure_idle("back")
        self._error = None
        previous = BACK_TRANSITIONS.get(self._step)
        if previous is None:
            return self.snapshot()

        if self._step is WizardStep.PREVIEW:
            self._generated_documents = []
        elif self._step is WizardStep.DATA_VERIFICATION:
            self._form_data = None
        elif self._step is WizardStep.FILE_UPLOAD:
            self._selected_types = []

        logger.info("Back: %s -> %s", self._step.value, previous.value)
        self._step = previous
        return self.snapshot()

    def reset(self) -> WizardSnapshot:
        """Return to DOCUMENT_SELECT with every piece of session data cleared.

        Allowed while an operation is in flight; that operation's result is
        then discarded when it completes.
        """
        logger.info("Reset from step %s (loading: %s)", self._step.value, self._is_loading)
        self._epoch += 1
        self._clear()
        return self.snapshot()
