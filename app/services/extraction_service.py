from __future__ import annotations

import logging

from pydantic import ValidationError

from app.core.exceptions import PipelineError
from app.models.wizard_models import FormData
from app.models.wizard_models import UploadedFile
from app.services.extractor import ExtractorError
from app.services.extractor import extract
from app.services.llm import JSONParsingError
from app.services.llm import LLMError
from app.services.llm import execute_llm_step_with_template

logger = logging.getLogger(__name__)


class ExtractionService:
    """Turns an uploaded source document into a best-effort FormData."""

    async def extract_form_data(self, request_id: str, upload: UploadedFile) -> FormData:
        logger.info("[%s] Extracting form data from '%s' (%d bytes)", request_id, upload.filename, upload.size)

        try:
            document_text = await extract(upload, request_id)
            data = await execute_llm_step_with_template(
                request_id=request_id,
                step_name="extract_form_data",
                template_name="extract_form_data.jinja2",
                context={
                    "filename": upload.filename,
                    "document_text": document_text,
                },
                expected_type=dict,
            )
            form_data = FormData.model_validate(data)
        except ValidationError as ve:
            logger.error("[%s] Extracted data does not match the form: %s", request_id, ve)
            raise PipelineError(f"Malformed data returned by extraction: {ve}") from ve
        except (ExtractorError, LLMError, JSONParsingError) as e:
            logger.error("[%s] Form data extraction failed: %s", request_id, str(e), exc_info=False)
            raise PipelineError(f"Form data extraction failed: {str(e)}") from e
        except Exception as e:
            logger.exception("[%s] Unexpected error in extract_form_data orchestration", request_id)
            raise PipelineError("Unexpected error during form data extraction") from e

        filled = [k for k, v in form_data.client.model_dump().items() if v] + [k for k, v in form_data.case.model_dump().items() if v]
        logger.info("[%s] Extraction filled %d field(s): %s", request_id, len(filled), ", ".join(filled) or "-")
        return form_data
