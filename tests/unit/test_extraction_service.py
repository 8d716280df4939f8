from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import PipelineError
from app.services import extraction_service
from app.services.extraction_service import ExtractionService
from app.services.extractor import ExtractorError
from app.services.llm import LLMError


@pytest.mark.asyncio
async def test_extract_form_data_success(monkeypatch, make_upload):
    monkeypatch.setattr(extraction_service, "extract", AsyncMock(return_value="Nom: Ali\nCIN: AB123"))
    llm_step = AsyncMock(return_value={"client": {"fullName": "Ali", "cin": "AB123"}, "case": {"fees": 3000}})
    monkeypatch.setattr(extraction_service, "execute_llm_step_with_template", llm_step)

    form = await ExtractionService().extract_form_data("req-1", make_upload("cin.pdf"))

    assert form.client.full_name == "Ali"
    assert form.client.cin == "AB123"
    assert form.case.fees == "3000"
    kwargs = llm_step.call_args.kwargs
    assert kwargs["template_name"] == "extract_form_data.jinja2"
    assert kwargs["context"] == {"filename": "cin.pdf", "document_text": "Nom: Ali\nCIN: AB123"}


@pytest.mark.asyncio
async def test_extract_form_data_partial_result(monkeypatch, make_upload):
    monkeypatch.setattr(extraction_service, "extract", AsyncMock(return_value="text"))
    monkeypatch.setattr(extraction_service, "execute_llm_step_with_template", AsyncMock(return_value={}))

    form = await ExtractionService().extract_form_data("req-2", make_upload())

    assert form.client.full_name is None
    assert form.case.type is None


@pytest.mark.asyncio
async def test_extractor_failure_becomes_pipeline_error(monkeypatch, make_upload):
    monkeypatch.setattr(extraction_service, "extract", AsyncMock(side_effect=ExtractorError("No readable text")))
    llm_step = AsyncMock()
    monkeypatch.setattr(extraction_service, "execute_llm_step_with_template", llm_step)

    with pytest.raises(PipelineError, match="Form data extraction failed"):
        await ExtractionService().extract_form_data("req-3", make_upload())

    llm_step.assert_not_called()


@pytest.mark.asyncio
async def test_llm_failure_becomes_pipeline_error(monkeypatch, make_upload):
    monkeypatch.setattr(extraction_service, "extract", AsyncMock(return_value="text"))
    monkeypatch.setattr(
        extraction_service, "execute_llm_step_with_template", AsyncMock(side_effect=LLMError("timeout"))
    )

    with pytest.raises(PipelineError, match="timeout"):
        await ExtractionService().extract_form_data("req-4", make_upload())


@pytest.mark.asyncio
async def test_malformed_llm_data_becomes_pipeline_error(monkeypatch, make_upload):
    monkeypatch.setattr(extraction_service, "extract", AsyncMock(return_value="text"))
    monkeypatch.setattr(
        extraction_service,
        "execute_llm_step_with_template",
        AsyncMock(return_value={"client": {"fullName": ["not", "text"]}}),
    )

    with pytest.raises(PipelineError, match="Malformed data"):
        await ExtractionService().extract_form_data("req-5", make_upload())
