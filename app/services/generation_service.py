from __future__ import annotations

import logging
import re

from app.core.exceptions import PipelineError
from app.models.wizard_models import DocumentType
from app.models.wizard_models import FormData
from app.services.llm import JSONParsingError
from app.services.llm import LLMError
from app.services.llm import execute_llm_step_with_template

logger = logging.getLogger(__name__)

# Drafting brief sent with each document type
DOCUMENT_BRIEFS: dict[DocumentType, str] = {
    DocumentType.FEE_AGREEMENT: (
        "A fee agreement between the lawyer and the client: parties, subject of the mandate, "
        "agreed fees, advance paid, remaining balance, expenses borne by the client, payment terms "
        "and termination."
    ),
    DocumentType.ADMIN_POWER_OF_ATTORNEY: (
        "A special power of attorney for administrative and real-estate formalities: principal, agent, "
        "precise list of authorised acts before administrations, land registry and notaries, duration."
    ),
    DocumentType.JUDICIAL_POWER_OF_ATTORNEY: (
        "A special judicial power of attorney authorising the lawyer to represent the client before "
        "the courts in the referenced case: filing, pleading, appeals, receiving notifications and funds."
    ),
    DocumentType.GENERAL_POWER_OF_ATTORNEY: (
        "A general power of attorney granting broad management and representation powers, "
        "with the customary exclusions requiring a special mandate."
    ),
    DocumentType.INCIDENTAL_REQUEST: (
        "An incidental request (memorandum) addressed to the court seised of the referenced case, "
        "with header, facts, legal grounds and the precise requests."
    ),
}

CLIENT_FIELD_LABELS: dict[str, str] = {
    "full_name": "الاسم الكامل",
    "dob": "تاريخ الازدياد",
    "cin": "رقم البطاقة الوطنية",
    "address": "العنوان",
    "bank_account": "رقم الحساب البنكي",
}

CASE_FIELD_LABELS: dict[str, str] = {
    "type": "نوع القضية",
    "references": "المراجع",
    "fees": "الأتعاب",
    "advance": "التسبيق",
    "costs": "المصاريف",
}

_HTML_FENCE = re.compile(r"^```(?:html)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def _clean_html(raw: str) -> str:
    html = raw.strip()
    match = _HTML_FENCE.match(html)
    if match:
        html = match.group(1).strip()
    return html


class GenerationService:
    """Drafts one legal document as an HTML fragment from verified form data."""

    async def generate_document(self, request_id: str, form_data: FormData, doc_type: DocumentType) -> str:
        logger.info("[%s] Generating document: %s", request_id, doc_type.name)

        client = form_data.client.model_dump()
        case = form_data.case.model_dump()
        context = {
            "document_label": doc_type.label,
            "document_brief": DOCUMENT_BRIEFS[doc_type],
            "client_fields": [(label, client.get(key)) for key, label in CLIENT_FIELD_LABELS.items()],
            "case_fields": [(label, case.get(key)) for key, label in CASE_FIELD_LABELS.items()],
        }

        try:
            data = await execute_llm_step_with_template(
                request_id=request_id,
                step_name=f"generate_document:{doc_type.name}",
                template_name="generate_document.jinja2",
                context=context,
                expected_type=dict,
            )
        except (LLMError, JSONParsingError) as e:
            logger.error("[%s] Generation of %s failed: %s", request_id, doc_type.name, str(e), exc_info=False)
            raise PipelineError(f"Document generation failed for {doc_type.name}: {str(e)}") from e

        html = data.get("html_content")
        if not isinstance(html, str) or not html.strip():
            logger.error("[%s] Empty html_content returned for %s. Keys: %s", request_id, doc_type.name, list(data))
            raise PipelineError(f"Empty document returned for {doc_type.name}")

        html = _clean_html(html)
        logger.info("[%s] Document %s ready (%d chars)", request_id, doc_type.name, len(html))
        return html
