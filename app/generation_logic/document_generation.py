"""Concurrent generation of every selected document type.

One collaborator call is issued per type and the calls are joined with an
all-or-nothing barrier: the caller gets either every document, in selection
order, or the first failure. Calls still in flight when a sibling fails are not
cancelled; their results (or errors) are discarded.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence

from app.models.wizard_models import DocumentType
from app.models.wizard_models import FormData
from app.models.wizard_models import GeneratedDocument

__all__ = [
    "DocumentGenerator",
    "generate_documents",
]

logger = logging.getLogger(__name__)

DocumentGenerator = Callable[[str, FormData, DocumentType], Awaitable[str]]


def _discard_outcome(task: "asyncio.Task[GeneratedDocument]") -> None:
    # Retrieve the exception so asyncio does not report it as never retrieved
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Discarded result of sibling generation task: %r", task.exception())


async def generate_documents(
    request_id: str,
    form_data: FormData,
    doc_types: Sequence[DocumentType],
    generate: DocumentGenerator,
) -> list[GeneratedDocument]:
    """Run *generate* once per entry of *doc_types* concurrently and return the ordered results."""
    if not doc_types:
        logger.info("[%s] No document types selected, nothing to generate", request_id)
        return []

    started = time.perf_counter()
    logger.info("[%s] Generating %d document(s) concurrently", request_id, len(doc_types))

    async def _generate_one(doc_type: DocumentType) -> GeneratedDocument:
        html_content = await generate(request_id, form_data, doc_type)
        return GeneratedDocument(doc_type=doc_type, html_content=html_content)

    tasks = [asyncio.ensure_future(_generate_one(doc_type)) for doc_type in doc_types]
    try:
        documents = await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            if task.done():
                _discard_outcome(task)
            else:
                task.add_done_callback(_discard_outcome)
        logger.error(
            "[%s] Document generation batch failed after %.2fs; partial results discarded",
            request_id,
            time.perf_counter() - started,
        )
        raise

    logger.info("[%s] Generated %d document(s) in %.2fs", request_id, len(documents), time.perf_counter() - started)
    return list(documents)
