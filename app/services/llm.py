import json
import logging
import pathlib
import re
from functools import lru_cache
from typing import Any
from uuid import uuid4

import httpx
import jinja2
from openai import AsyncOpenAI
from openai import OpenAIError

from app.core.config import settings

# Configure module logger
logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when LLM call fails"""


class JSONParsingError(Exception):
    """Raised when JSON parsing fails"""


# --- Reusable Jinja2 Environment ---
PROMPT_DIR = pathlib.Path(__file__).parent / "prompt_templates"
env: jinja2.Environment | None = None
try:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(PROMPT_DIR),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    logger.info("Jinja2 environment initialized successfully for path: %s", PROMPT_DIR)
except Exception:
    logger.exception("Failed to initialize Jinja2 environment at %s", PROMPT_DIR)
    env = None


# ---------------------------------------------------------------
# OpenAI-compatible client, built on first use so that importing
# this module never requires credentials.
# ---------------------------------------------------------------
timeout_config = httpx.Timeout(
    settings.LLM_CONNECT_TIMEOUT,
    read=settings.LLM_READ_TIMEOUT,
)


@lru_cache(maxsize=1)
def get_client() -> AsyncOpenAI:
    if not settings.openrouter_api_key:
        raise LLMError("LLM API key is not configured (OPENROUTER_API_KEY).")
    return AsyncOpenAI(
        base_url=settings.llm_base_url,
        api_key=settings.openrouter_api_key,
        default_headers={"X-Title": "legal-doc-wizard"},
        timeout=timeout_config,
        # Failures surface to the wizard immediately; the user retries from the UI
        max_retries=0,
    )


async def call_llm(prompt: str, request_id: str | None = None) -> str:
    """Send *prompt* as a single user message in JSON response mode and return the raw content."""
    request_id = request_id or str(uuid4())
    logger.info("[%s] Making LLM API call with model: %s", request_id, settings.model_id)

    try:
        rsp = await get_client().chat.completions.create(
            model=settings.model_id,
            messages=[
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )

        if not rsp or not getattr(rsp, "choices", None):
            logger.error("[%s] Invalid response structure from LLM API: %s", request_id, str(rsp))
            raise LLMError(f"Invalid response structure from LLM API: {str(rsp)}")

        first_choice = rsp.choices[0]
        if getattr(first_choice, "message", None) is None:
            logger.error("[%s] Missing 'message' in LLM API response: %s", request_id, str(first_choice))
            raise LLMError(f"Missing 'message' in LLM API response: {str(first_choice)}")

        content = (first_choice.message.content or "").strip()
        logger.debug("[%s] LLM response received, length: %d chars", request_id, len(content))
        return content
    except LLMError:
        raise
    except OpenAIError as e:
        logger.error("[%s] OpenAI API error: %s", request_id, str(e), exc_info=True)
        raise LLMError(f"OpenAI API error: {str(e)}") from e
    except Exception as e:
        logger.exception("[%s] Unexpected error in LLM call", request_id)
        raise LLMError(f"Unexpected error in LLM call: {str(e)}") from e


# ---------------------------------------------------------------
# JSON extractor helper
# ---------------------------------------------------------------
def extract_json(text: str) -> Any:
    """Attempts to robustly extract and parse JSON from LLM responses, handling markdown fences and extraneous text."""
    if isinstance(text, dict):
        return text

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Initial JSON parse failed, attempting extraction strategies...")

    # Strategy 1: Markdown Code Fence Extraction
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.warning("Failed to parse JSON from fenced block, trying next strategy...")

    # Strategy 2: raw_decode from the first object/array marker
    decoder = json.JSONDecoder()
    starts = [pos for pos in (text.find("{"), text.find("[")) if pos != -1]
    if not starts:
        logger.error("No JSON object or array marker found in response")
        raise JSONParsingError("No JSON object or array marker found in response")
    try:
        obj, _ = decoder.raw_decode(text, min(starts))
        return obj
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON using raw_decode: %s", str(e))
    raise JSONParsingError("All strategies to parse JSON from LLM response failed.")


def render_prompt(template_name: str, context: dict[str, Any]) -> str:
    if env is None:
        raise LLMError("Internal configuration error: Template environment not available.") from None
    try:
        return env.get_template(template_name).render(**context)
    except jinja2.TemplateNotFound:
        logger.error("Template not found: %s", template_name)
        raise LLMError(f"Internal configuration error: Template '{template_name}' not found.") from None


# ---------------------------------------------------------------
# Helper for executing LLM step with template rendering
# ---------------------------------------------------------------
async def execute_llm_step_with_template(
    request_id: str,
    step_name: str,
    template_name: str,
    context: dict[str, Any],
    expected_type: type = dict,
) -> Any:
    """Executes a single LLM step: load template, render, call LLM, parse JSON.
    Handles common LLM and JSON parsing errors, raising appropriate exceptions.
    """
    logger.debug("[%s] Executing LLM step: %s", request_id, step_name)
    try:
        prompt = render_prompt(template_name, context)
        raw_response = await call_llm(prompt, request_id=request_id)
        data = extract_json(raw_response)

        if not isinstance(data, expected_type):
            logger.error(
                "[%s] Invalid data type returned for step '%s'. Expected %s, got %s. Data: %s",
                request_id,
                step_name,
                expected_type.__name__,
                type(data).__name__,
                str(data)[:200],
            )
            raise LLMError(f"Invalid data format received during '{step_name}' step.")

        logger.debug("[%s] Successfully executed LLM step: %s", request_id, step_name)
        return data

    except (LLMError, JSONParsingError) as e:
        logger.error("[%s] Failed LLM step '%s': %s", request_id, step_name, str(e))
        raise
    except Exception as e:
        logger.exception("[%s] Unexpected error in LLM step '%s'", request_id, step_name)
        raise LLMError(f"Unexpected error during '{step_name}' step.") from e
