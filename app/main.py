import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.core.config import settings
from app.core.exceptions import OperationInProgressError
from app.core.exceptions import StepTransitionError
from app.core.logging import setup_logging
from app.generation_logic.wizard_controller import WizardController

setup_logging()

app = FastAPI(title="Legal Document Wizard")
app.state.wizard = WizardController()

logger = logging.getLogger(__name__)


@app.on_event("startup")
async def startup_event() -> None:
    logger.info("Application startup - model: %s, LLM endpoint: %s", settings.model_id, settings.llm_base_url)
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; extraction and generation will fail.")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may carry the raw exception instance, which is not JSON serialisable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": jsonable_errors(exc)},
        status_code=422,
    )


@app.exception_handler(StepTransitionError)
async def step_transition_exception_handler(_request: Request, exc: StepTransitionError) -> JSONResponse:
    logger.warning(f"Illegal wizard transition: {str(exc)}")
    return JSONResponse(
        {"error": str(exc), "operation": exc.operation, "step": exc.current_step},
        status_code=status.HTTP_409_CONFLICT,
    )


@app.exception_handler(OperationInProgressError)
async def operation_in_progress_exception_handler(_request: Request, exc: OperationInProgressError) -> JSONResponse:
    logger.warning(f"Wizard busy: {str(exc)}")
    return JSONResponse({"error": str(exc), "operation": exc.operation}, status_code=status.HTTP_409_CONFLICT)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)

if Path(settings.frontend_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="static")
