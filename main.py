from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
import uvicorn

# Internal Imports
from core.config import settings
from core.dependencies import get_orchestrator
from core.exceptions import GenerationError
from core.logging import configure_logging
from core.telemetry import setup_telemetry
from domain.models import ErrorResponse, GenerationResult, ImageTo3DBody, TextTo3DBody
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from services.job_orchestrator import JobOrchestrator

# 1. Configure Logging
configure_logging(json_logs=(settings.ENV == "production"), log_level=settings.LOG_LEVEL)
logger = structlog.get_logger()


# 2. Lifespan (Startup/Shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("startup_initiated", env=settings.ENV)

    if settings.ENABLE_TRACING:
        setup_telemetry()

    if not settings.MODELSLAB_API_KEY:
        # Keep serving; generation calls will be rejected upstream
        logger.error("modelslab_api_key_missing")

    yield

    logger.info("shutdown_initiated")


# 3. Create Main App
app = FastAPI(title=settings.APP_NAME, lifespan=lifespan, version="1.0.0")


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.MAX_BODY_BYTES:
        logger.error("request_body_too_large", path=request.url.path, size=int(content_length))
        return JSONResponse(status_code=413, content={"error": "Request body too large"})
    return await call_next(request)


# Added last so it wraps every response, 413s included
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 4. Exception Handlers
@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error(
        "generation_request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.error("invalid_request_body", path=request.url.path, errors=str(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception", error=str(exc), path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


# 5. REST Endpoints
ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@app.post("/api/text-to-3d", response_model=GenerationResult, responses=ERROR_RESPONSES)
async def text_to_3d_endpoint(
    body: TextTo3DBody, orchestrator: JobOrchestrator = Depends(get_orchestrator)
) -> JSONResponse:
    """
    Generate a GLB model from a text prompt. Waits for the remote job to finish.
    """
    result = await orchestrator.submit_text_job(body.prompt)
    return JSONResponse(content=result.model_dump(by_alias=True))


@app.post("/api/image-to-3d", response_model=GenerationResult, responses=ERROR_RESPONSES)
async def image_to_3d_endpoint(
    body: ImageTo3DBody, orchestrator: JobOrchestrator = Depends(get_orchestrator)
) -> JSONResponse:
    """
    Generate a GLB model from an image/sketch data URL.
    """
    result = await orchestrator.submit_image_job(body.image_data_url)
    return JSONResponse(content=result.model_dump(by_alias=True))


@app.get("/health")
def health_check():
    return {"status": "ok", "env": settings.ENV}


def run():
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
