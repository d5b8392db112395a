"""
FastAPI application for the rubric grading service.

Provides endpoints for:
- Grading an uploaded document against an uploaded rubric
- Health checks
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .models import ErrorResponse, HealthResponse
from .routers import analyze
from .services.ai import AIServiceError, get_ai_service
from .services.analysis import AnalysisError
from .services.text_extractor import ExtractionError, get_text_extractor

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Rubric Grader Service...")
    get_text_extractor()
    ai_service = get_ai_service()
    logger.info(
        "Gemini API key configured: %s",
        "Yes" if ai_service.api_key_configured else "No",
    )
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Rubric Grader Service...")


# Create FastAPI application
app = FastAPI(
    title="Rubric Grader API",
    description="Grades documents against a rubric using Gemini",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy",
        message="Rubric Grader API is running",
        version=__version__,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(analyze.router)


# =============================================================================
# Exception Handlers
# =============================================================================


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    """Handle missing, oversized or empty uploads."""
    logger.warning("Analysis rejected: %s", exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError):
    """Handle text extraction errors."""
    logger.error("Extraction failed: %s", exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(AIServiceError)
async def ai_service_error_handler(request: Request, exc: AIServiceError):
    """Handle AI service errors."""
    logger.error("AI service error: %s", exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the same envelope as domain errors."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _error_response(exc.status_code, "Endpoint not found")
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render request validation errors as a single message."""
    messages = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Invalid request: " + "; ".join(messages),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Last-resort handler for anything the routes did not catch."""
    logger.exception("Unhandled error")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def run() -> None:
    """Run the server with uvicorn using HOST/PORT from settings."""
    import uvicorn

    uvicorn.run("app.grader.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
