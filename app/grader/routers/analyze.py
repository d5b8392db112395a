"""
Router for the document analysis endpoint.

Handles:
- Multipart upload of a document and a rubric for grading
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from ..config import Settings, get_settings
from ..models import AnalyzeResponse, ErrorResponse, UploadedFile
from ..services.ai import AIService, AIServiceError, get_ai_service
from ..services.analysis import AnalysisError, analyze, check_size, check_upload_size
from ..services.text_extractor import ExtractionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analyze"])


async def _read_upload(file: UploadFile | None, max_bytes: int) -> UploadedFile | None:
    """Read an UploadFile into an UploadedFile, enforcing the size ceiling."""
    if file is None or not file.filename:
        return None

    # Starlette records the spooled size, so oversized uploads are rejected unread
    check_size(file.filename, file.size, max_bytes)

    uploaded = UploadedFile(
        content=await file.read(),
        filename=file.filename,
        content_type=file.content_type,
    )
    check_upload_size(uploaded, max_bytes)
    return uploaded


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze_document(
    pdf_file: Annotated[
        UploadFile | None,
        File(alias="pdfFile", description="Document to evaluate (PDF, DOCX or TXT)"),
    ] = None,
    rubric_file: Annotated[
        UploadFile | None,
        File(alias="rubricFile", description="Grading rubric (PDF, DOCX or TXT)"),
    ] = None,
    custom_instructions: Annotated[
        str | None,
        Form(alias="customInstructions", description="Optional evaluator instructions"),
    ] = None,
    ai_service: AIService = Depends(get_ai_service),
    settings: Settings = Depends(get_settings),
) -> AnalyzeResponse:
    """
    Grade an uploaded document against an uploaded rubric.

    Extracts text from both files, sends them to the model and returns
    the normalized score and feedback.
    """
    try:
        document = await _read_upload(pdf_file, settings.max_upload_bytes)
        rubric = await _read_upload(rubric_file, settings.max_upload_bytes)

        return await analyze(document, rubric, custom_instructions, ai_service)
    except (AnalysisError, ExtractionError, AIServiceError):
        # Rendered by the exception handlers in main.py
        raise
    except Exception as e:
        logger.exception("Unexpected error analyzing document")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e
    finally:
        for upload in (pdf_file, rubric_file):
            if upload is not None:
                await upload.close()
