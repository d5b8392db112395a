"""
Document analysis pipeline shared by the HTTP server and the serverless function.

Extracts text from the document and the rubric, asks the model for an
evaluation and wraps the result in the response envelope.
"""

import logging

from fastapi.concurrency import run_in_threadpool

from ..models import (
    AnalysisMetadata,
    AnalyzeResponse,
    EvaluationRequest,
    UploadedFile,
)
from .ai import AIService
from .text_extractor import TextExtractor, get_text_extractor

logger = logging.getLogger(__name__)

DOCUMENT_REQUIRED = "PDF file is required"
RUBRIC_REQUIRED = "Rubric file is required"
DOCUMENT_EMPTY = (
    "Could not extract text from PDF. Please ensure the PDF contains readable text."
)
RUBRIC_EMPTY = "Could not extract text from rubric file. Please check the file format."


class AnalysisError(Exception):
    """Raised when a request cannot be analyzed because of its input."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def check_size(filename: str | None, size: int | None, max_bytes: int) -> None:
    """
    Enforce the per-file size ceiling.

    An unknown size (None) passes; callers re-check once the bytes are read.

    Raises:
        AnalysisError: With status 413 if the file is too large.
    """
    if size is not None and size > max_bytes:
        raise AnalysisError(
            f"File {filename} exceeds the maximum upload size of {max_bytes} bytes",
            status_code=413,
        )


def check_upload_size(file: UploadedFile, max_bytes: int) -> None:
    """Enforce the per-file size ceiling on a received file."""
    check_size(file.filename, file.size, max_bytes)


async def analyze(
    document: UploadedFile | None,
    rubric: UploadedFile | None,
    custom_instructions: str | None,
    ai_service: AIService,
    extractor: TextExtractor | None = None,
) -> AnalyzeResponse:
    """
    Grade a document against a rubric.

    Args:
        document: The document to evaluate.
        rubric: The grading rubric.
        custom_instructions: Optional free-text instructions for the evaluator.
        ai_service: Service used for the model call.
        extractor: Text extractor; defaults to the shared instance.

    Returns:
        AnalyzeResponse with the evaluation and metadata.

    Raises:
        AnalysisError: If a file is missing or yields no text.
        ExtractionError: If a file cannot be parsed.
        AIServiceError: If the model call fails.
    """
    if document is None:
        raise AnalysisError(DOCUMENT_REQUIRED)
    if rubric is None:
        raise AnalysisError(RUBRIC_REQUIRED)

    extractor = extractor or get_text_extractor()

    logger.info("Processing files: document=%s, rubric=%s", document.filename, rubric.filename)

    document_text = await run_in_threadpool(extractor.extract_text, document)
    rubric_text = await run_in_threadpool(extractor.extract_text, rubric)

    if not document_text.strip():
        raise AnalysisError(DOCUMENT_EMPTY)
    if not rubric_text.strip():
        raise AnalysisError(RUBRIC_EMPTY)

    logger.info("Calling Gemini API...")
    result = await ai_service.evaluate(
        EvaluationRequest(
            document_text=document_text,
            rubric_text=rubric_text,
            custom_instructions=custom_instructions,
        )
    )

    return AnalyzeResponse(
        success=True,
        result=result,
        metadata=AnalysisMetadata(
            document_length=len(document_text),
            rubric_length=len(rubric_text),
        ),
    )
