"""
Serverless entry point for the rubric grader.

Same contract as ``POST /api/analyze`` but the files arrive base64-encoded
inside a JSON body:

    {"pdfFile": {"content": "...", "filename": "essay.pdf"},
     "rubricFile": {"content": "...", "filename": "rubric.docx"},
     "customInstructions": "..."}

``handler(event, context)`` takes a function-platform HTTP event
(``httpMethod``, ``body``, ``isBase64Encoded``) and returns
``{"statusCode", "headers", "body"}``.
"""

import asyncio
import base64
import binascii
import json
import logging
from typing import Any

from pydantic import ValidationError

from .config import get_settings
from .models import AnalyzeJSONRequest, EncodedFile, ErrorResponse, UploadedFile
from .services.ai import AIServiceError, get_ai_service
from .services.analysis import (
    DOCUMENT_REQUIRED,
    RUBRIC_REQUIRED,
    AnalysisError,
    analyze,
    check_upload_size,
)
from .services.text_extractor import ExtractionError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def _response(status_code: int, payload: dict[str, Any] | None) -> dict[str, Any]:
    headers = dict(CORS_HEADERS)
    body = ""
    if payload is not None:
        headers["Content-Type"] = "application/json"
        body = json.dumps(payload)
    return {"statusCode": status_code, "headers": headers, "body": body}


def _error(status_code: int, message: str) -> dict[str, Any]:
    return _response(status_code, ErrorResponse(error=message).model_dump())


def _parse_body(event: dict[str, Any]) -> AnalyzeJSONRequest:
    """Decode and validate the event body."""
    raw = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise AnalysisError("Invalid request body encoding") from e

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise AnalysisError("Invalid JSON body") from e

    if not isinstance(payload, dict):
        raise AnalysisError("Request body must be a JSON object")

    try:
        return AnalyzeJSONRequest.model_validate(payload)
    except ValidationError as e:
        raise AnalysisError(f"Invalid request body: {e.error_count()} validation error(s)") from e


def decode_file(encoded: EncodedFile, max_bytes: int) -> UploadedFile:
    """
    Decode a base64 file from the JSON body.

    Accepts plain base64 as well as ``data:<mime>;base64,<payload>`` URLs.

    Raises:
        AnalysisError: If the content is not valid base64 or is too large.
    """
    content = encoded.content or ""
    content_type = None
    if content.startswith("data:") and "," in content:
        header, content = content.split(",", 1)
        content_type = header[len("data:"):].split(";", 1)[0] or None

    try:
        data = base64.b64decode("".join(content.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise AnalysisError(f"Invalid base64 content for {encoded.filename}") from e

    uploaded = UploadedFile(
        content=data,
        filename=encoded.filename,
        content_type=content_type,
    )
    check_upload_size(uploaded, max_bytes)
    return uploaded


async def handle_event(event: dict[str, Any]) -> dict[str, Any]:
    """Process one function-platform HTTP event."""
    method = (event.get("httpMethod") or "").upper()

    if method == "OPTIONS":
        return _response(200, None)

    if method != "POST":
        return _error(405, "Method not allowed")

    settings = get_settings()

    try:
        request = _parse_body(event)

        if request.pdf_file is None or not request.pdf_file.is_complete:
            raise AnalysisError(DOCUMENT_REQUIRED)
        if request.rubric_file is None or not request.rubric_file.is_complete:
            raise AnalysisError(RUBRIC_REQUIRED)

        document = decode_file(request.pdf_file, settings.max_upload_bytes)
        rubric = decode_file(request.rubric_file, settings.max_upload_bytes)

        result = await analyze(
            document,
            rubric,
            request.custom_instructions,
            get_ai_service(),
        )
    except AnalysisError as e:
        logger.warning("Analysis rejected: %s", e.message)
        return _error(e.status_code, e.message)
    except (ExtractionError, AIServiceError) as e:
        logger.error("Analysis error: %s", e.message)
        return _error(e.status_code, e.message)
    except Exception:
        logger.exception("Unexpected error analyzing document")
        return _error(500, "Internal server error")

    return _response(200, result.model_dump(by_alias=True, mode="json"))


# Shared by every invocation in a warm container; the model client's
# connection pool is bound to this loop.
_event_loop: asyncio.AbstractEventLoop | None = None


def _get_event_loop() -> asyncio.AbstractEventLoop:
    global _event_loop
    if _event_loop is None or _event_loop.is_closed():
        _event_loop = asyncio.new_event_loop()
    return _event_loop


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Synchronous entry point for function platforms."""
    return _get_event_loop().run_until_complete(handle_event(event))
