"""
Pydantic models for the rubric grading pipeline.

Defines the uploaded file container, the evaluation result, and the
request/response envelopes shared by the server and serverless shells.
"""

import mimetypes
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Intake Models
# =============================================================================


class UploadedFile(BaseModel):
    """
    A file received with a request.

    Attributes:
        content: Raw file bytes.
        filename: Original filename, used for format dispatch.
        content_type: Declared content type, inferred from the filename if absent.
    """

    content: bytes = Field(..., description="Raw file bytes")
    filename: str = Field(..., min_length=1, description="Original filename")
    content_type: str | None = Field(
        default=None,
        description="Declared or inferred MIME type",
    )

    @model_validator(mode="after")
    def infer_content_type(self) -> "UploadedFile":
        """Guess the content type from the filename when none was declared."""
        if not self.content_type or self.content_type == "application/octet-stream":
            guessed, _ = mimetypes.guess_type(self.filename)
            if guessed:
                self.content_type = guessed
        return self

    @property
    def size(self) -> int:
        return len(self.content)


class EncodedFile(BaseModel):
    """A base64-encoded file as sent to the serverless function."""

    content: str | None = Field(default=None, description="Base64-encoded file bytes")
    filename: str | None = Field(default=None, description="Original filename")

    @property
    def is_complete(self) -> bool:
        return bool(self.content and self.filename)


class AnalyzeJSONRequest(BaseModel):
    """JSON body accepted by the serverless function."""

    model_config = ConfigDict(populate_by_name=True)

    pdf_file: EncodedFile | None = Field(default=None, alias="pdfFile")
    rubric_file: EncodedFile | None = Field(default=None, alias="rubricFile")
    custom_instructions: str | None = Field(default=None, alias="customInstructions")


# =============================================================================
# Evaluation Models
# =============================================================================


class EvaluationRequest(BaseModel):
    """Texts submitted to the model for a single evaluation."""

    document_text: str = Field(..., description="Text extracted from the document")
    rubric_text: str = Field(..., description="Text extracted from the rubric")
    custom_instructions: str = Field(
        default="",
        description="Optional free-text instructions for the evaluator",
    )

    @field_validator("custom_instructions", mode="before")
    @classmethod
    def blank_instructions_to_empty(cls, v: str | None) -> str:
        """Treat missing or whitespace-only instructions as absent."""
        if v is None:
            return ""
        return v.strip()


class EvaluationResult(BaseModel):
    """
    Normalized model verdict.

    Attributes:
        score: Free-form score such as "8/10" or "85%".
        feedback: Bullet-point feedback text.
    """

    score: str = Field(..., description="Score as reported by the model")
    feedback: str = Field(..., description="Feedback text")


# =============================================================================
# Response Models
# =============================================================================


class AnalysisMetadata(BaseModel):
    """Metadata returned alongside an evaluation."""

    model_config = ConfigDict(populate_by_name=True)

    document_length: int = Field(
        ...,
        ge=0,
        alias="documentLength",
        description="Characters extracted from the document",
    )
    rubric_length: int = Field(
        ...,
        ge=0,
        alias="rubricLength",
        description="Characters extracted from the rubric",
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Completion time (ISO format, UTC)",
    )


class AnalyzeResponse(BaseModel):
    """Successful analysis envelope."""

    success: bool = Field(default=True)
    result: EvaluationResult
    metadata: AnalysisMetadata


class ErrorResponse(BaseModel):
    """Error envelope used by every failing response."""

    error: str = Field(..., description="User-facing error message")
    success: bool = Field(default=False)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str = Field(default="")
    version: str = Field(default="1.0.0")
