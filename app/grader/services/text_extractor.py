"""
Text extraction service for uploaded documents and rubrics.

Dispatches on the filename suffix to PyMuPDF (PDF), python-docx (DOCX)
or a plain UTF-8 decode (TXT).
"""

import io
import logging
from pathlib import PurePath

from ..models import UploadedFile

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


class ExtractionError(Exception):
    """Raised when text cannot be extracted from a file."""

    status_code = 422

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedFormatError(ExtractionError):
    """Raised when a file's extension has no extractor."""

    status_code = 400

    def __init__(self, message: str = "Unsupported file format. Please use PDF, DOCX, or TXT files."):
        super().__init__(message)


def is_supported(filename: str | None) -> bool:
    """Return True if the filename has an extension we can extract."""
    if not filename:
        return False
    return PurePath(filename.lower()).suffix in SUPPORTED_EXTENSIONS


class TextExtractor:
    """
    Service for turning uploaded files into plain text.

    The actual parsing is delegated to the format libraries; this class
    only picks the right one and normalizes their failures.
    """

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize the extractor.

        Args:
            encoding: Encoding used to decode plain text files.
        """
        self.encoding = encoding

    def extract_text(self, file: UploadedFile | None) -> str:
        """
        Extract text from an uploaded file.

        Args:
            file: The uploaded file.

        Returns:
            The extracted text (may be empty if the file holds no text).

        Raises:
            ExtractionError: If the file is missing or cannot be parsed.
            UnsupportedFormatError: If the extension is not supported.
        """
        if file is None:
            raise ExtractionError("No file provided")
        return self.extract_text_from_bytes(file.content, file.filename)

    def extract_text_from_bytes(self, data: bytes | None, filename: str) -> str:
        """
        Extract text from raw bytes, dispatching on the filename suffix.

        Args:
            data: File contents.
            filename: Original filename; only its suffix is used.

        Returns:
            The extracted text.

        Raises:
            ExtractionError: If the bytes are missing or cannot be parsed.
            UnsupportedFormatError: If the extension is not supported.
        """
        if data is None:
            raise ExtractionError("No file provided")

        suffix = PurePath((filename or "").lower()).suffix

        if suffix == ".pdf":
            text = self._extract_pdf(data)
        elif suffix == ".docx":
            text = self._extract_docx(data)
        elif suffix == ".txt":
            text = data.decode(self.encoding, errors="replace")
        else:
            raise UnsupportedFormatError()

        logger.info("Extracted %d characters from %s", len(text), filename)
        return text

    def _extract_pdf(self, data: bytes) -> str:
        """Concatenate the text of every PDF page in page order."""
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            logger.error("PyMuPDF not installed: %s", e)
            raise ExtractionError(
                "PyMuPDF library not installed. Run: pip install PyMuPDF"
            ) from e

        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page.get_text("text") for page in doc]
        except Exception as e:
            logger.error("PDF parsing failed: %s", e)
            raise ExtractionError(f"Failed to parse PDF: {e}") from e

        return "\n".join(pages)

    def _extract_docx(self, data: bytes) -> str:
        """Return paragraph texts followed by table cell texts, one per line."""
        try:
            from docx import Document
        except ImportError as e:
            logger.error("python-docx not installed: %s", e)
            raise ExtractionError(
                "python-docx library not installed. Run: pip install python-docx"
            ) from e

        try:
            document = Document(io.BytesIO(data))
        except Exception as e:
            logger.error("DOCX parsing failed: %s", e)
            raise ExtractionError(f"Failed to parse DOCX: {e}") from e

        lines = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                for cell in row.cells:
                    if cell.text:
                        lines.append(cell.text)

        return "\n".join(lines)


# Singleton instance for convenience
_text_extractor: TextExtractor | None = None


def get_text_extractor() -> TextExtractor:
    """Get or create the text extractor singleton."""
    global _text_extractor
    if _text_extractor is None:
        _text_extractor = TextExtractor()
    return _text_extractor
