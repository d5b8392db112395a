"""Pytest configuration and fixtures."""

import io
from types import SimpleNamespace
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from app.grader.main import app
from app.grader.services.ai import AIService, get_ai_service


class FakeCompletions:
    """Stands in for ``client.chat.completions`` of the OpenAI SDK."""

    def __init__(
        self,
        content: str | None = None,
        error: Exception | None = None,
        finish_reason: str = "stop",
    ):
        self.content = content
        self.error = error
        self.finish_reason = finish_reason
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message, finish_reason=self.finish_reason)]
        )


class FakeClient:
    """Minimal async OpenAI client double."""

    def __init__(self, **kwargs):
        self.chat = SimpleNamespace(completions=FakeCompletions(**kwargs))

    @property
    def calls(self) -> list[dict]:
        return self.chat.completions.calls


@pytest.fixture
def make_ai_service() -> Callable[..., AIService]:
    """Build an AIService backed by a FakeClient."""

    def _make(**client_kwargs) -> AIService:
        return AIService(
            api_key="test-key",
            model="gemini-test",
            use_mock=False,
            client=FakeClient(**client_kwargs),
        )

    return _make


@pytest.fixture
def ai_service(make_ai_service) -> AIService:
    """AIService whose model replies with well-formed JSON."""
    return make_ai_service(
        content='```json\n{"score": "8/10", "feedback": "• Clear thesis\\n• Needs sources"}\n```'
    )


@pytest.fixture
def client(ai_service: AIService) -> Generator[TestClient, None, None]:
    """Create a test client with the model call replaced by a fake."""
    app.dependency_overrides[get_ai_service] = lambda: ai_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Build a one-page PDF containing a line of text."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "The river shapes the valley over time.")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """Build a one-page PDF with no text on it."""
    import fitz

    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def sample_docx_bytes() -> bytes:
    """Build a DOCX rubric with paragraphs and a criteria table."""
    from docx import Document

    document = Document()
    document.add_paragraph("Grading Rubric")
    document.add_paragraph("Thesis is clearly stated.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Evidence"
    table.rows[0].cells[1].text = "5 points"

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF, non-DOCX) file bytes for testing."""
    return b"This is not a PDF file"
