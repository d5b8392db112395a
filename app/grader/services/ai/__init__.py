"""
AI service package for rubric-based document evaluation.

This package is split into:
- prompt: Evaluation prompt composition
- normalizer: Best-effort parsing of model replies
- exceptions: Error types and provider error mapping

The AIService class wires these together around a single model call.
"""

import logging

from ...config import get_settings
from ...models import EvaluationRequest, EvaluationResult
from .exceptions import (
    AIServiceError,
    InvalidAPIKeyError,
    QuotaExceededError,
    SafetyBlockError,
    map_api_error,
)
from .normalizer import PLACEHOLDER_FEEDBACK, normalize_evaluation
from .prompt import build_evaluation_prompt, build_prompt_for_request

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "InvalidAPIKeyError",
    "QuotaExceededError",
    "SafetyBlockError",
    "build_evaluation_prompt",
    "get_ai_service",
    "map_api_error",
    "normalize_evaluation",
]


class AIService:
    """
    Service for grading documents with a generative-language model.

    Talks to Gemini through its OpenAI-compatible endpoint using the
    OpenAI SDK. One request per evaluation, no retries.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        use_mock: bool | None = None,
        client=None,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: Gemini API key. If None, reads from config/environment.
            model: Model name. If None, reads from config.
            base_url: OpenAI-compatible endpoint. If None, reads from config.
            use_mock: If True, return a placeholder evaluation instead of calling the model.
            client: Pre-built async client (mainly for tests).
        """
        settings = get_settings()

        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = base_url or settings.gemini_base_url
        self.use_mock = settings.ai_mock_mode if use_mock is None else use_mock
        self._client = client

        if self.use_mock:
            logger.warning(
                "AI Service running in MOCK MODE. Unset AI_MOCK_MODE for real evaluation."
            )

    @property
    def api_key_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self):
        """Lazy-load the async OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError("Gemini API key not configured on server")
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
            except ImportError as e:
                raise AIServiceError(
                    "openai library not installed. Run: pip install openai"
                ) from e
        return self._client

    async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
        """
        Evaluate a document against a rubric.

        Args:
            request: Document text, rubric text and optional instructions.

        Returns:
            The normalized EvaluationResult.

        Raises:
            AIServiceError: If the model call fails or returns nothing usable.
        """
        if self.use_mock:
            logger.info("Evaluating document (MOCK MODE)")
            return self._get_mock_evaluation()

        client = self.client
        prompt = build_prompt_for_request(request)

        logger.info(
            "Calling %s: document=%d chars, rubric=%d chars",
            self.model,
            len(request.document_text),
            len(request.rubric_text),
        )

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error("Gemini API Error: %s", e)
            raise map_api_error(e) from e

        if not response.choices:
            raise AIServiceError("Empty response from Gemini")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            logger.warning("Gemini reply stopped by content filter")
            raise SafetyBlockError()

        content = choice.message.content
        if not content:
            raise AIServiceError("Empty response from Gemini")

        return normalize_evaluation(content)

    async def evaluate_texts(
        self,
        document_text: str,
        rubric_text: str,
        custom_instructions: str | None = "",
    ) -> EvaluationResult:
        """Convenience wrapper around evaluate() for plain strings."""
        return await self.evaluate(
            EvaluationRequest(
                document_text=document_text,
                rubric_text=rubric_text,
                custom_instructions=custom_instructions,
            )
        )

    def _get_mock_evaluation(self) -> EvaluationResult:
        """Return a placeholder evaluation for development."""
        return EvaluationResult(score="MOCK", feedback=PLACEHOLDER_FEEDBACK)


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
