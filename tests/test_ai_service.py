"""Tests for AI service: prompt composition, reply normalization and error mapping."""

import pytest

from app.grader.models import EvaluationRequest
from app.grader.services.ai import (
    AIService,
    AIServiceError,
    InvalidAPIKeyError,
    QuotaExceededError,
    SafetyBlockError,
    build_evaluation_prompt,
    map_api_error,
    normalize_evaluation,
)
from app.grader.services.ai.normalizer import (
    DEFAULT_SCORE,
    PLACEHOLDER_FEEDBACK,
    strip_code_fences,
)


class TestBuildEvaluationPrompt:
    """Tests for the evaluation prompt template."""

    def test_prompt_embeds_rubric_and_document(self):
        """Test that both texts appear under their headings, rubric first."""
        prompt = build_evaluation_prompt("My essay text", "Criteria: clarity")
        assert "RUBRIC:\nCriteria: clarity" in prompt
        assert "DOCUMENT TO EVALUATE:\nMy essay text" in prompt
        assert prompt.index("RUBRIC:") < prompt.index("DOCUMENT TO EVALUATE:")
        assert prompt.startswith("You are an academic evaluator.")

    def test_prompt_requests_json_format(self):
        """Test that the reply format is spelled out."""
        prompt = build_evaluation_prompt("doc", "rubric")
        assert '"score": "X/Y or percentage"' in prompt
        assert '"feedback":' in prompt

    def test_instructions_included_when_present(self):
        """Test that custom instructions are added."""
        prompt = build_evaluation_prompt("doc", "rubric", "  Be strict.  ")
        assert "ADDITIONAL INSTRUCTIONS: Be strict." in prompt

    @pytest.mark.parametrize("instructions", ["", "   ", None])
    def test_instructions_omitted_when_blank(self, instructions):
        """Test that blank instructions leave no instructions line."""
        prompt = build_evaluation_prompt("doc", "rubric", instructions)
        assert "ADDITIONAL INSTRUCTIONS" not in prompt

    def test_braces_in_texts_are_kept(self):
        """Test that JSON-looking document text does not break formatting."""
        prompt = build_evaluation_prompt('{"a": 1}', "{rubric}")
        assert '{"a": 1}' in prompt
        assert "{rubric}" in prompt


class TestNormalizeEvaluation:
    """Tests for best-effort reply parsing."""

    def test_fenced_json_parsed(self):
        """Test that code-fenced JSON is parsed directly."""
        content = '```json\n{"score": "8/10", "feedback": "• Good\\n• Bad"}\n```'
        result = normalize_evaluation(content)
        assert result.score == "8/10"
        assert result.feedback == "• Good\n• Bad"

    def test_plain_fence_json_parsed(self):
        """Test that fences without a language tag are stripped too."""
        result = normalize_evaluation('```\n{"score": "A", "feedback": "Well done"}\n```')
        assert result.score == "A"
        assert result.feedback == "Well done"

    def test_json_surrounded_by_prose(self):
        """Test that a JSON object inside prose is still parsed."""
        content = 'Here is my evaluation: {"score": "90%", "feedback": "Nice work"} Thanks!'
        result = normalize_evaluation(content)
        assert result.score == "90%"
        assert result.feedback == "Nice work"

    def test_non_string_values_coerced(self):
        """Test that numeric scores and list feedback become strings."""
        result = normalize_evaluation('{"score": 8, "feedback": ["Strong intro", "Weak ending"]}')
        assert result.score == "8"
        assert result.feedback == "Strong intro\nWeak ending"

    def test_missing_fields_use_defaults(self):
        """Test that a parsed object without fields falls back to defaults."""
        result = normalize_evaluation('{"grade": "B"}')
        assert result.score == DEFAULT_SCORE
        assert result.feedback == PLACEHOLDER_FEEDBACK

    def test_malformed_json_regex_fallback(self):
        """Test that fields are recovered from almost-JSON."""
        content = r'{"score": "7/10", "feedback": "• Clear thesis\n• Weak conclusion", }'
        result = normalize_evaluation(content)
        assert result.score == "7/10"
        assert result.feedback == "• Clear thesis\n• Weak conclusion"

    def test_feedback_array_fallback(self):
        """Test that an array-valued feedback is joined line by line."""
        content = '{"score": "6/10", "feedback": ["Good intro", "Needs sources"], oops'
        result = normalize_evaluation(content)
        assert result.score == "6/10"
        assert result.feedback == "Good intro\nNeeds sources"

    def test_unterminated_feedback_cleaned(self):
        """Test that JSON scaffolding is removed from a truncated reply."""
        content = '{"score": "9/10", "feedback": "Strong work overall'
        result = normalize_evaluation(content)
        assert result.score == "9/10"
        assert result.feedback == "Strong work overall"

    def test_prose_reply_used_as_feedback(self):
        """Test that a plain prose reply becomes the feedback."""
        content = "The essay is well organized but lacks citations."
        result = normalize_evaluation(content)
        assert result.score == DEFAULT_SCORE
        assert result.feedback == content

    @pytest.mark.parametrize("content", ["ok", "", "```json\n```", "42", None])
    def test_short_reply_uses_placeholder(self, content):
        """Test that too little content yields the generic placeholder."""
        result = normalize_evaluation(content)
        assert result.score == DEFAULT_SCORE
        assert result.feedback == PLACEHOLDER_FEEDBACK

    def test_strip_code_fences(self):
        """Test fence stripping on its own."""
        assert strip_code_fences('```json  \n{"a": 1}\n```  ') == '{"a": 1}'


class TestMapApiError:
    """Tests for provider error categorization."""

    def test_invalid_key(self):
        """Test that an invalid key is reported without provider details."""
        error = map_api_error(Exception("400 API_KEY_INVALID: API key not valid."))
        assert isinstance(error, InvalidAPIKeyError)
        assert error.message == "Invalid Gemini API key"
        assert error.status_code == 500

    @pytest.mark.parametrize("text", ["QUOTA_EXCEEDED", "429 RESOURCE_EXHAUSTED"])
    def test_quota_exceeded(self, text: str):
        """Test that quota errors map to a retry-later message."""
        error = map_api_error(RuntimeError(text))
        assert isinstance(error, QuotaExceededError)
        assert error.message == "API quota exceeded. Please try again later."
        assert error.status_code == 429

    def test_safety_block(self):
        """Test that safety blocks map to a content message."""
        error = map_api_error(RuntimeError("Candidate was blocked due to SAFETY"))
        assert isinstance(error, SafetyBlockError)
        assert "safety filters" in error.message
        assert error.status_code == 422

    def test_other_errors_are_generic(self):
        """Test that unknown errors keep the original text."""
        error = map_api_error(ConnectionError("connection reset"))
        assert type(error) is AIServiceError
        assert error.message == "Gemini API request failed: connection reset"
        assert error.status_code == 500

    def test_service_errors_pass_through(self):
        """Test that AIServiceError instances are returned unchanged."""
        original = QuotaExceededError()
        assert map_api_error(original) is original


class TestAIService:
    """Tests for the model call wrapper."""

    @pytest.mark.asyncio
    async def test_evaluate_returns_normalized_result(self, make_ai_service):
        """Test a successful evaluation round trip through the fake client."""
        service = make_ai_service(content='{"score": "85%", "feedback": "• Solid"}')
        result = await service.evaluate(
            EvaluationRequest(
                document_text="Essay body",
                rubric_text="Rubric body",
                custom_instructions="Focus on grammar",
            )
        )

        assert result.score == "85%"
        assert result.feedback == "• Solid"

        calls = service.client.calls
        assert len(calls) == 1
        assert calls[0]["model"] == "gemini-test"
        prompt = calls[0]["messages"][0]["content"]
        assert "Rubric body" in prompt
        assert "Essay body" in prompt
        assert "ADDITIONAL INSTRUCTIONS: Focus on grammar" in prompt

    @pytest.mark.asyncio
    async def test_evaluate_texts(self, make_ai_service):
        """Test the plain-string convenience wrapper."""
        service = make_ai_service(content="Reads well, but the argument is thin.")
        result = await service.evaluate_texts("doc", "rubric")
        assert result.score == DEFAULT_SCORE
        assert result.feedback == "Reads well, but the argument is thin."

    @pytest.mark.asyncio
    async def test_client_error_is_mapped(self, make_ai_service):
        """Test that SDK exceptions become categorized AIServiceErrors."""
        service = make_ai_service(error=RuntimeError("Error code: 429 - RESOURCE_EXHAUSTED"))
        with pytest.raises(QuotaExceededError):
            await service.evaluate_texts("doc", "rubric")

    @pytest.mark.asyncio
    async def test_content_filter_is_safety_block(self, make_ai_service):
        """Test that a filtered reply is reported as a safety block."""
        service = make_ai_service(content=None, finish_reason="content_filter")
        with pytest.raises(SafetyBlockError):
            await service.evaluate_texts("doc", "rubric")

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, make_ai_service):
        """Test that an empty reply is an error, not a placeholder."""
        service = make_ai_service(content="")
        with pytest.raises(AIServiceError) as exc_info:
            await service.evaluate_texts("doc", "rubric")
        assert "Empty response" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self):
        """Test that evaluation without a key fails outside mock mode."""
        service = AIService(api_key="", use_mock=False)
        assert service.api_key_configured is False
        with pytest.raises(AIServiceError) as exc_info:
            await service.evaluate_texts("doc", "rubric")
        assert exc_info.value.message == "Gemini API key not configured on server"


class TestMockMode:
    """Tests for AI service in mock mode."""

    def test_mock_mode_enabled_explicitly(self):
        """Test that mock mode can be explicitly enabled."""
        service = AIService(api_key="fake-key", use_mock=True)
        assert service.use_mock is True

    @pytest.mark.asyncio
    async def test_evaluate_mock(self):
        """Test that mock mode never touches the client."""
        service = AIService(api_key="", use_mock=True)
        result = await service.evaluate_texts("doc", "rubric")
        assert result.score == "MOCK"
        assert result.feedback == PLACEHOLDER_FEEDBACK
        assert service._client is None
