"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when AI service operations fail."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAPIKeyError(AIServiceError):
    """The provider rejected the configured API key."""

    def __init__(self, message: str = "Invalid Gemini API key"):
        super().__init__(message)


class QuotaExceededError(AIServiceError):
    """The provider refused the call because a quota was exhausted."""

    status_code = 429

    def __init__(self, message: str = "API quota exceeded. Please try again later."):
        super().__init__(message)


class SafetyBlockError(AIServiceError):
    """The provider's safety filters blocked the prompt or the reply."""

    status_code = 422

    def __init__(
        self,
        message: str = "Content was blocked by safety filters. Please try with different content.",
    ):
        super().__init__(message)


# Checked in order; the first marker found in the provider's error text wins.
_ERROR_MARKERS: tuple[tuple[tuple[str, ...], type[AIServiceError]], ...] = (
    (("API_KEY_INVALID", "API key not valid"), InvalidAPIKeyError),
    (("QUOTA_EXCEEDED", "RESOURCE_EXHAUSTED"), QuotaExceededError),
    (("SAFETY",), SafetyBlockError),
)


def map_api_error(exc: BaseException) -> AIServiceError:
    """
    Translate a provider/SDK exception into a user-facing AIServiceError.

    Matching is done on the exception's message text, since the provider
    reports the failure category only inside its error payload.

    Args:
        exc: The exception raised by the model client.

    Returns:
        The matching AIServiceError subclass, or a generic AIServiceError
        carrying the original message.
    """
    if isinstance(exc, AIServiceError):
        return exc

    text = str(exc)
    for markers, error_cls in _ERROR_MARKERS:
        if any(marker in text for marker in markers):
            return error_cls()

    return AIServiceError(f"Gemini API request failed: {text}")
