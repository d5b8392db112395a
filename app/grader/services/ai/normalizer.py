"""
Best-effort normalization of model replies into an EvaluationResult.

The model is asked for a JSON object but may wrap it in code fences,
surround it with prose, or return something only JSON-shaped. Parsing
falls back from strict JSON to regex extraction to a generic placeholder.
"""

import json
import logging
import re
from typing import Any

from ...models import EvaluationResult

logger = logging.getLogger(__name__)

DEFAULT_SCORE = "Analysis Complete"

PLACEHOLDER_FEEDBACK = (
    "• Analysis completed\n"
    "• Please review the document for quality\n"
    "• Consider the rubric requirements\n"
    "• Make improvements as needed"
)

# Cleaned-up feedback shorter than this is replaced by the placeholder
MIN_FEEDBACK_LENGTH = 10

_FENCE_JSON_RE = re.compile(r"```json\s*")
_FENCE_RE = re.compile(r"```\s*")
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

_SCORE_RE = re.compile(r'"score":\s*"([^"]+)"')
_FEEDBACK_RE = re.compile(r'"feedback":\s*"([^"]+)"')
_FEEDBACK_ARRAY_RE = re.compile(r'"feedback":\s*\[([^\]]+)\]')

# JSON scaffolding removed when neither feedback pattern matches
_ARTIFACT_PATTERNS = (
    re.compile(r"```json"),
    re.compile(r"```"),
    re.compile(r'\{\s*"score":\s*"[^"]*",?\s*'),
    re.compile(r'"feedback":\s*"'),
    re.compile(r'"\s*\}'),
)


def strip_code_fences(content: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    cleaned = _FENCE_JSON_RE.sub("", content)
    cleaned = _FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def _unescape_newlines(text: str) -> str:
    return text.replace("\\n", "\n")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(_stringify(item) for item in value)
    return json.dumps(value, ensure_ascii=False)


def _load_object(text: str) -> dict[str, Any] | None:
    """Parse text as a JSON object, trying the outermost {...} span second."""
    candidates = [text]
    match = _OBJECT_RE.search(text)
    if match and match.group(0) != text:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _from_parsed(parsed: dict[str, Any]) -> EvaluationResult:
    score = parsed.get("score")
    feedback = parsed.get("feedback")

    score_text = _stringify(score).strip() if score is not None else ""
    feedback_text = _stringify(feedback).strip() if feedback is not None else ""

    return EvaluationResult(
        score=score_text or DEFAULT_SCORE,
        feedback=feedback_text or PLACEHOLDER_FEEDBACK,
    )


def _clean_artifacts(content: str) -> str:
    cleaned = content
    for pattern in _ARTIFACT_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return _unescape_newlines(cleaned).strip()


def extract_fields(content: str) -> EvaluationResult:
    """
    Regex fallback for replies that are not valid JSON.

    Args:
        content: The raw model reply.

    Returns:
        EvaluationResult built from whatever fields could be recovered.
    """
    score = DEFAULT_SCORE
    score_match = _SCORE_RE.search(content)
    if score_match:
        score = score_match.group(1)

    feedback_match = _FEEDBACK_RE.search(content)
    array_match = _FEEDBACK_ARRAY_RE.search(content)

    if feedback_match:
        feedback = _unescape_newlines(feedback_match.group(1))
    elif array_match:
        items = _unescape_newlines(array_match.group(1).replace('"', "")).split(",")
        feedback = "\n".join(item.strip() for item in items if item.strip())
    else:
        feedback = _clean_artifacts(content)
        if len(feedback) < MIN_FEEDBACK_LENGTH:
            feedback = PLACEHOLDER_FEEDBACK

    return EvaluationResult(score=score, feedback=feedback)


def normalize_evaluation(content: str | None) -> EvaluationResult:
    """
    Turn a raw model reply into an EvaluationResult.

    Args:
        content: The model's reply text.

    Returns:
        EvaluationResult; never raises for malformed replies.
    """
    content = content or ""
    parsed = _load_object(strip_code_fences(content))
    if parsed is not None:
        return _from_parsed(parsed)

    logger.warning("Model reply was not valid JSON, falling back to field extraction")
    logger.debug("Unparseable reply: %s", content[:500])
    return extract_fields(content)
