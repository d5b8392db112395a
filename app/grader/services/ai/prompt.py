"""
Prompt composition for rubric-based evaluation.
"""

from ...models import EvaluationRequest

EVALUATION_PROMPT_TEMPLATE = """You are an academic evaluator. Analyze this document against the rubric and provide a simple, concise evaluation.

RUBRIC:
{rubric_text}

DOCUMENT TO EVALUATE:
{document_text}

{instructions_line}

Please provide your response in this JSON format with bullet points:
{{
    "score": "X/Y or percentage",
    "feedback": "• Main strength of the document\\n• Key area that needs improvement\\n• Specific suggestion for enhancement\\n• Overall assessment in one sentence"
}}"""


def build_evaluation_prompt(
    document_text: str,
    rubric_text: str,
    custom_instructions: str | None = "",
) -> str:
    """
    Build the evaluation prompt sent to the model.

    Args:
        document_text: Text of the document being graded.
        rubric_text: Text of the grading rubric.
        custom_instructions: Optional extra instructions; blank means none.

    Returns:
        The complete prompt string.
    """
    instructions = (custom_instructions or "").strip()
    instructions_line = f"ADDITIONAL INSTRUCTIONS: {instructions}" if instructions else ""

    return EVALUATION_PROMPT_TEMPLATE.format(
        rubric_text=rubric_text,
        document_text=document_text,
        instructions_line=instructions_line,
    )


def build_prompt_for_request(request: EvaluationRequest) -> str:
    """Build the prompt for an EvaluationRequest."""
    return build_evaluation_prompt(
        request.document_text,
        request.rubric_text,
        request.custom_instructions,
    )
