"""
Rubric Grader Backend Application.

A FastAPI service that grades uploaded documents against a rubric
using a generative-language model (Gemini).
"""

__version__ = "1.0.0"
