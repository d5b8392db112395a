"""
Services package for the rubric grader.

Contains:
- text_extractor: PDF/DOCX/TXT text extraction
- ai: Gemini integration for evaluation and reply normalization
- analysis: The pipeline shared by the server and serverless shells
"""

from .ai import AIService
from .text_extractor import TextExtractor

__all__ = ["AIService", "TextExtractor"]
