"""
Routers package for FastAPI endpoints.

Organized by domain:
- analyze: Document grading endpoint
"""

from . import analyze

__all__ = ["analyze"]
