# backend/prompts/__init__.py
"""
Prompts Package

Contains LLM prompt templates for CV adaptation and ATS scoring.
"""

from .cv_prompts import (
    CV_SYSTEM_PROMPT,
    ATS_SYSTEM_PROMPT,
    LANGUAGE_NAMES,
    build_generation_prompt,
    build_scoring_prompt
)

__all__ = [
    "CV_SYSTEM_PROMPT",
    "ATS_SYSTEM_PROMPT",
    "LANGUAGE_NAMES",
    "build_generation_prompt",
    "build_scoring_prompt"
]
