# backend/prompts/cv_prompts.py
"""
CV Prompt Templates

System instructions and user messages sent to the generation service for
CV adaptation and ATS scoring. Both prompts ask for bare JSON matching the
GeneratedCvContent and AtsScoreResponse shapes in `schemas.py`.

Usage:
    from prompts.cv_prompts import CV_SYSTEM_PROMPT, build_generation_prompt

    user_prompt = build_generation_prompt(job_description, profile_data, "en")
"""

import json
from typing import Any, Dict

LANGUAGE_NAMES = {
    "es": "Spanish",
    "en": "English",
}

CV_SYSTEM_PROMPT = """
You are an expert professional CV writer and ATS (Applicant Tracking System) optimization specialist.
Your task is to adapt the user's CV to the provided job offer.

Strict rules:
- NEVER invent or alter any truthful information provided by the user.
- ALWAYS include the user's personal data exactly as provided (fullName, jobTitle, phone, email, city, linkedin, portfolio). Never omit or modify them.
- Prioritize and reframe the most relevant experience for the position.
- Keep the experience entries in the order the user gave them.
- Naturally integrate the key keywords from the vacancy into the text.
- Clearly separate skills into technicalSkills and softSkills.
- Use dates in consistent format: "Jan 2022 - Mar 2024".
- Avoid tables, multiple columns, icons or decorative graphics.
- The result must be clean, selectable text compatible with ATS parsers.
- Write the entire CV content in the language given as OUTPUT LANGUAGE in the user message, whatever the language of the job description.
- Return the response ONLY as valid JSON, with no additional text, no markdown, no code blocks.

Mandatory JSON structure:
{
  "personalInfo": { "fullName": "...", "jobTitle": "...", "phone": "...", "email": "...", "city": "...", "linkedin": "...", "portfolio": "..." },
  "summary": "...",
  "experience": [{ "company": "...", "position": "...", "startDate": "...", "endDate": "...", "description": "..." }],
  "education": [{ "institution": "...", "degree": "...", "startDate": "...", "endDate": "..." }],
  "technicalSkills": ["..."],
  "softSkills": ["..."],
  "complementaryEducation": [{ "institution": "...", "program": "...", "year": "..." }],
  "languages": [{ "name": "...", "level": "..." }],
  "certifications": ["..."]
}
""".strip()

ATS_SYSTEM_PROMPT = """
You are an ATS compatibility analyzer. Your task is to compare a CV with a job description
and return a score from 0 to 100 along with improvement suggestions.

Rules:
- Analyze the density and relevance of matching keywords.
- Evaluate the structure and readability of the CV.
- If the score is below 80, include at least 3 concrete improvement suggestions.
- Return ONLY valid JSON with this exact shape, no additional text, no markdown, no code blocks:
{
  "score": number,
  "matchedKeywords": [string, ...],
  "missingKeywords": [string, ...],
  "suggestions": [string, ...]
}
""".strip()


def build_generation_prompt(job_description: str, profile: Dict[str, Any], language: str) -> str:
    """
    User message for CV adaptation: the vacancy, the full profile and the
    output language.
    """
    language_name = LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["es"])
    return f"""
JOB DESCRIPTION:
{job_description}

USER PROFILE (JSON):
{json.dumps(profile, ensure_ascii=False, default=str)}

OUTPUT LANGUAGE: {language_name}

Return the adapted CV as JSON following exactly the mandatory structure.
""".strip()


def build_scoring_prompt(cv_content: Dict[str, Any], job_description: str) -> str:
    return f"""
CANDIDATE CV (JSON):
{json.dumps(cv_content, ensure_ascii=False)}

JOB DESCRIPTION:
{job_description}

Analyze the compatibility (0-100), list the matching keywords, the missing ones and give concrete suggestions.
Respond only with the JSON structure described in your instructions.
""".strip()
