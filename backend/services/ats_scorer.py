# backend/services/ats_scorer.py
"""
ATS Scorer Service

Asks the generation service to judge how well a CV matches a vacancy
(keyword density, structure, gaps) and returns a validated
AtsScoreResponse.

The keyword-overlap report in `ats.py` is the local, LLM-free counterpart.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from prompts.cv_prompts import ATS_SYSTEM_PROMPT, build_scoring_prompt
from schemas import AtsScoreResponse
from services.errors import MalformedResponseError
from services.generation_client import GenerationClient, clean_json, get_generation_client
from services.outcome import SoftResult

logger = logging.getLogger(__name__)

SCORING_MAX_TOKENS = 1024


def parse_ats_response(raw: str) -> AtsScoreResponse:
    """
    Parse a scoring response.

    Raises:
        MalformedResponseError: not JSON, or not the AtsScoreResponse shape
    """
    try:
        data = json.loads(clean_json(raw))
        return AtsScoreResponse.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedResponseError(f"Invalid ATS score response: {e}", raw=raw) from e


class AtsScorer:
    def __init__(self, client: Optional[GenerationClient] = None):
        self.client = client or get_generation_client()

    async def score(self, cv_content: Dict[str, Any], job_description: str) -> AtsScoreResponse:
        """
        Score a CV against a job description.

        Args:
            cv_content: GeneratedCvContent as a JSON-ready dict
            job_description: the vacancy text

        Returns:
            AtsScoreResponse with score, matched/missing keywords and suggestions

        Raises:
            GenerationServiceError: the service call failed on every attempt
            MalformedResponseError: the response could not be parsed
        """
        raw = await self.client.call(
            ATS_SYSTEM_PROMPT,
            build_scoring_prompt(cv_content, job_description),
            max_tokens=SCORING_MAX_TOKENS,
        )
        result = parse_ats_response(raw)
        logger.info(f"ATS score computed: {result.score}")
        return result

    async def try_score(self, cv_content: Dict[str, Any], job_description: str) -> SoftResult[AtsScoreResponse]:
        """Same as score(), but failures come back as a failed SoftResult."""
        try:
            return SoftResult.success(await self.score(cv_content, job_description))
        except Exception as e:
            logger.warning(f"ATS scoring skipped: {e}")
            return SoftResult.failure(e)
