# backend/services/cv_generator.py
"""
CV Generator Service

Coordinates the adaptation of a user's profile to a vacancy:

    profile lookup -> cache check -> generation call -> parse -> ATS score -> persist

Identical (profile, job description) pairs are answered from the newest
stored CV without calling the generation service. The cache key is only a
lookup key: two concurrent identical requests can both miss and both write
a row, which later reads resolve by taking the newest one.
"""

import json
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from models import CvRecord
from prompts.cv_prompts import CV_SYSTEM_PROMPT, build_generation_prompt
from schemas import GeneratedCvContent
from services.ats_scorer import AtsScorer
from services.errors import (
    InvalidJobDescriptionError,
    MalformedResponseError,
    ProfileIncompleteError,
)
from services.generation_client import GenerationClient, clean_json
from services.stores import CvStore, ProfileStore, profile_to_payload

logger = logging.getLogger(__name__)

MIN_JOB_DESCRIPTION_LENGTH = 50
MAX_JOB_DESCRIPTION_LENGTH = 5000
CACHE_KEY_SEPARATOR = "::"


def generate_cache_key(profile_id: str, job_description: str) -> str:
    """
    Deterministic fingerprint of a (profile, vacancy) pair.

    Returns:
        SHA-256 of "profile_id::job_description" as 64 lowercase hex chars
    """
    payload = f"{profile_id}{CACHE_KEY_SEPARATOR}{job_description}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def validate_job_description(job_description: str) -> str:
    """
    Raises:
        InvalidJobDescriptionError: length outside [50, 5000] characters
    """
    length = len(job_description or "")
    if length < MIN_JOB_DESCRIPTION_LENGTH or length > MAX_JOB_DESCRIPTION_LENGTH:
        raise InvalidJobDescriptionError(
            f"Job description must be between {MIN_JOB_DESCRIPTION_LENGTH} and "
            f"{MAX_JOB_DESCRIPTION_LENGTH} characters (got {length})"
        )
    return job_description


def parse_generated_cv(raw: str) -> Dict[str, Any]:
    """
    Parse and validate a generation response.

    Returns:
        The CV document as a JSON-ready dict (camelCase keys)

    Raises:
        MalformedResponseError: not JSON, or not the GeneratedCvContent shape
    """
    try:
        data = json.loads(clean_json(raw))
        content = GeneratedCvContent.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedResponseError(f"Generation service returned an invalid CV: {e}", raw=raw) from e
    return content.model_dump(exclude_none=True)


@dataclass
class GenerationResult:
    content: Dict[str, Any]
    cv_id: str
    from_cache: bool
    ats_score: Optional[int] = None


class CvGenerator:
    """
    Generates (or recalls) the CV adapted to one vacancy.

    Dependencies are passed in once at startup and shared by every request.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        cvs: CvStore,
        client: GenerationClient,
        scorer: Optional[AtsScorer] = None
    ):
        self.profiles = profiles
        self.cvs = cvs
        self.client = client
        self.scorer = scorer or AtsScorer(client)

    async def generate(
        self,
        user_id: str,
        job_description: str,
        language: str = "es",
        template: str = "classic"
    ) -> GenerationResult:
        """
        Produce the CV for this user and vacancy.

        Args:
            user_id: owner of the profile
            job_description: vacancy text, 50-5000 characters
            language: output language code ("es" or "en")
            template: PDF template remembered with the record

        Returns:
            GenerationResult; from_cache=True means no external call and no write

        Raises:
            InvalidJobDescriptionError: bad length, checked before any I/O
            ProfileIncompleteError: the user has no saved profile
            GenerationServiceError: generation call failed on every attempt
            MalformedResponseError: generation response could not be parsed
        """
        validate_job_description(job_description)

        profile = await self.profiles.get_by_user(user_id)
        if profile is None:
            raise ProfileIncompleteError()

        cache_key = generate_cache_key(profile.id, job_description)
        cached = await self.cvs.find_latest_by_cache_key(user_id, cache_key)
        if cached is not None:
            logger.info(f"Cache hit for user {user_id} (cv {cached.id})")
            return GenerationResult(
                content=cached.generated_content,
                cv_id=cached.id,
                from_cache=True,
                ats_score=cached.ats_score,
            )

        logger.info(f"Cache miss for user {user_id}, calling generation service")
        raw = await self.client.call(
            CV_SYSTEM_PROMPT,
            build_generation_prompt(job_description, profile_to_payload(profile), language),
        )
        content = parse_generated_cv(raw)

        scored = await self.scorer.try_score(content, job_description)
        ats_score = scored.value.score if scored.ok else 0

        record = await self.cvs.add(CvRecord(
            user_id=user_id,
            job_description=job_description,
            cache_key=cache_key,
            generated_content=content,
            ats_score=ats_score,
            template=template,
            language=language,
        ))
        logger.info(f"CV {record.id} generated for user {user_id} (ATS score {ats_score})")

        return GenerationResult(
            content=record.generated_content,
            cv_id=record.id,
            from_cache=False,
            ats_score=ats_score,
        )
