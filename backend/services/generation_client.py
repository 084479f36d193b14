# backend/services/generation_client.py
"""
Generation Service Client

Thin async wrapper around the OpenAI chat completions API used for both CV
adaptation and ATS scoring.

Features:
- One shared AsyncOpenAI client per process
- Retries with linear backoff (1s, 2s, ...) on any error
- Markdown code-fence stripping before JSON parsing
"""

import re
import asyncio
import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from config import get_settings
from services.errors import GenerationServiceError

logger = logging.getLogger(__name__)

LEADING_JSON_FENCE_RE = re.compile(r"^```json\s*", re.IGNORECASE)
LEADING_FENCE_RE = re.compile(r"^```\s*")
TRAILING_FENCE_RE = re.compile(r"```\s*$")


def clean_json(raw: str) -> str:
    """
    Strip a ```json ... ``` wrapper from a model response.

    The model sometimes wraps JSON in a markdown code block even when told
    not to; every response must go through this before json.loads().
    """
    text = raw.strip()
    text = LEADING_JSON_FENCE_RE.sub("", text)
    text = LEADING_FENCE_RE.sub("", text)
    text = TRAILING_FENCE_RE.sub("", text)
    return text.strip()


class GenerationClient:
    """
    Calls the generation service with a system prompt and a user message.

    Attributes:
        MAX_ATTEMPTS: total attempts per call, first one included
        DEFAULT_MAX_TOKENS: response budget when the caller gives none
    """

    MAX_ATTEMPTS = 2
    DEFAULT_MAX_TOKENS = 4096

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[Any] = None,
        backoff_seconds: float = 1.0,
        temperature: float = 0.3
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key (uses settings if not provided)
            model: chat model name (uses settings if not provided)
            client: pre-built AsyncOpenAI-compatible client
            backoff_seconds: base delay; attempt N waits N * backoff_seconds
            temperature: sampling temperature for every call
        """
        settings = get_settings()
        self.model = model or settings.openai_model
        self.backoff_seconds = backoff_seconds
        self.temperature = temperature

        if client is None:
            api_key = api_key or settings.openai_api_key
            if not api_key:
                logger.warning("No OpenAI API key found - generation calls will fail")
            client = AsyncOpenAI(api_key=api_key)
        self.client = client

        logger.info(f"GenerationClient initialized with model {self.model}")

    async def call(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = DEFAULT_MAX_TOKENS
    ) -> str:
        """
        Send one request, retrying on failure.

        Args:
            system_prompt: instructions defining the task and output shape
            user_prompt: request-specific data
            max_tokens: response budget

        Returns:
            The raw response text

        Raises:
            GenerationServiceError: if every attempt failed
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    temperature=self.temperature,
                    max_tokens=max_tokens,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                )
                content = response.choices[0].message.content
                if not isinstance(content, str) or not content.strip():
                    raise ValueError("Unexpected empty response from generation service")
                return content

            except Exception as e:
                last_error = e
                logger.warning(f"Generation call attempt {attempt}/{self.MAX_ATTEMPTS} failed: {e}")

                if attempt < self.MAX_ATTEMPTS:
                    await asyncio.sleep(self.backoff_seconds * attempt)

        raise GenerationServiceError(
            f"Generation service failed after {self.MAX_ATTEMPTS} attempts: {last_error}"
        )


# Singleton instance
_generation_client_instance: Optional[GenerationClient] = None


def get_generation_client() -> GenerationClient:
    """
    Get or create singleton GenerationClient instance.

    Returns:
        Shared GenerationClient instance
    """
    global _generation_client_instance

    if _generation_client_instance is None:
        _generation_client_instance = GenerationClient()

    return _generation_client_instance


def reset_generation_client():
    """Reset the singleton instance (useful for testing)."""
    global _generation_client_instance
    _generation_client_instance = None
    logger.info("GenerationClient singleton reset")
