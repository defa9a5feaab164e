"""Text-completion collaborator used by the query enhancer and analysis generator.

The engine only depends on the ``TextCompletionClient`` protocol. The OpenAI
implementation owns timeouts and retries; callers never retry and treat every
``CollaboratorFailure`` as non-fatal.
"""

from __future__ import annotations

import time
from typing import Any, Literal, Optional, Protocol, runtime_checkable

import openai
import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from lexresearch.errors import CollaboratorFailure
from lexresearch.models import Language, LegalJurisdiction
from lexresearch.usage import current_tally
from libs.common.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a legal research assistant covering African, Middle Eastern and "
    "international law. Answer precisely and only with the requested content."
)

_RETRYABLE = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class CompletionContext(BaseModel):
    """Hints passed alongside every prompt."""

    jurisdiction: LegalJurisdiction = LegalJurisdiction.INTERNATIONAL
    language: Language = Language.ENGLISH
    practice_area: str = "legal_research"
    confidentiality_level: Literal["public", "confidential", "privileged"] = "public"

    def describe(self) -> str:
        return (
            f"Jurisdiction: {self.jurisdiction.value}; language: {self.language.value}; "
            f"practice area: {self.practice_area}; confidentiality: {self.confidentiality_level}"
        )


@runtime_checkable
class TextCompletionClient(Protocol):
    provider: str
    model: str

    async def complete(self, prompt: str, context: CompletionContext) -> str:
        ...


class OpenAICompletionClient:
    """Chat-completions client with per-call timeout and bounded retries."""

    provider = "openai"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = settings or get_settings()
        self.model = self.settings.openai_model
        self.client = client or AsyncOpenAI(
            api_key=self.settings.openai_api_key,
            timeout=self.settings.completion_timeout_seconds,
            max_retries=0,  # retries handled below
        )

    async def _create(self, prompt: str, context: CompletionContext) -> Any:
        return await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": f"{SYSTEM_PROMPT}\n{context.describe()}"},
                {"role": "user", "content": prompt},
            ],
            temperature=self.settings.completion_temperature,
            max_tokens=self.settings.completion_max_tokens,
        )

    async def complete(self, prompt: str, context: CompletionContext) -> str:
        """Return the completion text.

        Raises:
            CollaboratorFailure: on timeout, exhausted retries, or an empty
                or malformed response.
        """
        start_time = time.time()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.completion_max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(_RETRYABLE),
                reraise=True,
            ):
                with attempt:
                    response = await self._create(prompt, context)
        except openai.OpenAIError as e:
            logger.warning(
                "Text completion failed",
                model=self.model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CollaboratorFailure("text_completion", str(e)) from e

        usage = getattr(response, "usage", None)
        tally = current_tally()
        if tally is not None:
            tally.add(
                self.provider,
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            )

        try:
            text = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise CollaboratorFailure("text_completion", "Malformed completion response") from e

        logger.info(
            "Text completion finished",
            model=self.model,
            duration_ms=round((time.time() - start_time) * 1000, 2),
            total_tokens=getattr(usage, "total_tokens", 0) if usage else 0,
            practice_area=context.practice_area,
        )
        return text.strip()
