"""Query enhancement via the text-completion collaborator."""

from __future__ import annotations

import time
from typing import Sequence

import structlog

from lexresearch.composer.prompts import build_enhancement_prompt
from lexresearch.llm.completion import CompletionContext, TextCompletionClient
from lexresearch.models import LegalArea

logger = structlog.get_logger(__name__)

MAX_ENHANCED_LENGTH = 1000


def _clean(text: str) -> str:
    """Keep the first non-empty line, stripped of quotes and a leading label."""
    for line in text.splitlines():
        line = line.strip().strip('"').strip()
        if not line:
            continue
        if line.lower().startswith("enhanced query:"):
            line = line.split(":", 1)[1].strip().strip('"').strip()
        if line:
            return line[:MAX_ENHANCED_LENGTH]
    return ""


class QueryEnhancer:
    """Turns a raw query plus legal-area hints into an enhanced search string.

    Any collaborator failure, or an empty answer, falls back to the original
    query. No retries happen here.
    """

    def __init__(self, completion: TextCompletionClient):
        self.completion = completion

    async def enhance(self, query: str, legal_areas: Sequence[LegalArea]) -> str:
        prompt = build_enhancement_prompt(query, legal_areas)
        context = CompletionContext(
            practice_area=legal_areas[0].value if legal_areas else "legal_research",
        )
        start_time = time.time()
        try:
            response = await self.completion.complete(prompt, context)
        except Exception as e:
            logger.warning(
                "Query enhancement failed, using original query",
                error=str(e),
                error_type=type(e).__name__,
            )
            return query

        enhanced = _clean(response or "")
        if not enhanced:
            logger.warning("Query enhancement returned empty response, using original query")
            return query

        logger.info(
            "Query enhanced",
            query_preview=query[:50],
            enhanced_preview=enhanced[:80],
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return enhanced
