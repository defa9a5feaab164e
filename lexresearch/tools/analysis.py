"""Narrative research analysis via the text-completion collaborator.

This stage never raises. A structured (JSON) answer is used as-is, a
free-text answer becomes the summary, and a failure or empty answer yields a
degraded analysis whose limitations say that generation failed.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, List, Optional, Sequence

import structlog

from lexresearch.composer.prompts import build_analysis_prompt
from lexresearch.llm.completion import CompletionContext, TextCompletionClient
from lexresearch.models import LegalDocument, Precedent, ResearchAnalysis, ResearchRequest

logger = structlog.get_logger(__name__)

DIGEST_DOCUMENTS = 5
DEFAULT_METHODOLOGY = ["AI analysis", "Semantic search", "Citation analysis"]
DEFAULT_LIMITATIONS = ["Limited to available databases", "AI interpretation required"]
GENERATION_FAILED = "Analysis generation failed"

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def degraded_analysis(reason: str = GENERATION_FAILED) -> ResearchAnalysis:
    return ResearchAnalysis(
        summary="Analysis unavailable",
        confidence_level=0.5,
        limitations=[reason],
    )


def _digest(documents: Sequence[LegalDocument]) -> str:
    lines = []
    for doc in documents[:DIGEST_DOCUMENTS]:
        lines.append(
            f"- {doc.title} ({doc.jurisdiction.value}, {doc.document_type.value}, "
            f"{doc.publication_date.year}): {doc.excerpt[:200]}"
        )
    return "\n".join(lines)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def _parse_structured(text: str) -> Optional[Dict[str, Any]]:
    cleaned = _FENCE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _confidence(value: Any, default: float) -> float:
    try:
        return max(0.0, min(1.0, float(value)))
    except (TypeError, ValueError):
        return default


class AnalysisGenerator:
    """Produces a ``ResearchAnalysis`` for requests with ``include_analysis``."""

    def __init__(self, completion: TextCompletionClient):
        self.completion = completion

    async def analyze(
        self,
        documents: Sequence[LegalDocument],
        precedents: Sequence[Precedent],
        request: ResearchRequest,
    ) -> ResearchAnalysis:
        prompt = build_analysis_prompt(
            query=request.query,
            document_count=len(documents),
            precedent_count=len(precedents),
            jurisdictions=request.jurisdictions,
            legal_areas=request.legal_areas,
            document_digest=_digest(documents),
        )
        context = CompletionContext(
            jurisdiction=request.jurisdictions[0],
            language=request.languages[0],
            practice_area=request.legal_areas[0].value,
        )

        start_time = time.time()
        try:
            response = await self.completion.complete(prompt, context)
        except Exception as e:
            logger.warning("Analysis generation failed", error=str(e), error_type=type(e).__name__)
            return degraded_analysis()

        if not response or not response.strip():
            logger.warning("Analysis generation returned empty response")
            return degraded_analysis()

        data = _parse_structured(response)
        if data is None:
            logger.info("Analysis response was unstructured, using it as summary")
            analysis = ResearchAnalysis(
                summary=response.strip(),
                confidence_level=0.6,
                methodology_used=list(DEFAULT_METHODOLOGY),
                limitations=DEFAULT_LIMITATIONS + ["Unstructured analysis response"],
            )
        else:
            analysis = ResearchAnalysis(
                summary=str(data.get("summary") or "").strip() or "Analysis summary unavailable",
                key_findings=_str_list(data.get("key_findings")),
                jurisdictional_notes=_str_list(data.get("jurisdictional_notes")),
                recommended_actions=_str_list(data.get("recommended_actions")),
                research_gaps=_str_list(data.get("research_gaps")),
                confidence_level=_confidence(data.get("confidence_level"), 0.85),
                methodology_used=list(DEFAULT_METHODOLOGY),
                limitations=list(DEFAULT_LIMITATIONS),
            )

        logger.info(
            "Analysis generated",
            structured=data is not None,
            key_findings=len(analysis.key_findings),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return analysis
