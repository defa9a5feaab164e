"""Confidence aggregation and result-quality metrics.

Metrics:
- overall confidence: mean document confidence plus a small volume bonus
- freshness: mean recency score of the returned documents
- diversity: distinct (jurisdiction, document type) pairs per document
- completeness: share of requested jurisdictions represented in the result
- quality: mean composite ranking score

Also derives follow-up suggestions and related queries from the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

import structlog

from lexresearch.models import (
    DocumentType,
    LegalDocument,
    LegalJurisdiction,
    Precedent,
    Priority,
    ResearchRequest,
    ResearchSuggestion,
    SuggestionType,
)
from lexresearch.tools.ranking import recency_score

logger = structlog.get_logger(__name__)

VOLUME_BONUS_PER_ITEM = 0.01
VOLUME_BONUS_CAP = 0.1
STALE_FRESHNESS = 0.5


def overall_confidence(documents: Sequence[LegalDocument], precedents: Sequence[Precedent]) -> float:
    """Mean document confidence plus min(0.1, 0.01 per document/precedent), capped at 1."""
    if not documents:
        return 0.0
    average = sum(doc.confidence_score for doc in documents) / len(documents)
    volume_bonus = min(VOLUME_BONUS_CAP, (len(documents) + len(precedents)) * VOLUME_BONUS_PER_ITEM)
    return max(0.0, min(1.0, average + volume_bonus))


@dataclass
class QualityMetrics:
    quality_score: float = 0.0
    completeness: float = 0.0
    freshness: float = 0.0
    diversity_score: float = 0.0


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def compute_quality_metrics(
    documents: Sequence[LegalDocument],
    scores: Sequence[float],
    requested: Sequence[LegalJurisdiction],
    now: Optional[date] = None,
) -> QualityMetrics:
    if not documents:
        return QualityMetrics()

    freshness = sum(recency_score(doc.publication_date, now) for doc in documents) / len(documents)
    pairs = {(doc.jurisdiction, doc.document_type) for doc in documents}
    covered = {doc.jurisdiction for doc in documents} & set(requested)
    quality = sum(scores) / len(scores) if scores else 0.0

    return QualityMetrics(
        quality_score=round(_clamp(quality), 4),
        completeness=round(_clamp(len(covered) / len(requested)), 4) if requested else 0.0,
        freshness=round(_clamp(freshness), 4),
        diversity_score=round(_clamp(len(pairs) / len(documents)), 4),
    )


def related_queries(request: ResearchRequest) -> List[str]:
    queries = [
        f"{request.query} recent developments",
        f"{request.query} comparative analysis",
        f"{request.query} regulatory updates",
    ]
    if DocumentType.CASE_LAW not in request.document_types:
        queries.append(f"{request.query} case law")
    return queries


def generate_suggestions(
    request: ResearchRequest,
    documents: Sequence[LegalDocument],
    metrics: QualityMetrics,
    candidate_count: int,
) -> List[ResearchSuggestion]:
    """Follow-up suggestions driven by what the search actually returned."""
    suggestions: List[ResearchSuggestion] = []

    if len(documents) < request.max_results:
        suggestions.append(ResearchSuggestion(
            type=SuggestionType.BROADER_SEARCH,
            suggestion="Broaden the query or add related legal areas and document types",
            reason=f"Only {len(documents)} of {request.max_results} requested documents were found",
            priority=Priority.HIGH if not documents else Priority.MEDIUM,
            estimated_value=0.7,
            related_queries=[request.query.split(" ", 1)[0]] if request.query else [],
        ))

    if candidate_count > request.max_results:
        suggestions.append(ResearchSuggestion(
            type=SuggestionType.NARROWER_SEARCH,
            suggestion="Narrow the query or add a date range to focus the results",
            reason=f"{candidate_count} candidates matched; only the top {request.max_results} were kept",
            priority=Priority.LOW,
            estimated_value=0.4,
        ))

    represented = {doc.jurisdiction for doc in documents}
    missing = [j for j in request.jurisdictions if j not in represented]
    if missing:
        suggestions.append(ResearchSuggestion(
            type=SuggestionType.ALTERNATIVE_JURISDICTION,
            suggestion="Consider regional or international sources for "
            + ", ".join(j.value for j in missing),
            reason="No documents were found for some requested jurisdictions",
            priority=Priority.MEDIUM,
            estimated_value=0.6,
            related_queries=[f"{request.query} {j.name.replace('_', ' ').lower()}" for j in missing],
        ))

    if documents and metrics.freshness < STALE_FRESHNESS:
        suggestions.append(ResearchSuggestion(
            type=SuggestionType.RECENT_DEVELOPMENTS,
            suggestion="Check for recent judgments and legislative changes",
            reason="Most returned documents are several years old",
            priority=Priority.HIGH,
            estimated_value=0.8,
            related_queries=[f"{request.query} recent developments"],
        ))

    suggestions.append(ResearchSuggestion(
        type=SuggestionType.RELATED_SEARCH,
        suggestion="Consider searching for recent amendments to relevant statutes",
        reason="Recent legislative changes may affect your research",
        priority=Priority.HIGH,
        estimated_value=0.8,
        related_queries=["recent amendments", "legislative updates"],
    ))

    logger.debug("Suggestions generated", count=len(suggestions))
    return suggestions
