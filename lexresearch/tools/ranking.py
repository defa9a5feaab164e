"""Deduplication and weighted multi-factor ranking of candidate documents.

Usage:
    from lexresearch.tools.ranking import DocumentRanker, deduplicate

    unique = deduplicate(candidates)
    ranked = DocumentRanker().rank(unique, request, options)
"""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from lexresearch.models import (
    AuthorityLevel,
    LegalDocument,
    LegalJurisdiction,
    ResearchRequest,
    SemanticSearchOptions,
    WeightFactors,
)

logger = structlog.get_logger(__name__)

RECENCY_HORIZON_YEARS = 10.0
DAYS_PER_YEAR = 365.0

AUTHORITY_SCORES: Dict[AuthorityLevel, float] = {
    AuthorityLevel.SUPREME_COURT: 1.0,
    AuthorityLevel.APPELLATE_COURT: 0.8,
    AuthorityLevel.TRIAL_COURT: 0.6,
    AuthorityLevel.ADMINISTRATIVE: 0.5,
    AuthorityLevel.ACADEMIC: 0.4,
    AuthorityLevel.PRACTITIONER: 0.3,
    AuthorityLevel.UNKNOWN: 0.2,
}
DEFAULT_AUTHORITY_SCORE = 0.2

IN_SCOPE_JURISDICTION_BONUS = 1.0
OUT_OF_SCOPE_JURISDICTION_BONUS = 0.5


def _normalize_title(title: str) -> str:
    return " ".join(title.lower().split())


def deduplicate(documents: Sequence[LegalDocument]) -> List[LegalDocument]:
    """Collapse documents sharing (title, jurisdiction).

    Titles compare case-insensitively with whitespace runs collapsed. The
    first occurrence wins and nothing is merged from the dropped copies.
    """
    seen = set()
    unique: List[LegalDocument] = []
    for doc in documents:
        key = (_normalize_title(doc.title), doc.jurisdiction)
        if key in seen:
            continue
        seen.add(key)
        unique.append(doc)
    if len(unique) != len(documents):
        logger.info("Duplicate documents removed", before=len(documents), after=len(unique))
    return unique


def today() -> date:
    return datetime.now(timezone.utc).date()


def recency_score(published: date, now: Optional[date] = None) -> float:
    """Linear decay from 1.0 (published today) to 0.0 at ten years old."""
    now = now or today()
    age_years = (now - published).days / DAYS_PER_YEAR
    return max(0.0, min(1.0, 1.0 - age_years / RECENCY_HORIZON_YEARS))


def authority_score(authority: AuthorityLevel) -> float:
    return AUTHORITY_SCORES.get(authority, DEFAULT_AUTHORITY_SCORE)


def jurisdiction_bonus(jurisdiction: LegalJurisdiction, requested: Sequence[LegalJurisdiction]) -> float:
    return IN_SCOPE_JURISDICTION_BONUS if jurisdiction in requested else OUT_OF_SCOPE_JURISDICTION_BONUS


def composite_score(
    doc: LegalDocument,
    requested: Sequence[LegalJurisdiction],
    weights: WeightFactors,
    now: Optional[date] = None,
) -> float:
    """Weighted sum of relevance, recency, authority and jurisdiction fit.

    ``weights`` are normalised here, so the result lies in [0, 1] for any
    non-negative weights.
    """
    w = weights.normalized()
    return (
        doc.relevance_score * w.relevance
        + recency_score(doc.publication_date, now) * w.recency
        + authority_score(doc.authority) * w.authority
        + jurisdiction_bonus(doc.jurisdiction, requested) * w.jurisdiction
    )


class DocumentRanker:
    """Scores, sorts and truncates the deduplicated candidate set.

    Python's sort is stable, so documents with equal composite scores keep the
    order in which the search orchestrator joined them: jurisdictions in
    request order, comparative hits last, each in its adapter's order.
    """

    def __init__(self, now: Optional[date] = None):
        self._now = now

    def now(self) -> date:
        return self._now or today()

    def score_all(
        self,
        documents: Sequence[LegalDocument],
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[Tuple[LegalDocument, float]]:
        now = self.now()
        return [
            (doc, composite_score(doc, request.jurisdictions, options.weight_factors, now))
            for doc in documents
        ]

    def rank_with_scores(
        self,
        documents: Sequence[LegalDocument],
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[Tuple[LegalDocument, float]]:
        start_time = time.time()
        scored = self.score_all(documents, request, options)
        scored.sort(key=lambda pair: pair[1], reverse=True)
        top = scored[: request.max_results]
        logger.info(
            "Documents ranked",
            input_documents=len(documents),
            output_documents=len(top),
            top_score=round(top[0][1], 4) if top else 0,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return top

    def rank(
        self,
        documents: Sequence[LegalDocument],
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        return [doc for doc, _ in self.rank_with_scores(documents, request, options)]
