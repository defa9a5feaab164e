"""Pipeline state for the research LangGraph orchestrator.

The state flows through every node of the graph; nodes return partial
updates which LangGraph merges back into it.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from lexresearch.models import (
    Citation,
    LegalDocument,
    LegalJurisdiction,
    Precedent,
    ResearchAnalysis,
    ResearchRequest,
    ResearchResult,
    SemanticSearchOptions,
    SourceDescriptor,
)


class ResearchState(BaseModel):
    """Everything one research request accumulates between stages."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state_version: Literal["v1"] = Field(default="v1", description="State schema version")
    request_id: str = Field(description="Per-request identifier")
    request: ResearchRequest
    options: SemanticSearchOptions
    started_at: float = Field(description="time.time() when the pipeline started")

    # 01_enhance_query
    enhanced_query: Optional[str] = None

    # 02_search_parallel
    candidates: List[LegalDocument] = Field(default_factory=list)
    contributing_sources: List[SourceDescriptor] = Field(default_factory=list)
    failed_jurisdictions: List[LegalJurisdiction] = Field(default_factory=list)
    comparative_ran: bool = False
    providers_used: List[str] = Field(default_factory=list)

    # 03_deduplicate
    unique_documents: List[LegalDocument] = Field(default_factory=list)

    # 04_rank
    ranked_documents: List[LegalDocument] = Field(default_factory=list)
    ranked_scores: List[float] = Field(default_factory=list)

    # 05_enrich
    citations: List[Citation] = Field(default_factory=list)
    precedents: List[Precedent] = Field(default_factory=list)
    analysis: Optional[ResearchAnalysis] = None

    # 06_aggregate
    result: Optional[ResearchResult] = None
