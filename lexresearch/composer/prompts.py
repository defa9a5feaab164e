"""Prompt templates for query enhancement and research analysis."""

from __future__ import annotations

from typing import Iterable

from langchain_core.prompts import PromptTemplate

# ==============================================================================
# QUERY ENHANCEMENT
# ==============================================================================

QUERY_ENHANCEMENT_TEMPLATE = PromptTemplate.from_template(
    """As a legal research expert, enhance this search query for better legal database results.

Original Query: "{query}"
Legal Areas: {legal_areas}

Consider:
1. Legal terminology specific to the legal areas above
2. Alternative phrasings a court or legislature would use
3. Related legal concepts
4. Key search terms

Respond with a single enhanced search query on one line, with no commentary.

Enhanced query:"""
)

# ==============================================================================
# RESEARCH ANALYSIS
# ==============================================================================

ANALYSIS_TEMPLATE = PromptTemplate.from_template(
    """Analyze these legal research results.

Query: {query}
Documents Found: {document_count}
Precedents Found: {precedent_count}
Jurisdictions: {jurisdictions}
Legal Areas: {legal_areas}

Top documents:
{document_digest}

Return a JSON object with these keys:
- "summary": string, summary of findings
- "key_findings": list of strings, key legal principles
- "jurisdictional_notes": list of strings, differences between jurisdictions
- "recommended_actions": list of strings
- "research_gaps": list of strings
- "confidence_level": number between 0 and 1

Return only the JSON object."""
)


def _join(values: Iterable[object]) -> str:
    return ", ".join(getattr(v, "value", str(v)) for v in values)


def build_enhancement_prompt(query: str, legal_areas: Iterable[object]) -> str:
    return QUERY_ENHANCEMENT_TEMPLATE.format(query=query, legal_areas=_join(legal_areas))


def build_analysis_prompt(
    query: str,
    document_count: int,
    precedent_count: int,
    jurisdictions: Iterable[object],
    legal_areas: Iterable[object],
    document_digest: str,
) -> str:
    return ANALYSIS_TEMPLATE.format(
        query=query,
        document_count=document_count,
        precedent_count=precedent_count,
        jurisdictions=_join(jurisdictions),
        legal_areas=_join(legal_areas),
        document_digest=document_digest or "(none)",
    )
