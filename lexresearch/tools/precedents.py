"""Precedent extraction from case-law and court-decision documents."""

from __future__ import annotations

import re
from typing import List, Sequence

import structlog

from lexresearch.models import CASE_DOCUMENT_TYPES, BindingLevel, LegalDocument, Precedent

logger = structlog.get_logger(__name__)

MAX_KEY_FACTS = 5
REASONING_LENGTH = 400

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def _first_sentence(text: str) -> str:
    text = " ".join(text.split())
    if not text:
        return ""
    return _SENTENCE_END.split(text, maxsplit=1)[0]


def _principle(doc: LegalDocument) -> str:
    return _first_sentence(doc.excerpt) or _first_sentence(doc.content) or f"Principle established in {doc.title}"


def _reasoning(doc: LegalDocument) -> str:
    text = " ".join((doc.excerpt or doc.content).split())
    if len(text) <= REASONING_LENGTH:
        return text
    return text[:REASONING_LENGTH].rstrip() + "..."


def extract_precedents(
    documents: Sequence[LegalDocument],
    include_related_cases: bool = False,
) -> List[Precedent]:
    """Derive one precedent per case document.

    The document model carries no overruled/persuasive marker, so every
    precedent is binding within its own jurisdiction only. With
    ``include_related_cases`` the other case documents sharing a legal area
    are listed as similar cases.
    """
    cases = [doc for doc in documents if doc.document_type in CASE_DOCUMENT_TYPES]

    precedents: List[Precedent] = []
    for doc in cases:
        similar: List[str] = []
        if include_related_cases:
            areas = set(doc.legal_areas)
            similar = [other.id for other in cases if other.id != doc.id and areas & set(other.legal_areas)]
        precedents.append(
            Precedent(
                id=f"precedent_{doc.id}",
                case_document=doc,
                principle=_principle(doc),
                binding_level=BindingLevel.BINDING,
                applicable_jurisdictions=[doc.jurisdiction],
                similar_cases=similar,
                key_facts=list(doc.metadata.key_terms[:MAX_KEY_FACTS]),
                legal_reasoning=_reasoning(doc),
                relevance_to_query=doc.relevance_score,
                is_overruled=False,
            )
        )

    logger.info("Precedents extracted", case_documents=len(cases), precedents=len(precedents))
    return precedents
