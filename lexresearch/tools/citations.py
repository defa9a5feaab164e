"""Citation rendering.

Formats only change the template; every citation points at the same document
object. Citations are marked valid when generated; no external verification
happens here.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import structlog

from lexresearch.models import Citation, CitationFormat, LegalDocument, utcnow

logger = structlog.get_logger(__name__)

SHORT_FORM_LENGTH = 50

CITATION_TEMPLATES: Dict[CitationFormat, str] = {
    CitationFormat.BLUEBOOK: "{title}, {jurisdiction} ({year})",
    CitationFormat.HARVARD: "{source} ({year}) {title}, {jurisdiction}",
    CitationFormat.APA: "{title}. ({year}). {jurisdiction}: {source}",
    CitationFormat.MLA: '"{title}." {source}, {jurisdiction}, {year}',
    CitationFormat.OSCOLA: "{title} [{year}] ({jurisdiction})",
    CitationFormat.CUSTOM: "{title} | {jurisdiction} | {year} | {source}",
}


def jurisdiction_label(doc: LegalDocument) -> str:
    return doc.jurisdiction.name.replace("_", " ").title()


def format_citation(doc: LegalDocument, citation_format: CitationFormat) -> str:
    """Long form: always carries title, jurisdiction and publication year."""
    template = CITATION_TEMPLATES.get(citation_format, CITATION_TEMPLATES[CitationFormat.BLUEBOOK])
    return template.format(
        title=doc.title.strip(),
        jurisdiction=jurisdiction_label(doc),
        year=doc.publication_date.year,
        source=doc.source.name,
    )


def format_short_citation(doc: LegalDocument) -> str:
    title = doc.title.strip()
    if len(title) <= SHORT_FORM_LENGTH:
        return title
    return f"{title[:SHORT_FORM_LENGTH].rstrip()}..."


def generate_citations(documents: Sequence[LegalDocument], citation_format: CitationFormat) -> List[Citation]:
    """One citation per document, in document order."""
    generated_at = utcnow()
    citations = [
        Citation(
            id=f"citation_{doc.id}",
            document=doc,
            format=citation_format,
            citation=format_citation(doc, citation_format),
            short_form=format_short_citation(doc),
            accessed=generated_at,
            validated_at=generated_at,
            is_valid=True,
        )
        for doc in documents
    ]
    logger.info("Citations generated", count=len(citations), format=citation_format.value)
    return citations
