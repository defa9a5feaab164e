"""Source registry: the static jurisdiction -> source mapping.

Built once at process start and shared read-only by every request. There is
no mutation API; ``SourceRegistry`` wraps a ``MappingProxyType``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

import structlog

from lexresearch.models import (
    AccessLevel,
    CredibilityRating,
    DocumentType,
    LegalArea,
    LegalJurisdiction,
    Region,
    SearchCapability,
    SourceDescriptor,
    SourceType,
)

logger = structlog.get_logger(__name__)

J = LegalJurisdiction

AFRICAN_JURISDICTIONS = frozenset({
    J.ALGERIA, J.ANGOLA, J.BENIN, J.BOTSWANA, J.BURKINA_FASO, J.BURUNDI,
    J.CAMEROON, J.CAPE_VERDE, J.CENTRAL_AFRICAN_REPUBLIC, J.CHAD, J.COMOROS,
    J.CONGO, J.DR_CONGO, J.DJIBOUTI, J.EGYPT, J.EQUATORIAL_GUINEA, J.ERITREA,
    J.ESWATINI, J.ETHIOPIA, J.GABON, J.GAMBIA, J.GHANA, J.GUINEA,
    J.GUINEA_BISSAU, J.IVORY_COAST, J.KENYA, J.LESOTHO, J.LIBERIA, J.LIBYA,
    J.MADAGASCAR, J.MALAWI, J.MALI, J.MAURITANIA, J.MAURITIUS, J.MOROCCO,
    J.MOZAMBIQUE, J.NAMIBIA, J.NIGER, J.NIGERIA, J.RWANDA, J.SAO_TOME_PRINCIPE,
    J.SENEGAL, J.SEYCHELLES, J.SIERRA_LEONE, J.SOMALIA, J.SOUTH_AFRICA,
    J.SOUTH_SUDAN, J.SUDAN, J.TANZANIA, J.TOGO, J.TUNISIA, J.UGANDA, J.ZAMBIA,
    J.ZIMBABWE,
})

MIDDLE_EASTERN_JURISDICTIONS = frozenset({
    J.BAHRAIN, J.CYPRUS, J.IRAN, J.IRAQ, J.ISRAEL, J.JORDAN, J.KUWAIT,
    J.LEBANON, J.OMAN, J.PALESTINE, J.QATAR, J.SAUDI_ARABIA, J.SYRIA,
    J.TURKEY, J.UAE, J.YEMEN,
})

COMPARATIVE_SOURCE = SourceDescriptor(
    id="source_comparative",
    name="Comparative Law Index",
    type=SourceType.COMPARATIVE,
    jurisdiction=J.INTERNATIONAL,
    region=Region.INTERNATIONAL,
    credibility=CredibilityRating.HIGH,
    capabilities=(SearchCapability.SEMANTIC, SearchCapability.NATURAL_LANGUAGE),
)

LEGAL_AREA_DESCRIPTIONS: Mapping[LegalArea, str] = MappingProxyType({
    LegalArea.CORPORATE: "Corporate law, business structures, and commercial transactions",
    LegalArea.CONTRACT: "Contract law, agreement analysis, and commercial contracts",
    LegalArea.INTELLECTUAL_PROPERTY: "Patents, trademarks, copyrights, and IP protection",
    LegalArea.EMPLOYMENT: "Labor law, employment contracts, and workplace regulations",
    LegalArea.REAL_ESTATE: "Property law, real estate transactions, and land rights",
    LegalArea.LITIGATION: "Court procedures, dispute resolution, and civil litigation",
    LegalArea.REGULATORY: "Regulatory compliance and administrative law",
    LegalArea.TAX: "Tax law, fiscal regulations, and tax planning",
    LegalArea.FAMILY: "Family law, divorce, custody, and domestic relations",
    LegalArea.CRIMINAL: "Criminal law, criminal procedures, and penal codes",
    LegalArea.INTERNATIONAL: "International law, treaties, and cross-border legal issues",
    LegalArea.CONSTITUTIONAL: "Constitutional law and fundamental rights",
    LegalArea.ADMINISTRATIVE: "Administrative law and government procedures",
    LegalArea.ENVIRONMENTAL: "Environmental law and sustainability regulations",
    LegalArea.BANKING_FINANCE: "Banking law, financial regulations, and securities",
})

DOCUMENT_TYPE_DESCRIPTIONS: Mapping[DocumentType, str] = MappingProxyType({
    DocumentType.CASE_LAW: "Court decisions and judicial precedents",
    DocumentType.STATUTE: "Legislative acts and statutory provisions",
    DocumentType.REGULATION: "Administrative regulations and rules",
    DocumentType.CONTRACT: "Contractual agreements and commercial contracts",
    DocumentType.LEGAL_OPINION: "Legal opinions and advisory documents",
    DocumentType.COURT_DECISION: "Court judgments and rulings",
    DocumentType.TREATY: "International treaties and agreements",
    DocumentType.CONSTITUTION: "Constitutional texts and amendments",
    DocumentType.LEGAL_BRIEF: "Legal briefs and court submissions",
    DocumentType.ACADEMIC_PAPER: "Legal scholarship and academic research",
    DocumentType.PRACTICE_GUIDE: "Legal practice guides and procedures",
    DocumentType.LEGAL_FORM: "Legal forms and templates",
})


def region_for(jurisdiction: LegalJurisdiction) -> Region:
    """Return the region a jurisdiction belongs to."""
    if jurisdiction in AFRICAN_JURISDICTIONS:
        return Region.AFRICA
    if jurisdiction in MIDDLE_EASTERN_JURISDICTIONS:
        return Region.MIDDLE_EAST
    return Region.INTERNATIONAL


def describe_legal_area(area: LegalArea) -> str:
    return LEGAL_AREA_DESCRIPTIONS.get(area, "Legal area description not available")


def describe_document_type(document_type: DocumentType) -> str:
    return DOCUMENT_TYPE_DESCRIPTIONS.get(document_type, "Document type description not available")


def _display_name(jurisdiction: LegalJurisdiction) -> str:
    return jurisdiction.name.replace("_", " ").title()


def default_source_for(
    jurisdiction: LegalJurisdiction, api_endpoint: Optional[str] = None
) -> SourceDescriptor:
    """Build the standard legal-database descriptor for a jurisdiction."""
    region = region_for(jurisdiction)
    if jurisdiction is J.INTERNATIONAL:
        return SourceDescriptor(
            id="source_intl",
            name="International Treaties and Courts",
            type=SourceType.LEGAL_DATABASE,
            jurisdiction=jurisdiction,
            region=region,
            credibility=CredibilityRating.VERY_HIGH,
            capabilities=(SearchCapability.FULL_TEXT, SearchCapability.CITATION, SearchCapability.SEMANTIC),
            api_endpoint=api_endpoint,
        )
    return SourceDescriptor(
        id=f"source_{jurisdiction.value.lower()}",
        name=f"{_display_name(jurisdiction)} Legal Database",
        type=SourceType.LEGAL_DATABASE,
        jurisdiction=jurisdiction,
        region=region,
        credibility=CredibilityRating.HIGH,
        access_level=AccessLevel.PUBLIC,
        capabilities=(SearchCapability.FULL_TEXT, SearchCapability.SEMANTIC),
        api_endpoint=api_endpoint,
    )


class SourceRegistry:
    """Immutable lookup from jurisdiction to its source descriptor."""

    def __init__(self, sources: Mapping[LegalJurisdiction, SourceDescriptor]):
        self._sources: Mapping[LegalJurisdiction, SourceDescriptor] = MappingProxyType(dict(sources))

    def sources_for(self, jurisdiction: LegalJurisdiction) -> SourceDescriptor:
        """Return the descriptor for ``jurisdiction``; ``KeyError`` if unsupported."""
        return self._sources[jurisdiction]

    @property
    def comparative_source(self) -> SourceDescriptor:
        return COMPARATIVE_SOURCE

    def __contains__(self, jurisdiction: object) -> bool:
        return jurisdiction in self._sources

    def __iter__(self) -> Iterator[LegalJurisdiction]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def catalogue(self) -> Dict[str, List[Dict[str, str]]]:
        """Supported jurisdictions grouped by region."""
        grouped: Dict[str, List[Dict[str, str]]] = {region.value: [] for region in Region}
        for jurisdiction, source in self._sources.items():
            grouped[source.region.value].append({
                "code": jurisdiction.value,
                "name": _display_name(jurisdiction),
                "source": source.name,
            })
        return grouped


def build_default_registry(endpoints: Optional[Mapping[LegalJurisdiction, str]] = None) -> SourceRegistry:
    """Build the registry covering every supported jurisdiction.

    Args:
        endpoints: Optional per-jurisdiction API endpoints for HTTP adapters.
    """
    endpoints = endpoints or {}
    sources = {j: default_source_for(j, endpoints.get(j)) for j in LegalJurisdiction}
    logger.info(
        "Source registry initialized",
        jurisdictions=len(sources),
        with_endpoints=len(endpoints),
    )
    return SourceRegistry(sources)
