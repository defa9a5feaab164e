"""Pydantic models for the legal research engine.

Closed vocabularies are ``str`` enums so that requests deserialised from JSON
validate directly against them. Request models accept both snake_case and
camelCase keys.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==============================================================================
# CLOSED VOCABULARIES
# ==============================================================================


class LegalJurisdiction(str, Enum):
    """Supported jurisdictions, valued by ISO 3166-1 alpha-2 code."""

    # Africa
    ALGERIA = "DZ"
    ANGOLA = "AO"
    BENIN = "BJ"
    BOTSWANA = "BW"
    BURKINA_FASO = "BF"
    BURUNDI = "BI"
    CAMEROON = "CM"
    CAPE_VERDE = "CV"
    CENTRAL_AFRICAN_REPUBLIC = "CF"
    CHAD = "TD"
    COMOROS = "KM"
    CONGO = "CG"
    DR_CONGO = "CD"
    DJIBOUTI = "DJ"
    EGYPT = "EG"
    EQUATORIAL_GUINEA = "GQ"
    ERITREA = "ER"
    ESWATINI = "SZ"
    ETHIOPIA = "ET"
    GABON = "GA"
    GAMBIA = "GM"
    GHANA = "GH"
    GUINEA = "GN"
    GUINEA_BISSAU = "GW"
    IVORY_COAST = "CI"
    KENYA = "KE"
    LESOTHO = "LS"
    LIBERIA = "LR"
    LIBYA = "LY"
    MADAGASCAR = "MG"
    MALAWI = "MW"
    MALI = "ML"
    MAURITANIA = "MR"
    MAURITIUS = "MU"
    MOROCCO = "MA"
    MOZAMBIQUE = "MZ"
    NAMIBIA = "NA"
    NIGER = "NE"
    NIGERIA = "NG"
    RWANDA = "RW"
    SAO_TOME_PRINCIPE = "ST"
    SENEGAL = "SN"
    SEYCHELLES = "SC"
    SIERRA_LEONE = "SL"
    SOMALIA = "SO"
    SOUTH_AFRICA = "ZA"
    SOUTH_SUDAN = "SS"
    SUDAN = "SD"
    TANZANIA = "TZ"
    TOGO = "TG"
    TUNISIA = "TN"
    UGANDA = "UG"
    ZAMBIA = "ZM"
    ZIMBABWE = "ZW"

    # Middle East
    BAHRAIN = "BH"
    CYPRUS = "CY"
    IRAN = "IR"
    IRAQ = "IQ"
    ISRAEL = "IL"
    JORDAN = "JO"
    KUWAIT = "KW"
    LEBANON = "LB"
    OMAN = "OM"
    PALESTINE = "PS"
    QATAR = "QA"
    SAUDI_ARABIA = "SA"
    SYRIA = "SY"
    TURKEY = "TR"
    UAE = "AE"
    YEMEN = "YE"

    # Cross-border
    INTERNATIONAL = "INTL"


class Language(str, Enum):
    ENGLISH = "en"
    FRENCH = "fr"
    ARABIC = "ar"
    PORTUGUESE = "pt"
    SWAHILI = "sw"
    AMHARIC = "am"
    HEBREW = "he"
    PERSIAN = "fa"
    TURKISH = "tr"
    GERMAN = "de"


class LegalArea(str, Enum):
    CORPORATE = "corporate"
    CONTRACT = "contract"
    INTELLECTUAL_PROPERTY = "intellectual_property"
    EMPLOYMENT = "employment"
    REAL_ESTATE = "real_estate"
    LITIGATION = "litigation"
    REGULATORY = "regulatory"
    TAX = "tax"
    FAMILY = "family"
    CRIMINAL = "criminal"
    INTERNATIONAL = "international"
    CONSTITUTIONAL = "constitutional"
    ADMINISTRATIVE = "administrative"
    ENVIRONMENTAL = "environmental"
    BANKING_FINANCE = "banking_finance"


class DocumentType(str, Enum):
    CASE_LAW = "case_law"
    STATUTE = "statute"
    REGULATION = "regulation"
    CONTRACT = "contract"
    LEGAL_OPINION = "legal_opinion"
    COURT_DECISION = "court_decision"
    TREATY = "treaty"
    CONSTITUTION = "constitution"
    LEGAL_BRIEF = "legal_brief"
    ACADEMIC_PAPER = "academic_paper"
    PRACTICE_GUIDE = "practice_guide"
    LEGAL_FORM = "legal_form"


CASE_DOCUMENT_TYPES = frozenset({DocumentType.CASE_LAW, DocumentType.COURT_DECISION})


class CitationFormat(str, Enum):
    BLUEBOOK = "bluebook"
    HARVARD = "harvard"
    APA = "apa"
    MLA = "mla"
    OSCOLA = "oscola"
    CUSTOM = "custom"


class ResearchComplexity(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class AuthorityLevel(str, Enum):
    SUPREME_COURT = "supreme_court"
    APPELLATE_COURT = "appellate_court"
    TRIAL_COURT = "trial_court"
    ADMINISTRATIVE = "administrative"
    ACADEMIC = "academic"
    PRACTITIONER = "practitioner"
    UNKNOWN = "unknown"


class BindingLevel(str, Enum):
    BINDING = "binding"
    PERSUASIVE = "persuasive"
    OVERRULED = "overruled"


class Region(str, Enum):
    AFRICA = "africa"
    MIDDLE_EAST = "middle_east"
    INTERNATIONAL = "international"


class SourceType(str, Enum):
    COURT_SYSTEM = "court_system"
    LEGAL_DATABASE = "legal_database"
    GOVERNMENT = "government"
    ACADEMIC = "academic"
    COMPARATIVE = "comparative"


class CredibilityRating(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


class AccessLevel(str, Enum):
    PUBLIC = "public"
    SUBSCRIPTION = "subscription"
    RESTRICTED = "restricted"


class SearchCapability(str, Enum):
    FULL_TEXT = "full_text"
    SEMANTIC = "semantic"
    CITATION = "citation"
    METADATA = "metadata"
    NATURAL_LANGUAGE = "natural_language"


class SuggestionType(str, Enum):
    RELATED_SEARCH = "related_search"
    BROADER_SEARCH = "broader_search"
    NARROWER_SEARCH = "narrower_search"
    ALTERNATIVE_JURISDICTION = "alternative_jurisdiction"
    RECENT_DEVELOPMENTS = "recent_developments"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ==============================================================================
# REQUEST MODELS
# ==============================================================================


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=False)


def _unique(values: List[Any]) -> List[Any]:
    """Collapse duplicates while keeping first-seen order."""
    seen: set = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class DateRange(_RequestModel):
    """Inclusive publication-date window."""

    date_from: date = Field(alias="from")
    date_to: date = Field(alias="to")

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.date_from > self.date_to:
            raise ValueError("Date range start must not be after its end")
        return self

    def contains(self, value: date) -> bool:
        return self.date_from <= value <= self.date_to


class ResearchRequest(_RequestModel):
    """A natural-language research query plus structured constraints."""

    query: str = Field(min_length=3, max_length=1000)
    jurisdictions: List[LegalJurisdiction] = Field(min_length=1, max_length=10)
    legal_areas: List[LegalArea] = Field(min_length=1, max_length=5)
    document_types: List[DocumentType] = Field(min_length=1)
    languages: List[Language] = Field(default_factory=lambda: [Language.ENGLISH], min_length=1)
    max_results: int = Field(default=10, ge=1, le=100)
    include_analysis: bool = False
    include_citations: bool = True
    semantic_search: bool = True
    include_related_cases: bool = False
    citation_format: CitationFormat = CitationFormat.BLUEBOOK
    complexity: ResearchComplexity = ResearchComplexity.INTERMEDIATE
    confidence_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
    date_range: Optional[DateRange] = None

    @field_validator("query")
    @classmethod
    def query_must_have_content(cls, v: str) -> str:
        stripped = v.strip()
        if len(stripped) < 3:
            raise ValueError("Query must be at least 3 characters long")
        return stripped

    @field_validator("jurisdictions", "legal_areas", "document_types", "languages")
    @classmethod
    def collapse_duplicates(cls, v: List[Any]) -> List[Any]:
        return _unique(v)


class WeightFactors(BaseModel):
    """Ranking weights.

    Weights are arbitrary non-negative scalars; ``normalized()`` rescales them
    to sum to 1.0 at use time so composite scores stay within [0, 1].
    """

    relevance: float = Field(default=0.4, ge=0.0)
    recency: float = Field(default=0.3, ge=0.0)
    authority: float = Field(default=0.2, ge=0.0)
    jurisdiction: float = Field(default=0.1, ge=0.0)

    @model_validator(mode="after")
    def check_positive_total(self) -> "WeightFactors":
        if self.total <= 0:
            raise ValueError("At least one ranking weight must be positive")
        return self

    @property
    def total(self) -> float:
        return self.relevance + self.recency + self.authority + self.jurisdiction

    def normalized(self) -> "WeightFactors":
        total = self.total
        return WeightFactors(
            relevance=self.relevance / total,
            recency=self.recency / total,
            authority=self.authority / total,
            jurisdiction=self.jurisdiction / total,
        )


class SemanticSearchOptions(BaseModel):
    """Per-request search hints shared by every search task and the ranker."""

    enable_vector_search: bool = True
    similarity_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
    max_candidates: int = Field(default=10, ge=1, le=100)
    include_conceptual_matches: bool = True
    weight_factors: WeightFactors = Field(default_factory=WeightFactors)


# ==============================================================================
# DOCUMENT MODELS
# ==============================================================================


class SourceDescriptor(BaseModel):
    """A legal source registered for one jurisdiction."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: SourceType
    jurisdiction: LegalJurisdiction
    region: Region
    credibility: CredibilityRating = CredibilityRating.HIGH
    access_level: AccessLevel = AccessLevel.PUBLIC
    capabilities: tuple[SearchCapability, ...] = (SearchCapability.FULL_TEXT,)
    api_endpoint: Optional[str] = None


class DocumentMetadata(BaseModel):
    """Structural metadata attached to a document by its source."""

    word_count: int = Field(default=0, ge=0)
    page_count: int = Field(default=0, ge=0)
    table_of_contents: List[str] = Field(default_factory=list)
    key_terms: List[str] = Field(default_factory=list)
    reading_time_minutes: int = Field(default=0, ge=0)
    checksum: Optional[str] = None
    version: Optional[str] = None
    comparative: bool = Field(default=False, description="Produced by the comparative search task")


class LegalDocument(BaseModel):
    """A candidate legal document returned by a search task."""

    id: str
    title: str
    content: str = ""
    excerpt: str = ""
    document_type: DocumentType
    jurisdiction: LegalJurisdiction
    language: Language = Language.ENGLISH
    legal_areas: List[LegalArea] = Field(default_factory=list)
    publication_date: date
    last_updated: datetime = Field(default_factory=utcnow)
    authority: AuthorityLevel = AuthorityLevel.UNKNOWN
    source: SourceDescriptor
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)


# ==============================================================================
# RESULT MODELS
# ==============================================================================


class Citation(BaseModel):
    """A rendered citation for one document."""

    id: str
    document: LegalDocument
    format: CitationFormat
    citation: str
    short_form: str
    pinpoint: Optional[str] = None
    accessed: datetime = Field(default_factory=utcnow)
    validated_at: datetime = Field(default_factory=utcnow)
    is_valid: bool = True


class Precedent(BaseModel):
    """A precedent derived from a case-law or court-decision document."""

    id: str
    case_document: LegalDocument
    principle: str
    binding_level: BindingLevel = BindingLevel.BINDING
    applicable_jurisdictions: List[LegalJurisdiction] = Field(default_factory=list)
    similar_cases: List[str] = Field(default_factory=list, description="Ids of related case documents")
    key_facts: List[str] = Field(default_factory=list)
    legal_reasoning: str = ""
    relevance_to_query: float = Field(default=0.0, ge=0.0, le=1.0)
    is_overruled: bool = False


class ResearchAnalysis(BaseModel):
    """Narrative synthesis of the research results."""

    summary: str
    key_findings: List[str] = Field(default_factory=list)
    jurisdictional_notes: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)
    research_gaps: List[str] = Field(default_factory=list)
    confidence_level: float = Field(default=0.5, ge=0.0, le=1.0)
    methodology_used: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)


class ResearchSuggestion(BaseModel):
    type: SuggestionType
    suggestion: str
    reason: str
    priority: Priority = Priority.MEDIUM
    estimated_value: float = Field(default=0.5, ge=0.0, le=1.0)
    related_queries: List[str] = Field(default_factory=list)


class ResultMetadata(BaseModel):
    search_strategy: List[str] = Field(default_factory=list)
    providers_used: List[str] = Field(default_factory=list)
    caching_used: bool = False
    fingerprint: Optional[str] = None
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    completeness: float = Field(default=0.0, ge=0.0, le=1.0)
    freshness: float = Field(default=0.0, ge=0.0, le=1.0)
    diversity_score: float = Field(default=0.0, ge=0.0, le=1.0)
    sources_failed: List[LegalJurisdiction] = Field(default_factory=list)


class ResearchResult(BaseModel):
    """The ranked, cited, deduplicated outcome of one research request."""

    request_id: str
    request: ResearchRequest
    query: str
    enhanced_query: str
    execution_time_ms: int = Field(ge=0)
    total_documents: int = Field(ge=0)
    documents: List[LegalDocument] = Field(default_factory=list)
    citations: List[Citation] = Field(default_factory=list)
    precedents: List[Precedent] = Field(default_factory=list)
    analysis: Optional[ResearchAnalysis] = None
    overall_confidence: float = Field(ge=0.0, le=1.0)
    sources: List[SourceDescriptor] = Field(default_factory=list)
    suggestions: List[ResearchSuggestion] = Field(default_factory=list)
    related_queries: List[str] = Field(default_factory=list)
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)
    completed_at: datetime = Field(default_factory=utcnow)

    def summary(self) -> Dict[str, Any]:
        """Compact view for logging."""
        return {
            "request_id": self.request_id,
            "documents": self.total_documents,
            "citations": len(self.citations),
            "precedents": len(self.precedents),
            "overall_confidence": round(self.overall_confidence, 3),
            "caching_used": self.metadata.caching_used,
        }
