"""
Pytest configuration and fixtures for the research engine tests.

Provides shared fixtures for:
- Environment isolation and fresh settings
- Fake Redis client (fakeredis)
- Request and document factories
- Fake search and text-completion collaborators
"""

import asyncio
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Union

import pytest

from lexresearch.models import (
    AuthorityLevel,
    DocumentMetadata,
    DocumentType,
    Language,
    LegalArea,
    LegalDocument,
    LegalJurisdiction,
    ResearchRequest,
    SemanticSearchOptions,
)
from lexresearch.registry import build_default_registry, default_source_for
from lexresearch.usage import current_tally
from libs.common.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("LEXRESEARCH_APP_ENV", "test")
    monkeypatch.delenv("LEXRESEARCH_REDIS_URL", raising=False)
    monkeypatch.delenv("LEXRESEARCH_CORPUS_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_redis_singleton(monkeypatch):
    """Each test starts without a shared Redis client or tripped circuit breaker."""
    from libs.caching import redis_client as redis_client_module

    monkeypatch.setattr(redis_client_module, "_redis_client", None)
    monkeypatch.setattr(redis_client_module, "_connection_failed", False)


@pytest.fixture
def settings() -> Settings:
    return Settings(app_env="test", redis_url=None, log_json=False)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
async def redis_client():
    """
    Provide fakeredis client for testing.

    This avoids requiring actual Redis server during tests.
    """
    from fakeredis import aioredis as fakeredis

    client = fakeredis.FakeRedis(decode_responses=True)

    yield client

    await client.flushdb()
    await client.aclose()


# ----------------------------------------------------------------------
# Factories
# ----------------------------------------------------------------------


def make_request(**overrides) -> ResearchRequest:
    data = {
        "query": "data protection obligations",
        "jurisdictions": [LegalJurisdiction.NIGERIA],
        "legal_areas": [LegalArea.REGULATORY],
        "document_types": [DocumentType.STATUTE],
        "max_results": 10,
    }
    data.update(overrides)
    return ResearchRequest(**data)


def make_document(
    doc_id: str,
    title: Optional[str] = None,
    jurisdiction: LegalJurisdiction = LegalJurisdiction.NIGERIA,
    document_type: DocumentType = DocumentType.STATUTE,
    authority: AuthorityLevel = AuthorityLevel.UNKNOWN,
    published: Optional[date] = None,
    relevance: float = 0.8,
    confidence: float = 0.9,
    legal_areas: Sequence[LegalArea] = (LegalArea.REGULATORY,),
    language: Language = Language.ENGLISH,
    excerpt: str = "",
    key_terms: Sequence[str] = (),
) -> LegalDocument:
    return LegalDocument(
        id=doc_id,
        title=title or f"Document {doc_id}",
        content=f"Full text of {doc_id}.",
        excerpt=excerpt,
        document_type=document_type,
        jurisdiction=jurisdiction,
        language=language,
        legal_areas=list(legal_areas),
        publication_date=published or date.today() - timedelta(days=365),
        authority=authority,
        source=default_source_for(jurisdiction),
        metadata=DocumentMetadata(key_terms=list(key_terms)),
        relevance_score=relevance,
        confidence_score=confidence,
    )


# ----------------------------------------------------------------------
# Fake collaborators
# ----------------------------------------------------------------------


class FakeCompletion:
    """Text-completion collaborator returning canned answers or raising."""

    provider = "fake"
    model = "fake-model"

    def __init__(self, responses: Union[str, List[str], Exception] = "", delay: float = 0.0):
        self.responses = responses
        self.delay = delay
        self.prompts: List[str] = []

    async def complete(self, prompt, context):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.responses, Exception):
            raise self.responses
        tally = current_tally()
        if tally is not None:
            tally.add(self.provider, prompt_tokens=100, completion_tokens=50)
        if isinstance(self.responses, list):
            return self.responses.pop(0) if self.responses else ""
        return self.responses


class FakeSearchTask:
    """Jurisdiction search returning canned documents, or raising per jurisdiction."""

    name = "fake"

    def __init__(
        self,
        results: Optional[Dict[LegalJurisdiction, Union[List[LegalDocument], Exception]]] = None,
        delay: float = 0.0,
    ):
        self.results = results or {}
        self.delay = delay
        self.calls: List[LegalJurisdiction] = []
        self.queries: List[str] = []

    async def search(self, query, jurisdiction, request, options: SemanticSearchOptions):
        self.calls.append(jurisdiction)
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.results.get(jurisdiction, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


@pytest.fixture
def fake_completion():
    return FakeCompletion("data protection obligations personal data processing")


@pytest.fixture
def failing_completion():
    return FakeCompletion(RuntimeError("completion service unavailable"))
