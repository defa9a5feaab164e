"""
Tests for the research result cache.

Tests verify:
- Fingerprints ignore input ordering but not content
- Cache hit/miss tracking
- TTL is applied
- Redis failures degrade to misses
"""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from lexresearch.models import (
    CitationFormat,
    DocumentType,
    LegalArea,
    LegalJurisdiction,
    ResearchResult,
)
from libs.caching.research_cache import ResearchCache, compute_fingerprint
from libs.common.settings import Settings

from conftest import make_document, make_request

NG = LegalJurisdiction.NIGERIA
KE = LegalJurisdiction.KENYA


def make_result(request_id="research_1_abc"):
    request = make_request()
    doc = make_document("ng-1")
    return ResearchResult(
        request_id=request_id,
        request=request,
        query=request.query,
        enhanced_query=request.query,
        execution_time_ms=12,
        total_documents=1,
        documents=[doc],
        overall_confidence=0.91,
        sources=[doc.source],
    )


@pytest.fixture
async def cache(redis_client):
    """Create ResearchCache backed by fakeredis."""
    return ResearchCache(redis_client=redis_client, settings=Settings(app_env="test"))


class TestFingerprint:

    def test_order_independent(self):
        first = make_request(
            jurisdictions=[NG, KE],
            legal_areas=[LegalArea.REGULATORY, LegalArea.CORPORATE],
            document_types=[DocumentType.STATUTE, DocumentType.CASE_LAW],
        )
        second = make_request(
            jurisdictions=[KE, NG],
            legal_areas=[LegalArea.CORPORATE, LegalArea.REGULATORY],
            document_types=[DocumentType.CASE_LAW, DocumentType.STATUTE],
        )

        assert compute_fingerprint(first) == compute_fingerprint(second)

    def test_query_case_and_whitespace_ignored(self):
        assert compute_fingerprint(make_request(query="Data  Protection")) == compute_fingerprint(
            make_request(query="data protection")
        )

    @pytest.mark.parametrize(
        "overrides",
        [
            {"query": "employment law"},
            {"citation_format": CitationFormat.OSCOLA},
            {"max_results": 3},
            {"include_analysis": True},
            {"jurisdictions": [KE]},
        ],
    )
    def test_content_changes_fingerprint(self, overrides):
        assert compute_fingerprint(make_request()) != compute_fingerprint(make_request(**overrides))

    def test_is_hex_sha256(self):
        fingerprint = compute_fingerprint(make_request())
        assert len(fingerprint) == 64
        int(fingerprint, 16)


class TestResearchCache:

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, cache):
        fingerprint = compute_fingerprint(make_request())

        assert await cache.get(fingerprint) is None
        assert await cache.put(fingerprint, make_result()) is True

        cached = await cache.get(fingerprint)

        assert cached is not None
        assert cached.request_id == "research_1_abc"
        assert cached.documents[0].id == "ng-1"
        stats = cache.get_stats()
        assert (stats.hits, stats.misses, stats.writes) == (1, 1, 1)
        assert stats.hit_rate == 0.5

    @pytest.mark.asyncio
    async def test_ttl_applied(self, cache, redis_client):
        await cache.put("abc", make_result())
        ttl = await redis_client.ttl("research:abc")
        assert 0 < ttl <= 3600

    @pytest.mark.asyncio
    async def test_custom_ttl(self, cache, redis_client):
        await cache.put("abc", make_result(), ttl_seconds=60)
        assert 0 < await redis_client.ttl("research:abc") <= 60

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_a_miss(self, cache, redis_client):
        await redis_client.set("research:abc", "{not a result")

        assert await cache.get("abc") is None
        assert cache.get_stats().errors == 1

    @pytest.mark.asyncio
    async def test_redis_errors_degrade(self):
        broken = AsyncMock()
        broken.get.side_effect = redis.ConnectionError("down")
        broken.setex.side_effect = redis.ConnectionError("down")
        cache = ResearchCache(redis_client=broken, settings=Settings(app_env="test"))

        assert await cache.get("abc") is None
        assert await cache.put("abc", make_result()) is False
        assert cache.get_stats().errors == 2

    @pytest.mark.asyncio
    async def test_unconfigured_cache_is_disabled(self):
        cache = ResearchCache(settings=Settings(app_env="test", redis_url=None))

        assert await cache.get("abc") is None
        assert await cache.put("abc", make_result()) is False

    @pytest.mark.asyncio
    async def test_clear_cache(self, cache, redis_client):
        await cache.put("a", make_result())
        await cache.put("b", make_result())
        await redis_client.set("other:key", "x")

        assert await cache.clear_cache() == 2
        assert await redis_client.get("other:key") == "x"

    @pytest.mark.asyncio
    async def test_malformed_url_degrades(self):
        cache = ResearchCache(settings=Settings(app_env="test", redis_url="localhost:6379"))

        assert await cache.get("abc") is None
        assert await cache.put("abc", make_result()) is False
        assert await cache.clear_cache() == 0

    @pytest.mark.asyncio
    async def test_client_acquisition_error_degrades(self, monkeypatch):
        async def unavailable(settings=None):
            raise OSError("network unreachable")

        monkeypatch.setattr("libs.caching.research_cache.get_redis_client", unavailable)
        cache = ResearchCache(settings=Settings(app_env="test", redis_url="redis://localhost:6379/9"))

        assert await cache.get("abc") is None
        assert await cache.put("abc", make_result()) is False
        assert cache.get_stats().errors == 2
