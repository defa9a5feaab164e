"""
Content-addressed cache for complete research results.

Keys are a SHA-256 fingerprint of the canonicalised request, so two
requests that differ only in the order of their jurisdictions, legal areas,
document types or languages share one entry. Entries expire after the
configured TTL (3600s by default); misses are never cached.

Every Redis or decoding error is logged and treated as a miss (reads) or a
skipped write, so the research pipeline always runs.

Usage:
    cache = ResearchCache()
    cached = await cache.get(fingerprint)
    if cached is None:
        result = await run_pipeline()
        await cache.put(fingerprint, result)
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pydantic
import redis.asyncio as redis
import structlog

from lexresearch.errors import CacheFailure
from lexresearch.models import ResearchRequest, ResearchResult
from libs.caching.redis_client import get_redis_client
from libs.common.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

FINGERPRINT_VERSION = "v1"


@dataclass
class CacheStats:
    """Cache statistics for monitoring."""

    total_requests: int = 0
    hits: int = 0
    misses: int = 0
    errors: int = 0
    writes: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests


def canonical_request(request: ResearchRequest) -> Dict[str, Any]:
    """Order-independent representation of everything that shapes a result."""
    return {
        "version": FINGERPRINT_VERSION,
        "query": " ".join(request.query.lower().split()),
        "jurisdictions": sorted(j.value for j in request.jurisdictions),
        "legal_areas": sorted(a.value for a in request.legal_areas),
        "document_types": sorted(t.value for t in request.document_types),
        "languages": sorted(lang.value for lang in request.languages),
        "citation_format": request.citation_format.value,
        "complexity": request.complexity.value,
        "max_results": request.max_results,
        "include_analysis": request.include_analysis,
        "include_citations": request.include_citations,
        "semantic_search": request.semantic_search,
        "include_related_cases": request.include_related_cases,
        "confidence_threshold": request.confidence_threshold,
        "date_range": (
            [request.date_range.date_from.isoformat(), request.date_range.date_to.isoformat()]
            if request.date_range
            else None
        ),
    }


def compute_fingerprint(request: ResearchRequest) -> str:
    """Deterministic hex digest of the canonical request."""
    canonical = json.dumps(canonical_request(request), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ResearchCache:
    """
    TTL-bound Redis store of serialised ``ResearchResult`` objects.

    Pass ``redis_client`` to inject a connection (tests use fakeredis);
    otherwise the shared client from ``get_redis_client`` is used lazily.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.default_ttl = self.settings.cache_ttl_seconds
        self.key_prefix = self.settings.cache_key_prefix
        self._redis_client = redis_client
        self._stats = CacheStats()

    def key_for(self, fingerprint: str) -> str:
        return f"{self.key_prefix}:{fingerprint}"

    async def _client(self) -> Optional[redis.Redis]:
        """The injected or shared client; None disables the cache for this call."""
        if self._redis_client is None:
            try:
                self._redis_client = await get_redis_client(self.settings)
            except (redis.RedisError, ValueError, OSError) as e:
                self._stats.errors += 1
                logger.warning("Cache client unavailable, skipping cache", error=str(e), error_type=type(e).__name__)
                return None
        return self._redis_client

    async def _read(self, client: redis.Redis, key: str) -> Optional[ResearchResult]:
        try:
            raw = await client.get(key)
        except redis.RedisError as e:
            raise CacheFailure(f"Cache read failed: {e}", {"key": key}) from e
        if raw is None:
            return None
        try:
            return ResearchResult.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise CacheFailure("Cached result could not be decoded", {"key": key}) from e

    async def get(self, fingerprint: str) -> Optional[ResearchResult]:
        """Return the stored result, or None on miss or any cache failure."""
        client = await self._client()
        if client is None:
            return None

        self._stats.total_requests += 1
        key = self.key_for(fingerprint)
        try:
            cached = await self._read(client, key)
        except CacheFailure as e:
            self._stats.errors += 1
            self._stats.misses += 1
            logger.warning("Cache lookup failed, treating as miss", cache_key=key, error=e.message)
            return None

        if cached is None:
            self._stats.misses += 1
            logger.info("Cache miss", cache_key=key)
            return None

        self._stats.hits += 1
        logger.info("Cache hit", cache_key=key, request_id=cached.request_id)
        return cached

    async def put(self, fingerprint: str, result: ResearchResult, ttl_seconds: Optional[int] = None) -> bool:
        """Store ``result``; returns False when the write was skipped."""
        client = await self._client()
        if client is None:
            return False

        ttl_seconds = ttl_seconds or self.default_ttl
        key = self.key_for(fingerprint)
        try:
            await client.setex(key, ttl_seconds, result.model_dump_json())
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.warning("Failed to cache research result", cache_key=key, error=str(e))
            return False

        self._stats.writes += 1
        logger.info("Research result cached", cache_key=key, ttl_seconds=ttl_seconds)
        return True

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    async def clear_cache(self) -> int:
        """Delete every research entry under this cache's key prefix."""
        client = await self._client()
        if client is None:
            return 0

        pattern = f"{self.key_prefix}:*"
        deleted = 0
        try:
            cursor = 0
            while True:
                cursor, keys = await client.scan(cursor=cursor, match=pattern, count=100)
                if keys:
                    deleted += await client.delete(*keys)
                if cursor == 0:
                    break
        except redis.RedisError as e:
            logger.error("Error clearing cache", error=str(e))
            return deleted

        logger.info("Cache cleared", pattern=pattern, deleted=deleted)
        return deleted
