"""
Redis client manager for the research cache.

Provides:
- Async Redis client with connection pooling
- Singleton pattern so every orchestrator shares one pool
- Graceful degradation: callers get None when Redis is unavailable
"""

from typing import Optional

import redis.asyncio as redis
import structlog

from libs.common.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

# Global Redis client instance (singleton)
_redis_client: Optional[redis.Redis] = None
_connection_failed = False  # Circuit breaker for repeated failures


def _redact(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url.split("//")[-1]


async def get_redis_client(settings: Optional[Settings] = None) -> Optional[redis.Redis]:
    """
    Get or create the shared async Redis client.

    Returns:
        Redis client instance, or None if caching is disabled or the
        connection fails. Never raises.
    """
    global _redis_client, _connection_failed

    settings = settings or get_settings()

    if not settings.cache_enabled:
        return None

    if _connection_failed:
        logger.warning("Redis connection previously failed, skipping reconnect attempt")
        return None

    if _redis_client is not None:
        try:
            await _redis_client.ping()
            return _redis_client
        except redis.RedisError as e:
            logger.warning("Existing Redis connection failed, reconnecting", error=str(e))
            _redis_client = None

    if not settings.redis_url:
        logger.warning(
            "Redis URL not configured, caching will be disabled",
            hint="Set LEXRESEARCH_REDIS_URL to enable caching",
        )
        _connection_failed = True
        return None

    try:
        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=20,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )
        await client.ping()
    except (redis.RedisError, ValueError, OSError) as e:
        logger.error(
            "Redis connection failed",
            error=str(e),
            redis_url=_redact(settings.redis_url),
            hint="Check LEXRESEARCH_REDIS_URL and ensure Redis server is running",
        )
        _connection_failed = True
        return None

    _redis_client = client
    logger.info("Redis client initialized successfully", url=_redact(settings.redis_url), max_connections=20)
    return _redis_client


async def close_redis_client() -> None:
    """Close the shared client and allow a fresh connection attempt."""
    global _redis_client, _connection_failed

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("Redis client closed")
        except redis.RedisError as e:
            logger.warning("Error closing Redis client", error=str(e))
        finally:
            _redis_client = None
    _connection_failed = False
