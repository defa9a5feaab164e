"""
Caching utilities for the legal research engine.

- Redis client management
- Content-addressed research result cache
"""

from libs.caching.redis_client import close_redis_client, get_redis_client
from libs.caching.research_cache import CacheStats, ResearchCache, compute_fingerprint

__all__ = ["CacheStats", "ResearchCache", "close_redis_client", "compute_fingerprint", "get_redis_client"]
