"""
Redis JSON cache for the public community highlights
A missing or failing Redis is always treated as a cache miss
"""
import json
import logging
from typing import Any, Optional

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

KEY_PREFIX = "skillbarter"
COMMUNITY_STATS_KEY = "stats:community_highlights"
COMMUNITY_STATS_TTL = 300  # 5 minutes


class JsonCache:
    """Namespaced JSON values in Redis. Writes need a TTL."""

    def __init__(self, prefix: str = KEY_PREFIX):
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _client(self):
        try:
            return get_redis_client()
        except Exception as e:
            logger.warning(f"⚠️ Redis cache unavailable: {e}")
            return None

    def read(self, key: str) -> Optional[Any]:
        client = self._client()
        if client is None:
            return None
        try:
            raw = client.get(self._key(key))
        except Exception as e:
            logger.error(f"❌ Cache read failed for {key}: {e}")
            return None
        if raw is None:
            logger.debug(f"Cache MISS: {key}")
            return None
        logger.debug(f"✅ Cache HIT: {key}")
        return json.loads(raw)

    def write(self, key: str, value: Any, ttl: int) -> bool:
        client = self._client()
        if client is None:
            return False
        try:
            client.set(self._key(key), json.dumps(value, default=str), ex=ttl)
        except Exception as e:
            logger.error(f"❌ Cache write failed for {key}: {e}")
            return False
        logger.debug(f"✅ Cached {key} for {ttl}s")
        return True

    def drop(self, key: str) -> bool:
        client = self._client()
        if client is None:
            return False
        try:
            client.delete(self._key(key))
        except Exception as e:
            logger.error(f"❌ Cache drop failed for {key}: {e}")
            return False
        return True


cache = JsonCache()


def get_community_stats_cached() -> Optional[dict]:
    return cache.read(COMMUNITY_STATS_KEY)


def set_community_stats_cached(stats: dict) -> bool:
    return cache.write(COMMUNITY_STATS_KEY, stats, COMMUNITY_STATS_TTL)


def invalidate_community_stats() -> bool:
    """Called after writes that move the highlights (new members, exchanges, reviews)"""
    return cache.drop(COMMUNITY_STATS_KEY)
