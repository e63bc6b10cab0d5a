"""
Redis-backed cache for extracted document text
"""
import hashlib
import json
import time
from typing import Any, Optional

import redis
import structlog

from flashdeck.config import REDIS_URL, TEXT_CACHE_TTL

logger = structlog.get_logger()


def document_cache_key(data: bytes, media_type: str) -> str:
    digest = hashlib.sha256(data).hexdigest()
    return f"doctext:{media_type}:{digest}"


class CacheService:
    def __init__(self, redis_url: str = REDIS_URL):
        self._memory_cache = {}
        try:
            self.redis_client = redis.from_url(redis_url, decode_responses=True)
            self.redis_client.ping()
            logger.info("cache_connected", backend="redis")
        except redis.RedisError as e:
            logger.warning("cache_fallback_to_memory", error=str(e))
            self.redis_client = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis_client is not None else "memory"

    def _memory_get(self, key: str) -> Optional[Any]:
        entry = self._memory_cache.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= time.monotonic():
            del self._memory_cache[key]
            return None
        return value

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for key in [k for k, (expires_at, _) in self._memory_cache.items() if expires_at <= now]:
            del self._memory_cache[key]

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache; a cache outage reads as a miss"""
        if self.redis_client is None:
            return self._memory_get(key)
        try:
            value = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error("cache_get_failed", key=key, error=str(e))
            return None
        return json.loads(value) if value else None

    def set(self, key: str, value: Any, expire: int = TEXT_CACHE_TTL) -> bool:
        """Set value in cache with expiration"""
        if self.redis_client is None:
            self._evict_expired()
            self._memory_cache[key] = (time.monotonic() + expire, value)
            return True
        try:
            return bool(self.redis_client.setex(key, expire, json.dumps(value)))
        except redis.RedisError as e:
            logger.error("cache_set_failed", key=key, error=str(e))
            return False

    def delete(self, key: str) -> bool:
        if self.redis_client is None:
            return self._memory_cache.pop(key, None) is not None
        try:
            return bool(self.redis_client.delete(key))
        except redis.RedisError as e:
            logger.error("cache_delete_failed", key=key, error=str(e))
            return False


# Global cache instance
cache = CacheService()
