"""Cache used for derived appointment listings.

``RedisCache`` is used when ``REDIS_URL`` is configured; ``MemoryCache`` keeps
single-process deployments and tests free of a Redis dependency at runtime.
Cache failures are logged and reported as misses so they never fail a request.
"""

import json
import logging
from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class MemoryCache:
    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._expiry: dict[str, datetime] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._values:
                logger.debug('Cache miss for %s', key)
                return None
            expires_at = self._expiry.get(key)
            if expires_at is not None and datetime.now() >= expires_at:
                del self._values[key]
                del self._expiry[key]
                logger.debug('Cache entry expired for %s', key)
                return None
            logger.debug('Cache hit for %s', key)
            return self._values[key]

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        with self._lock:
            self._values[key] = value
            if ttl:
                self._expiry[key] = datetime.now() + timedelta(seconds=ttl)
            else:
                self._expiry.pop(key, None)

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)
            self._expiry.pop(key, None)
        logger.debug('Deleted cache key %s', key)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self._expiry.clear()


class RedisCache:
    """JSON values in Redis; every Redis failure degrades to a miss."""

    def __init__(self, client: redis.Redis) -> None:
        self.redis = client

    @classmethod
    def from_url(cls, redis_url: str, timeout_seconds: float = 5) -> 'RedisCache':
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=timeout_seconds,
            socket_timeout=timeout_seconds,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.redis.get(key)
        except RedisError as exc:
            logger.warning('Cache get failed for %s: %s', key, exc)
            return None
        if value is None:
            return None
        return json.loads(value)

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except RedisError as exc:
            logger.warning('Cache set failed for %s: %s', key, exc)

    def delete(self, key: str) -> None:
        try:
            self.redis.delete(key)
        except RedisError as exc:
            logger.warning('Cache delete failed for %s: %s', key, exc)

    def close(self) -> None:
        self.redis.close()


def build_cache(redis_url: str, timeout_seconds: float = 5):
    if redis_url:
        logger.info('Using Redis cache for appointment listings')
        return RedisCache.from_url(redis_url, timeout_seconds=timeout_seconds)
    logger.info('REDIS_URL not set; using in-process cache')
    return MemoryCache()
