"""Redis cache of fetched RBAC snapshots."""

import json
from typing import Optional

import redis

from whocan.core.logging import get_logger
from whocan.models.rbac import RBACSnapshot
from whocan.repositories.rbac_source import RBACSource

logger = get_logger(__name__)

SNAPSHOT_KEY_PATTERN = "whocan:snapshot:{source}:{namespace}"


class SnapshotCache:
    """Stores snapshots as JSON with a TTL.

    Redis failures are logged and behave like a cache miss.
    """

    def __init__(self, redis_client: redis.Redis, ttl: int):
        self.redis = redis_client
        self.ttl = ttl
        self._hits = 0
        self._misses = 0

    @staticmethod
    def key(source: str, namespace: str) -> str:
        return SNAPSHOT_KEY_PATTERN.format(source=source, namespace=namespace or "*")

    def get(self, key: str) -> Optional[RBACSnapshot]:
        try:
            data = self.redis.get(key)
            if data:
                snapshot = RBACSnapshot.from_dict(json.loads(data))
                self._hits += 1
                return snapshot
        except (
            redis.RedisError,
            json.JSONDecodeError,
            KeyError,
            ValueError,
            AttributeError,
            TypeError,
        ) as e:
            logger.debug(f"Cache retrieval failed: {e}")

        self._misses += 1
        return None

    def set(self, key: str, snapshot: RBACSnapshot) -> None:
        try:
            self.redis.setex(key, self.ttl, json.dumps(snapshot.to_dict()))
        except redis.RedisError as e:
            logger.debug(f"Cache storage failed: {e}")

    def get_stats(self):
        total = self._hits + self._misses
        return {
            "cache_ttl": self.ttl,
            "cache_hits": self._hits,
            "cache_misses": self._misses,
            "cache_hit_rate": self._hits / total if total > 0 else 0,
        }


class CachedRBACSource(RBACSource):
    """Serves snapshots from the cache, fetching and storing on a miss.

    A failed fetch raises and is never cached.
    """

    def __init__(self, source: RBACSource, cache: SnapshotCache):
        self.source = source
        self.cache = cache

    @property
    def cache_key(self) -> str:
        return self.source.cache_key

    def fetch(self, namespace: str = "") -> RBACSnapshot:
        key = SnapshotCache.key(self.source.cache_key, namespace)
        snapshot = self.cache.get(key)
        if snapshot is not None:
            logger.debug(f"Using cached snapshot {key}")
            return snapshot

        snapshot = self.source.fetch(namespace)
        self.cache.set(key, snapshot)
        return snapshot

    def validate_namespace(self, namespace: str) -> None:
        self.source.validate_namespace(namespace)
