"""Key-value cache used by the permission resolver.

The resolver receives a :class:`PermissionCache` instead of reaching for a
module-level client, so tests can hand it an in-memory double.
"""

import json
from typing import Any, Protocol

import redis

from core.errors import PermissionCacheUnavailable
from core.redis_client import get_redis_client


class PermissionCache(Protocol):
    """Capability interface: TTL-aware get/set/delete by key."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class RedisPermissionCache:
    """Store JSON-encoded values in Redis with an expiry."""

    def __init__(self, client: redis.Redis):
        self._client = client

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            raise PermissionCacheUnavailable("Redis unavailable while reading permissions") from exc
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._client.setex(key, ttl_seconds, json.dumps(value))
        except redis.RedisError as exc:
            raise PermissionCacheUnavailable("Redis unavailable while caching permissions") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise PermissionCacheUnavailable("Redis unavailable while invalidating permissions") from exc


def get_permission_cache() -> PermissionCache:
    """Return the Redis-backed cache using the shared client."""
    return RedisPermissionCache(get_redis_client())


__all__ = ["PermissionCache", "RedisPermissionCache", "get_permission_cache"]
