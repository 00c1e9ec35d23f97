"""Shared Redis client factory for the permission cache."""

import redis
from django.conf import settings

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client using REDIS_URL from settings.

    Short socket timeouts keep a Redis outage from stalling every request;
    the caller turns the resulting error into a 503.
    """

    global _client
    if _client is None:
        timeout = getattr(settings, "REDIS_SOCKET_TIMEOUT", 2.0)
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
    return _client


__all__ = ["get_redis_client"]
