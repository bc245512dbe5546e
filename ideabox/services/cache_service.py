"""
Idea Box
Classification pool cache.

The evaluation form reads the Impact / Capacity / Effort pools on every
open, so each active pool is cached as JSON under ``classification-pool:<TYPE>``.
Registry writes drop the key of the affected axis.

Backend: Redis when REDIS_URL is set and answers PING, otherwise a
process-local dict (development, tests, single-worker deployments).
"""

import json
import logging
import os
import time

logger = logging.getLogger(__name__)

POOL_KEY_PREFIX = "classification-pool"
CLASSIFICATION_TTL = 600   # seconds; registry writes invalidate sooner


class _MemoryBackend:
    """Subset of the redis-py client API used here, kept in a dict."""

    def __init__(self):
        self._pools: dict[str, tuple[str, float]] = {}

    def get(self, key):
        entry = self._pools.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if time.time() > expires_at:
            del self._pools[key]
            return None
        return payload

    def setex(self, key, ttl_seconds, value):
        self._pools[key] = (value, time.time() + ttl_seconds)

    def delete(self, *keys):
        for key in keys:
            self._pools.pop(key, None)

    def flushdb(self):
        self._pools.clear()

    def ping(self):
        return True


_backend = None


def _get_backend():
    global _backend
    if _backend is not None:
        return _backend

    redis_url = os.getenv("REDIS_URL")
    if redis_url and not redis_url.startswith("memory://"):
        try:
            import redis as _redis
            _backend = _redis.from_url(redis_url, decode_responses=True)
            _backend.ping()
            logger.info("Classification cache on Redis at %s", redis_url.split("@")[-1])
        except Exception as exc:
            logger.warning("Redis unavailable (%s), classification pools cached in memory", exc)
            _backend = _MemoryBackend()
    else:
        _backend = _MemoryBackend()
    return _backend


def classification_pool_key(axis_type):
    return f"{POOL_KEY_PREFIX}:{axis_type}"


def get_cached(key, ttl=CLASSIFICATION_TTL, loader=None):
    """Cached pool for *key*; on a miss *loader* builds it and it is stored.

    An unreadable payload counts as a miss.
    """
    backend = _get_backend()
    raw = backend.get(key)
    if raw is not None:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable cache entry %s", key)
    if loader is None:
        return None
    pool = loader()
    if pool is not None:
        backend.setex(key, ttl, json.dumps(pool))
    return pool


def delete_cached(*keys):
    if keys:
        _get_backend().delete(*keys)


def clear_all():
    """Drop every cached pool. Test setup calls this between cases."""
    _get_backend().flushdb()


def health_check():
    """Backend status for /health/live."""
    try:
        backend = _get_backend()
        backend.ping()
        kind = "memory" if isinstance(backend, _MemoryBackend) else "redis"
        return {"status": "ok", "backend": kind}
    except Exception as exc:
        return {"status": "error", "detail": str(exc)}
