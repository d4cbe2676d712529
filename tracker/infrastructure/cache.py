import logging
import time

import redis
from django.conf import settings
from django.core.cache import caches
from django_redis.client.default import glob_escape
from django_redis.exceptions import ConnectionInterrupted

from apps.core.exceptions import CacheUnavailable

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (ConnectionInterrupted, redis.RedisError)


class CacheKeys:
    ORDER_PREFIX = "order:"
    RECOMMENDATIONS_PREFIX = "recommendations:"
    ORDER_TIMELINE_PREFIX = "timeline:"
    USER_ORDERS_PREFIX = "user_orders:"

    @staticmethod
    def order(order_id):
        return f"{CacheKeys.ORDER_PREFIX}{order_id}"

    @staticmethod
    def recommendations(user_id):
        return f"{CacheKeys.RECOMMENDATIONS_PREFIX}{user_id}"

    @staticmethod
    def timeline(order_id):
        return f"{CacheKeys.ORDER_TIMELINE_PREFIX}{order_id}"

    @staticmethod
    def user_orders(user_id, variant=None):
        if variant is None:
            return f"{CacheKeys.USER_ORDERS_PREFIX}{user_id}"
        return f"{CacheKeys.USER_ORDERS_PREFIX}{user_id}:{variant}"

    @staticmethod
    def user_orders_prefix(user_id):
        # Trailing colon keeps user 1 from matching user 10.
        return f"{CacheKeys.USER_ORDERS_PREFIX}{user_id}:"


class RedisCacheService:
    """
    Advisory cache on top of a django-redis cache backend.

    Values go through the backend's JSON serializer. Every failure
    (connection, timeout, bad payload) is logged and turned into a miss or a
    no-op, so callers never branch on cache health.
    """

    def __init__(self, backend, scan_count=500):
        self.backend = backend
        self.scan_count = scan_count

    def _call(self, operation, *args, **kwargs):
        try:
            return getattr(self.backend, operation)(*args, **kwargs)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailable(f"cache {operation} failed: {e}") from e

    def get(self, key):
        if not key:
            logger.warning("Attempted to get cache value with empty key")
            return None
        try:
            value = self._call("get", key)
        except CacheUnavailable as e:
            logger.warning(f"Cache get error for key: {key}, error: {e}")
            return None
        except (TypeError, ValueError) as e:
            logger.error(f"Cache payload for key: {key} could not be decoded: {e}")
            return None
        if value is None:
            logger.debug(f"Cache miss for key: {key}")
        else:
            logger.debug(f"Cache hit for key: {key}")
        return value

    def set(self, key, value, ttl=None):
        if not key:
            logger.warning("Attempted to set cache value with empty key")
            return
        if value is None:
            logger.warning(f"Attempted to cache None for key: {key}")
            return
        try:
            self._call("set", key, value, timeout=int(ttl) if ttl else None)
            logger.debug(f"Cache set for key: {key} (ttl={ttl})")
        except CacheUnavailable as e:
            logger.warning(f"Cache set error for key: {key}, error: {e}")
        except (TypeError, ValueError) as e:
            logger.error(f"Cache payload for key: {key} could not be encoded: {e}")

    def remove(self, key):
        if not key:
            return
        try:
            self._call("delete", key)
            logger.debug(f"Cache deleted for key: {key}")
        except CacheUnavailable as e:
            logger.warning(f"Cache delete error for key: {key}, error: {e}")

    def remove_by_prefix(self, prefix):
        """Delete every key starting with ``prefix``; the backend walks them with SCAN."""
        if not prefix:
            logger.warning("Attempted to remove cache values with empty prefix")
            return 0
        try:
            removed = self._call("delete_pattern", glob_escape(prefix) + "*", itersize=self.scan_count)
        except CacheUnavailable as e:
            logger.warning(f"Cache pattern delete error for prefix: {prefix}, error: {e}")
            return 0
        logger.debug(f"Removed {removed} cache entries matching prefix: {prefix}")
        return removed

    def exists(self, key):
        if not key:
            return False
        try:
            return bool(self._call("has_key", key))
        except CacheUnavailable as e:
            logger.warning(f"Cache exists error for key: {key}, error: {e}")
            return False

    def ping(self):
        try:
            self._call("set", "health_check", "ok", timeout=10)
            return self._call("get", "health_check") == "ok"
        except CacheUnavailable:
            return False


class NoOpCacheService:
    """Cache stand-in used when no Redis backend is configured or reachable."""

    def get(self, key):
        logger.debug(f"NoOp cache: get skipped for key: {key}")
        return None

    def set(self, key, value, ttl=None):
        logger.debug(f"NoOp cache: set skipped for key: {key}")

    def remove(self, key):
        logger.debug(f"NoOp cache: delete skipped for key: {key}")

    def remove_by_prefix(self, prefix):
        logger.debug(f"NoOp cache: pattern delete skipped for prefix: {prefix}")
        return 0

    def exists(self, key):
        return False

    def ping(self):
        return False


def connect_cache(backend_factory, attempts=3, delay=1.0):
    """
    Ping the backend up to ``attempts`` times; fall back to the no-op cache.
    """
    for attempt in range(1, attempts + 1):
        service = RedisCacheService(backend_factory())
        if service.ping():
            logger.info("Cache connection established")
            return service
        logger.warning(f"Cache connection attempt {attempt}/{attempts} failed")
        if attempt < attempts and delay:
            time.sleep(delay)
    logger.error("Cache backend unavailable, continuing without cache")
    return NoOpCacheService()


def build_cache_service():
    if not settings.CACHE_ENABLED or not settings.CACHES:
        logger.info("Cache disabled, using no-op cache")
        return NoOpCacheService()
    return connect_cache(
        lambda: caches["default"],
        attempts=settings.CACHE_CONNECT_ATTEMPTS,
        delay=settings.CACHE_CONNECT_DELAY_SECONDS,
    )


_cache_service = None


def get_cache_service():
    global _cache_service
    if _cache_service is None:
        _cache_service = build_cache_service()
    return _cache_service
