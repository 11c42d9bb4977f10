"""
Caching utilities for expensive aggregate queries.

Keys are namespaced by a per-prefix version number; bumping the version
invalidates every key under that prefix without scanning the cache, so the
same code works with django-redis and with the local-memory backend.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
REPORTS_CACHE_TTL = 600  # 10 minutes
STOCK_SUMMARY_CACHE_TTL = 180  # 3 minutes

REPORTS_PREFIX = 'reports'
STOCK_SUMMARY_PREFIX = 'stock_summary'


def _version_key(prefix):
    return f"{prefix}:version"


def get_cache_version(prefix):
    version = cache.get(_version_key(prefix))
    if version is None:
        version = 1
        cache.add(_version_key(prefix), version, None)
    return version


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique, versioned cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:v{get_cache_version(prefix)}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
        def build_report(report_type, period):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_prefix(prefix):
    """Drop every cached entry stored under ``prefix``"""
    try:
        cache.incr(_version_key(prefix))
    except ValueError:
        # No version stored yet, nothing cached under the prefix
        cache.add(_version_key(prefix), 1, None)
    logger.debug(f"Invalidated cache prefix: {prefix}")


def invalidate_reports_cache():
    invalidate_prefix(REPORTS_PREFIX)


def invalidate_stock_cache():
    invalidate_prefix(STOCK_SUMMARY_PREFIX)
