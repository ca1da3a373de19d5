"""
Caching utilities for backend reads.
Reads are memoised under a generation number; any write bumps the generation,
so every cached read goes stale at once without scanning keys.
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

GENERATION_KEY = 'backend_reads:generation'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_generation():
    """Current read generation (starts at 1)"""
    generation = cache.get(GENERATION_KEY)
    if generation is None:
        cache.add(GENERATION_KEY, 1, None)
        generation = cache.get(GENERATION_KEY) or 1
    return generation


def invalidate_backend_reads():
    """Mark every cached backend read as stale"""
    try:
        cache.incr(GENERATION_KEY)
    except ValueError:
        # Key expired or was never set
        cache.set(GENERATION_KEY, 2, None)
    logger.debug("Invalidated cached backend reads")


def cached_read(key_prefix):
    """
    Decorator to memoise a backend read for TRADING_API_CACHE_TTL seconds.

    Usage:
        @cached_read("stock")
        def get_stock(self):
            ...

    The first positional argument (``self``) is not part of the key.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            ttl = settings.TRADING_API_CACHE_TTL
            if ttl <= 0:
                return func(self, *args, **kwargs)

            cache_key = make_cache_key(key_prefix, get_generation(), *args, **kwargs)
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(self, *args, **kwargs)
            if result is not None:
                cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator
