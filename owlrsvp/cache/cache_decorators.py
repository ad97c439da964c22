"""
Cache decorators for easy function result caching.
"""
import hashlib
import json
from functools import wraps
from typing import Callable, Any
from owlrsvp.cache import redis_client
from owlrsvp.core.logging import logger


def cached(key_prefix: str, expire: int = 300):
    """
    Decorator to cache non-None function results with configurable TTL.

    Args:
        key_prefix: Prefix for the cache key
        expire: Expiration time in seconds (default: 300 = 5 minutes)

    Usage:
        @cached('events:public', expire=300)
        async def load_public_event(session, event_ref):
            return event
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            cache_key = f"{key_prefix}:{_generate_key_from_args(args, kwargs)}"

            cached_value = await redis_client.cache.get(cache_key)
            if cached_value is not None:
                logger.debug(f"Cache hit for key: {cache_key}")
                return cached_value

            logger.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)

            # Misses are not cached so a newly created event is visible at once
            if result is not None:
                await redis_client.cache.set(cache_key, result, expire)

            return result
        return wrapper
    return decorator


def _generate_key_from_args(args: tuple, kwargs: dict) -> str:
    """MD5 of the arguments, ignoring SQLAlchemy session objects."""
    filtered_args = [arg for arg in args if 'Session' not in type(arg).__name__]
    key_data = {
        'args': [str(arg) for arg in filtered_args],
        'kwargs': {k: str(v) for k, v in kwargs.items()}
    }
    key_string = json.dumps(key_data, sort_keys=True)
    return hashlib.md5(key_string.encode()).hexdigest()
