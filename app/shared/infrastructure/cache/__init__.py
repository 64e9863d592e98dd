"""Response cache for catalog lookups."""

from .cache_manager import (
    CacheBackend,
    CacheItem,
    InMemoryCacheBackend,
    RedisCacheBackend,
    ResponseCache,
)

__all__ = [
    "CacheBackend",
    "CacheItem",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "ResponseCache",
]
