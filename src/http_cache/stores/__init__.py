"""
HTTP cache store implementations.
"""
from .memory import (
    MemoryCacheStore,
    AsyncMemoryCacheStore,
    MemoryCacheStats,
    create_memory_cache_store,
    create_async_memory_cache_store,
)

__all__ = [
    "MemoryCacheStore",
    "AsyncMemoryCacheStore",
    "MemoryCacheStats",
    "create_memory_cache_store",
    "create_async_memory_cache_store",
]
