"""
HTTP cache transport wrapper for httpx's compose pattern.

RFC 2616 cache-control caching with:
- Destructive-method bypass
- Age and freshness lifetime arithmetic
- x-cache-status / x-cache-hits diagnostic headers
"""
from http_cache import (
    CacheRequest,
    CacheResponse,
    CacheStatus,
    HttpCacheConfig,
    HttpCacheStore,
    AsyncHttpCacheStore,
    HttpCache,
    AsyncHttpCache,
    MemoryCacheStore,
    AsyncMemoryCacheStore,
    create_memory_cache_store,
    create_async_memory_cache_store,
)
from .transport import (
    HttpCacheTransport,
    SyncHttpCacheTransport,
    to_cache_request,
    to_cache_response,
    to_httpx_response,
)
from .factory import (
    compose_transport,
    compose_sync_transport,
    create_http_cache_transport,
    create_http_cache_sync_transport,
    create_http_cache_client,
    create_http_cache_sync_client,
)


__all__ = [
    # Re-exported types from base package
    "CacheRequest",
    "CacheResponse",
    "CacheStatus",
    "HttpCacheConfig",
    "HttpCacheStore",
    "AsyncHttpCacheStore",
    "HttpCache",
    "AsyncHttpCache",
    "MemoryCacheStore",
    "AsyncMemoryCacheStore",
    "create_memory_cache_store",
    "create_async_memory_cache_store",
    # Transport wrappers
    "HttpCacheTransport",
    "SyncHttpCacheTransport",
    "to_cache_request",
    "to_cache_response",
    "to_httpx_response",
    # Factory functions
    "compose_transport",
    "compose_sync_transport",
    "create_http_cache_transport",
    "create_http_cache_sync_transport",
    "create_http_cache_client",
    "create_http_cache_sync_client",
]

__version__ = "1.0.0"
