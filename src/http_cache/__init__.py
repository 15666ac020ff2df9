"""
HTTP cache-control decision engine.

Decides whether a response may be stored, how long it stays fresh (RFC 2616
age arithmetic and Cache-Control precedence), derives cache keys for requests,
and orchestrates store/retrieve around a transport.
"""
from .types import (
    CACHE_STATUS_KEY,
    CACHE_HIT_KEY,
    CacheControlDirectives,
    CacheStatus,
    CacheRequest,
    CacheResponse,
    RequestContext,
    KeyGenerator,
    Transport,
    AsyncTransport,
    HttpCacheStore,
    AsyncHttpCacheStore,
    HttpCacheConfig,
    HttpCacheEventType,
    HttpCacheEvent,
    HttpCacheEventListener,
    HttpCacheError,
    HttpCacheConfigError,
    InvalidKeyGeneratorError,
)
from .parser import (
    parse_cache_control,
    build_cache_control,
    parse_directive_seconds,
    parse_date_header,
    get_header_value,
    normalize_headers,
    has_pragma_no_cache,
)
from .keys import (
    basic_cache_key_generator,
    method_cache_key_generator,
    validate_key_generator,
)
from .cacheability import is_cacheable
from .freshness import (
    calculate_current_age,
    cache_lifetime,
)
from .cache import (
    HttpCache,
    AsyncHttpCache,
    create_http_cache,
    create_async_http_cache,
    DEFAULT_HTTP_CACHE_CONFIG,
    merge_http_cache_config,
)
from .stores import (
    MemoryCacheStore,
    AsyncMemoryCacheStore,
    MemoryCacheStats,
    create_memory_cache_store,
    create_async_memory_cache_store,
)


__all__ = [
    # Types
    "CACHE_STATUS_KEY",
    "CACHE_HIT_KEY",
    "CacheControlDirectives",
    "CacheStatus",
    "CacheRequest",
    "CacheResponse",
    "RequestContext",
    "KeyGenerator",
    "Transport",
    "AsyncTransport",
    "HttpCacheStore",
    "AsyncHttpCacheStore",
    "HttpCacheConfig",
    "HttpCacheEventType",
    "HttpCacheEvent",
    "HttpCacheEventListener",
    # Errors
    "HttpCacheError",
    "HttpCacheConfigError",
    "InvalidKeyGeneratorError",
    # Parser utilities
    "parse_cache_control",
    "build_cache_control",
    "parse_directive_seconds",
    "parse_date_header",
    "get_header_value",
    "normalize_headers",
    "has_pragma_no_cache",
    # Keys
    "basic_cache_key_generator",
    "method_cache_key_generator",
    "validate_key_generator",
    # Evaluation
    "is_cacheable",
    "calculate_current_age",
    "cache_lifetime",
    # Cache manager
    "HttpCache",
    "AsyncHttpCache",
    "create_http_cache",
    "create_async_http_cache",
    "DEFAULT_HTTP_CACHE_CONFIG",
    "merge_http_cache_config",
    # Stores
    "MemoryCacheStore",
    "AsyncMemoryCacheStore",
    "MemoryCacheStats",
    "create_memory_cache_store",
    "create_async_memory_cache_store",
]

__version__ = "1.0.0"
