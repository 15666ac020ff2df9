"""
Types for the HTTP cache-control decision engine.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple


CACHE_STATUS_KEY = "x-cache-status"
"""Diagnostic header carrying the cache status of a served response."""

CACHE_HIT_KEY = "x-cache-hits"
"""Diagnostic header carrying the number of times an entry was served."""


CacheControlDirectives = Dict[str, Optional[str]]
"""Parsed Cache-Control header: directive name -> optional value."""


class CacheStatus(str, Enum):
    """Values of the x-cache-status header."""

    MISS = "MISS"
    HIT = "HIT"
    SAVED = "SAVED"


def _lower_keys(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    return {k.lower(): v for k, v in (headers or {}).items()}


@dataclass
class CacheRequest:
    """Outgoing request as seen by the cache."""

    method: str
    """HTTP method."""

    uri: str = "/"
    """Request path."""

    query: List[Tuple[str, str]] = field(default_factory=list)
    """Ordered query parameters."""

    headers: Dict[str, str] = field(default_factory=dict)
    """Request headers (lower-cased names)."""

    body: bytes = b""
    """Request body."""

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = _lower_keys(self.headers)

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def set_header(self, name: str, value: str) -> "CacheRequest":
        self.headers[name.lower()] = value
        return self


@dataclass
class CacheResponse:
    """Response produced by the transport or served from the store."""

    status_code: int = 200
    """Response status code."""

    headers: Dict[str, str] = field(default_factory=dict)
    """Response headers (lower-cased names)."""

    body: bytes = b""
    """Response body."""

    def __post_init__(self) -> None:
        self.headers = _lower_keys(self.headers)

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def set_header(self, name: str, value: str) -> "CacheResponse":
        self.headers[name.lower()] = value
        return self

    def copy(self) -> "CacheResponse":
        """Return an independent copy; stamping it leaves the original untouched."""
        return CacheResponse(
            status_code=self.status_code,
            headers=dict(self.headers),
            body=self.body,
        )


@dataclass
class RequestContext:
    """
    Timestamps scoped to a single execute() call.

    A fresh context is created for every invocation so concurrent calls on
    the same cache never share timing state.
    """

    request_time: Optional[float] = None
    """When the request was handed to the transport (Unix timestamp)."""

    response_time: Optional[float] = None
    """When the transport returned the response (Unix timestamp)."""

    def execution_time(self) -> Optional[float]:
        """Round-trip duration of the upstream fetch, or None if unfinished."""
        if self.request_time is None or self.response_time is None:
            return None
        return self.response_time - self.request_time


KeyGenerator = Callable[[CacheRequest], str]
"""Cache key strategy."""

Transport = Callable[[CacheRequest], CacheResponse]
"""Executes a request against the origin."""

AsyncTransport = Callable[[CacheRequest], Awaitable[CacheResponse]]
"""Async counterpart of Transport."""


class HttpCacheStore(ABC):
    """Key/value store with TTL support used by HttpCache."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheResponse]:
        """Get a cached response by key."""
        pass

    @abstractmethod
    def set(self, key: str, response: CacheResponse, ttl_seconds: int) -> bool:
        """Store a response for ttl_seconds. Returns whether it was stored."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a cached response."""
        pass

    def record_hit(self, key: str) -> Optional[int]:
        """Increment and return the hit counter for key; None if unsupported."""
        return None

    def clear(self) -> None:
        """Clear all cached responses."""
        pass


class AsyncHttpCacheStore(ABC):
    """Async key/value store with TTL support used by AsyncHttpCache."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheResponse]:
        """Get a cached response by key."""
        pass

    @abstractmethod
    async def set(self, key: str, response: CacheResponse, ttl_seconds: int) -> bool:
        """Store a response for ttl_seconds. Returns whether it was stored."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a cached response."""
        pass

    async def record_hit(self, key: str) -> Optional[int]:
        """Increment and return the hit counter for key; None if unsupported."""
        return None

    async def clear(self) -> None:
        """Clear all cached responses."""
        pass

    async def close(self) -> None:
        """Close the store and release resources."""
        pass


@dataclass
class HttpCacheConfig:
    """Configuration for HttpCache."""

    allow_private_cache: bool = False
    """Whether responses marked `private` may be cached. Default: False."""

    bypass_methods: List[str] = field(default_factory=lambda: ["POST", "PUT", "DELETE"])
    """Destructive methods that skip the cache entirely."""

    bypass_cache_control: str = "no-cache, must-revalidate"
    """Cache-Control value forced onto bypassed responses."""

    cacheable_statuses: Optional[List[int]] = None
    """Status codes eligible for storage. Default: None (any status)."""

    store_non_positive_ttl: bool = True
    """Whether a computed TTL <= 0 is still handed to the store. Default: True."""

    respect_pragma_no_cache: bool = True
    """Whether `pragma: no-cache` on a request skips the cache read."""

    key_generator: Optional[KeyGenerator] = None
    """Custom cache key generator."""


class HttpCacheEventType(str, Enum):
    """Event types for cache operations."""

    CACHE_HIT = "cache:hit"
    CACHE_MISS = "cache:miss"
    CACHE_STORE = "cache:store"
    CACHE_BYPASS = "cache:bypass"
    CACHE_INVALIDATE = "cache:invalidate"
    CACHE_STORE_ERROR = "cache:store-error"


@dataclass
class HttpCacheEvent:
    """Cache event."""

    type: HttpCacheEventType
    key: Optional[str]
    uri: str
    timestamp: float
    metadata: Optional[Dict[str, Any]] = None


HttpCacheEventListener = Callable[[HttpCacheEvent], None]
"""Event listener type."""


class HttpCacheError(Exception):
    """Base error for the HTTP cache."""

    code = "HTTP_CACHE_ERROR"


class HttpCacheConfigError(HttpCacheError):
    """Error raised when the cache is set up with an unusable component."""

    code = "HTTP_CACHE_CONFIG"


class InvalidKeyGeneratorError(HttpCacheConfigError):
    """Error raised when a cache key generator is not callable."""

    code = "INVALID_KEY_GENERATOR"
