"""
HTTP cache transport wrapper for httpx.

Routes requests through the HTTP cache-control engine:
- POST/PUT/DELETE bypass the cache and are marked no-cache, must-revalidate
- Cached responses are served with x-cache-status: HIT
- Fresh responses are stored for their computed lifetime (x-cache-status: SAVED)
"""
import logging
from typing import Callable, Optional

import httpx

from http_cache import (
    AsyncHttpCache,
    AsyncHttpCacheStore,
    CacheRequest,
    CacheResponse,
    HttpCache,
    HttpCacheConfig,
    HttpCacheEvent,
    HttpCacheEventType,
    HttpCacheStore,
    KeyGenerator,
    create_async_memory_cache_store,
    create_memory_cache_store,
    method_cache_key_generator,
)

logger = logging.getLogger("fetch_compose_http_cache.transport")

# The body is captured decoded, so these no longer describe it
_DROPPED_RESPONSE_HEADERS = ("content-encoding", "content-length", "transfer-encoding")


def _adapter_key_generator(
    config: Optional[HttpCacheConfig],
    key_generator: Optional[KeyGenerator],
) -> Optional[KeyGenerator]:
    """Scope keys by method unless a generator was chosen explicitly."""
    if key_generator is not None or (config is not None and config.key_generator is not None):
        return key_generator
    return method_cache_key_generator


def to_cache_request(request: httpx.Request, body: bytes) -> CacheRequest:
    """Build a CacheRequest from an httpx.Request whose body has been read."""
    return CacheRequest(
        method=request.method,
        uri=request.url.path,
        query=list(request.url.params.multi_items()),
        headers=dict(request.headers.items()),
        body=body,
    )


def to_cache_response(response: httpx.Response, body: bytes) -> CacheResponse:
    """Build a CacheResponse from an httpx.Response and its decoded body."""
    headers = {
        k: v for k, v in response.headers.items() if k.lower() not in _DROPPED_RESPONSE_HEADERS
    }
    return CacheResponse(status_code=response.status_code, headers=headers, body=body)


def to_httpx_response(
    response: CacheResponse,
    request: Optional[httpx.Request] = None,
) -> httpx.Response:
    """Build an httpx.Response from a CacheResponse."""
    return httpx.Response(
        status_code=response.status_code,
        headers=response.headers,
        content=response.body,
        request=request,
    )


class _CallbackDispatcher:
    """Maps cache events onto the optional transport callbacks."""

    def __init__(
        self,
        on_cache_hit: Optional[Callable[[str, Optional[int]], None]],
        on_cache_miss: Optional[Callable[[str], None]],
        on_cache_store: Optional[Callable[[str, int], None]],
    ) -> None:
        self.on_cache_hit = on_cache_hit
        self.on_cache_miss = on_cache_miss
        self.on_cache_store = on_cache_store

    def __call__(self, event: HttpCacheEvent) -> None:
        metadata = event.metadata or {}
        if event.type == HttpCacheEventType.CACHE_HIT and self.on_cache_hit:
            self.on_cache_hit(event.uri, metadata.get("hits"))
        elif event.type == HttpCacheEventType.CACHE_MISS and self.on_cache_miss:
            self.on_cache_miss(event.uri)
        elif event.type == HttpCacheEventType.CACHE_STORE and self.on_cache_store:
            self.on_cache_store(event.uri, metadata["ttl"])


class HttpCacheTransport(httpx.AsyncBaseTransport):
    """
    HTTP cache transport wrapper for httpx.

    Wraps another transport and serves repeat requests from a cache store
    according to the responses' Cache-Control, Expires, Date and Age headers.

    Example:
        base = httpx.AsyncHTTPTransport()
        transport = HttpCacheTransport(base)
        client = httpx.AsyncClient(transport=transport)
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        *,
        config: Optional[HttpCacheConfig] = None,
        store: Optional[AsyncHttpCacheStore] = None,
        key_generator: Optional[KeyGenerator] = None,
        on_cache_hit: Optional[Callable[[str, Optional[int]], None]] = None,
        on_cache_miss: Optional[Callable[[str], None]] = None,
        on_cache_store: Optional[Callable[[str, int], None]] = None,
    ) -> None:
        """
        Create a new HttpCacheTransport.

        Args:
            inner: The wrapped transport to delegate requests to
            config: Cache configuration
            store: Custom cache store (defaults to an in-memory store)
            key_generator: Custom cache key generator (defaults to method-scoped keys)
            on_cache_hit: Callback with (path, hits) when a response is served from cache
            on_cache_miss: Callback with (path) when the inner transport is used
            on_cache_store: Callback with (path, ttl) when a response is stored
        """
        self._inner = inner
        self._cache = AsyncHttpCache(
            store or create_async_memory_cache_store(),
            config=config,
            key_generator=_adapter_key_generator(config, key_generator),
        )
        self._cache.on(_CallbackDispatcher(on_cache_hit, on_cache_miss, on_cache_store))

    @property
    def cache(self) -> AsyncHttpCache:
        """The underlying cache."""
        return self._cache

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle an async HTTP request with caching capabilities."""
        cache_request = to_cache_request(request, await request.aread())

        async def send(_: CacheRequest) -> CacheResponse:
            response = await self._inner.handle_async_request(request)
            try:
                content = await response.aread()
            finally:
                await response.aclose()
            logger.debug(f"fetched: {request.method} {request.url} -> {response.status_code}")
            return to_cache_response(response, content)

        cache_response = await self._cache.execute(cache_request, send)
        return to_httpx_response(cache_response, request)

    async def invalidate(self, request: httpx.Request) -> None:
        """Remove the cached response for a request."""
        await self._cache.invalidate_cache(to_cache_request(request, await request.aread()))

    async def aclose(self) -> None:
        """Close the transport."""
        await self._cache.close()
        await self._inner.aclose()


class SyncHttpCacheTransport(httpx.BaseTransport):
    """
    Synchronous HTTP cache transport wrapper for httpx.

    Example:
        transport = SyncHttpCacheTransport(httpx.HTTPTransport())
        client = httpx.Client(transport=transport)
    """

    def __init__(
        self,
        inner: httpx.BaseTransport,
        *,
        config: Optional[HttpCacheConfig] = None,
        store: Optional[HttpCacheStore] = None,
        key_generator: Optional[KeyGenerator] = None,
        on_cache_hit: Optional[Callable[[str, Optional[int]], None]] = None,
        on_cache_miss: Optional[Callable[[str], None]] = None,
        on_cache_store: Optional[Callable[[str, int], None]] = None,
    ) -> None:
        self._inner = inner
        self._cache = HttpCache(
            store or create_memory_cache_store(),
            config=config,
            key_generator=_adapter_key_generator(config, key_generator),
        )
        self._cache.on(_CallbackDispatcher(on_cache_hit, on_cache_miss, on_cache_store))

    @property
    def cache(self) -> HttpCache:
        """The underlying cache."""
        return self._cache

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Handle a sync HTTP request with caching capabilities."""
        cache_request = to_cache_request(request, request.read())

        def send(_: CacheRequest) -> CacheResponse:
            response = self._inner.handle_request(request)
            try:
                content = response.read()
            finally:
                response.close()
            logger.debug(f"fetched: {request.method} {request.url} -> {response.status_code}")
            return to_cache_response(response, content)

        cache_response = self._cache.execute(cache_request, send)
        return to_httpx_response(cache_response, request)

    def invalidate(self, request: httpx.Request) -> None:
        """Remove the cached response for a request."""
        self._cache.invalidate_cache(to_cache_request(request, request.read()))

    def close(self) -> None:
        """Close the transport."""
        store = self._cache.get_store()
        if store is not None:
            store.clear()
        self._inner.close()
