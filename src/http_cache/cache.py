"""
HTTP cache orchestrator.

Routes requests through a store using RFC 2616 cache-control logic: destructive
methods bypass the cache, cached entries are served with a HIT stamp, and
fresh responses are stored for the lifetime computed from their headers.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Set

from .cacheability import is_cacheable
from .freshness import cache_lifetime
from .keys import basic_cache_key_generator, validate_key_generator
from .parser import build_cache_control, has_pragma_no_cache, parse_cache_control
from .types import (
    CACHE_HIT_KEY,
    CACHE_STATUS_KEY,
    AsyncHttpCacheStore,
    AsyncTransport,
    CacheRequest,
    CacheResponse,
    CacheStatus,
    HttpCacheConfig,
    HttpCacheConfigError,
    HttpCacheEvent,
    HttpCacheEventListener,
    HttpCacheEventType,
    HttpCacheStore,
    KeyGenerator,
    RequestContext,
    Transport,
)

logger = logging.getLogger("http_cache.cache")


DEFAULT_HTTP_CACHE_CONFIG = HttpCacheConfig(
    allow_private_cache=False,
    bypass_methods=["POST", "PUT", "DELETE"],
    bypass_cache_control="no-cache, must-revalidate",
    cacheable_statuses=None,
    store_non_positive_ttl=True,
    respect_pragma_no_cache=True,
    key_generator=basic_cache_key_generator,
)


def merge_http_cache_config(config: Optional[HttpCacheConfig] = None) -> HttpCacheConfig:
    """Merge user config with defaults."""
    if config is None:
        config = DEFAULT_HTTP_CACHE_CONFIG

    return HttpCacheConfig(
        allow_private_cache=bool(config.allow_private_cache),
        bypass_methods=[m.upper() for m in config.bypass_methods]
        if config.bypass_methods is not None
        else list(DEFAULT_HTTP_CACHE_CONFIG.bypass_methods),
        bypass_cache_control=config.bypass_cache_control
        or DEFAULT_HTTP_CACHE_CONFIG.bypass_cache_control,
        cacheable_statuses=list(config.cacheable_statuses)
        if config.cacheable_statuses is not None
        else None,
        store_non_positive_ttl=config.store_non_positive_ttl,
        respect_pragma_no_cache=config.respect_pragma_no_cache,
        key_generator=config.key_generator or DEFAULT_HTTP_CACHE_CONFIG.key_generator,
    )


class _BaseHttpCache:
    """Decision logic shared by the sync and async orchestrators."""

    def __init__(
        self,
        store: Any = None,
        *,
        config: Optional[HttpCacheConfig] = None,
        key_generator: Optional[KeyGenerator] = None,
        allow_private_cache: Optional[bool] = None,
        transport: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = merge_http_cache_config(config)
        if key_generator is not None:
            self._config.key_generator = key_generator
        if allow_private_cache is not None:
            self._config.allow_private_cache = bool(allow_private_cache)

        validate_key_generator(self._config.key_generator)

        self._store = store
        self._transport = transport
        self._clock = clock
        self._listeners: Set[HttpCacheEventListener] = set()

    def get_config(self) -> HttpCacheConfig:
        """Get configuration."""
        return self._config

    def get_store(self) -> Any:
        """Get the store used for caching, or None if caching is disabled."""
        return self._store

    def set_store(self, store: Any) -> "_BaseHttpCache":
        """Set the store used for caching."""
        self._store = store
        return self

    def get_allow_private_cache(self) -> bool:
        """Whether responses marked `private` may be cached."""
        return self._config.allow_private_cache

    def set_allow_private_cache(self, setting: bool) -> "_BaseHttpCache":
        """Allow or forbid caching of `private` responses."""
        self._config.allow_private_cache = bool(setting)
        return self

    def get_key_generator(self) -> KeyGenerator:
        """Get the cache key generator."""
        return self._config.key_generator

    def set_key_generator(self, generator: KeyGenerator) -> "_BaseHttpCache":
        """
        Set the cache key generator.

        The generator receives a CacheRequest and returns a string key. It is
        validated here, so a bad generator fails at setup rather than on the
        first request.

        Example:
            cache.set_key_generator(lambda request: request.uri)
        """
        self._config.key_generator = validate_key_generator(generator)
        return self

    def create_cache_key(self, request: CacheRequest) -> str:
        """Create the cache key for a request using the configured generator."""
        return self._config.key_generator(request)

    def is_cacheable(self, response: CacheResponse) -> bool:
        """Check whether a response may be stored."""
        return is_cacheable(response, self._config.allow_private_cache, self._clock())

    def cache_lifetime(
        self,
        response: CacheResponse,
        context: RequestContext,
        now: Optional[float] = None,
    ) -> Optional[int]:
        """Calculate the TTL for a response fetched within context."""
        if now is None:
            now = self._clock()
        return cache_lifetime(
            response,
            context.request_time,
            context.response_time,
            now,
            self._config.allow_private_cache,
        )

    def is_bypass(self, request: CacheRequest) -> bool:
        """Check whether a request method skips the cache entirely."""
        return request.method.upper() in self._config.bypass_methods

    def on(self, listener: HttpCacheEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: HttpCacheEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(
        self,
        event_type: HttpCacheEventType,
        key: Optional[str],
        request: CacheRequest,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = HttpCacheEvent(
            type=event_type,
            key=key,
            uri=request.uri,
            timestamp=self._clock(),
            metadata=metadata,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.warning(f"cache event listener failed for {event_type.value}", exc_info=True)

    def _resolve_transport(self, transport: Any) -> Any:
        """
        Pick the per-call transport, else the one given at construction.

        A transport may be supplied on every call, so a cache built without
        one is valid until a call arrives with neither.
        """
        transport = transport or self._transport
        if transport is None:
            raise HttpCacheConfigError("no transport available to execute the request")
        return transport

    def _finish_bypass(self, request: CacheRequest, response: CacheResponse) -> CacheResponse:
        # Ensure the client respects the destructive action
        directives = parse_cache_control(self._config.bypass_cache_control)
        response.set_header("cache-control", build_cache_control(directives))
        logger.debug(f"bypass: method={request.method}, uri={request.uri}")
        self._emit(HttpCacheEventType.CACHE_BYPASS, None, request, {"reason": "method"})
        return response

    def _skip_read(self, request: CacheRequest) -> bool:
        return self._config.respect_pragma_no_cache and has_pragma_no_cache(request.headers)

    def _serve_hit(
        self,
        key: str,
        request: CacheRequest,
        cached: CacheResponse,
        hits: Optional[int],
    ) -> CacheResponse:
        response = cached.copy()
        response.set_header(CACHE_STATUS_KEY, CacheStatus.HIT.value)
        if hits is not None:
            response.set_header(CACHE_HIT_KEY, str(hits))
        logger.debug(f"hit: key={key}, uri={request.uri}, hits={hits}")
        self._emit(HttpCacheEventType.CACHE_HIT, key, request, {"hits": hits})
        return response

    def _mark_miss(self, key: str, request: CacheRequest) -> None:
        request.set_header(CACHE_STATUS_KEY, CacheStatus.MISS.value)
        logger.debug(f"miss: key={key}, uri={request.uri}")
        self._emit(HttpCacheEventType.CACHE_MISS, key, request)

    def _storage_ttl(
        self,
        key: str,
        request: CacheRequest,
        response: CacheResponse,
        context: RequestContext,
    ) -> Optional[int]:
        """TTL to store a freshly fetched response with, or None to skip storage."""
        statuses = self._config.cacheable_statuses
        if statuses is not None and response.status_code not in statuses:
            self._emit(
                HttpCacheEventType.CACHE_BYPASS,
                key,
                request,
                {"reason": "status", "status_code": response.status_code},
            )
            return None

        ttl = self.cache_lifetime(response, context)
        logger.debug(f"lifetime: key={key}, uri={request.uri}, ttl={ttl}")

        if ttl is None:
            self._emit(HttpCacheEventType.CACHE_BYPASS, key, request, {"reason": "not-cacheable"})
            return None

        if ttl <= 0 and not self._config.store_non_positive_ttl:
            self._emit(
                HttpCacheEventType.CACHE_BYPASS,
                key,
                request,
                {"reason": "non-positive-ttl", "ttl": ttl},
            )
            return None

        return ttl

    def _finish_store(
        self,
        key: str,
        request: CacheRequest,
        response: CacheResponse,
        ttl: int,
        stored: bool,
    ) -> CacheResponse:
        if stored:
            self._emit(HttpCacheEventType.CACHE_STORE, key, request, {"ttl": ttl})
            return response

        # The store declined or failed, so the entry was not saved
        response.set_header(CACHE_STATUS_KEY, CacheStatus.MISS.value)
        self._emit(HttpCacheEventType.CACHE_BYPASS, key, request, {"reason": "no-store", "ttl": ttl})
        return response

    def _store_failed(self, operation: str, key: str, request: CacheRequest) -> None:
        logger.warning(f"store {operation} failed: key={key}, uri={request.uri}", exc_info=True)
        self._emit(
            HttpCacheEventType.CACHE_STORE_ERROR,
            key,
            request,
            {"operation": operation},
        )


class HttpCache(_BaseHttpCache):
    """
    HTTP caching adaptor implementing RFC 2616 cache-control logic.

    Example:
        cache = HttpCache(MemoryCacheStore(), transport=send)

        response = cache.execute(CacheRequest("GET", "/users"))
        response.get_header("x-cache-status")  # "SAVED" on first call, "HIT" after
    """

    def __init__(
        self,
        store: Optional[HttpCacheStore] = None,
        *,
        config: Optional[HttpCacheConfig] = None,
        key_generator: Optional[KeyGenerator] = None,
        allow_private_cache: Optional[bool] = None,
        transport: Optional[Transport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(
            store,
            config=config,
            key_generator=key_generator,
            allow_private_cache=allow_private_cache,
            transport=transport,
            clock=clock,
        )

    def execute(
        self,
        request: CacheRequest,
        transport: Optional[Transport] = None,
    ) -> CacheResponse:
        """Execute a request, serving it from the cache where possible."""
        transport = self._resolve_transport(transport)

        if self.is_bypass(request):
            return self._finish_bypass(request, transport(request))

        return self.lookup_or_populate(request, transport)

    def lookup_or_populate(
        self,
        request: CacheRequest,
        transport: Optional[Transport] = None,
    ) -> CacheResponse:
        """Serve a cached response, or fetch one and store it if eligible."""
        transport = self._resolve_transport(transport)
        key = self.create_cache_key(request)
        store = self._store

        if store is not None and not self._skip_read(request):
            cached = self._get(store, key, request)
            if cached is not None:
                return self._serve_hit(key, request, cached, self._record_hit(store, key, request))

        self._mark_miss(key, request)

        context = RequestContext(request_time=self._clock())
        response = transport(request)
        context.response_time = self._clock()

        if store is None:
            return response

        ttl = self._storage_ttl(key, request, response, context)
        if ttl is None:
            return response

        response.set_header(CACHE_STATUS_KEY, CacheStatus.SAVED.value)
        try:
            stored = bool(store.set(key, response, ttl))
        except Exception:
            self._store_failed("set", key, request)
            stored = False

        return self._finish_store(key, request, response, ttl, stored)

    def invalidate_cache(self, request: CacheRequest) -> None:
        """Remove the cached response for a request, if any."""
        if self._store is None:
            return

        key = self.create_cache_key(request)
        self._store.delete(key)
        self._emit(HttpCacheEventType.CACHE_INVALIDATE, key, request)

    def _get(self, store: HttpCacheStore, key: str, request: CacheRequest) -> Optional[CacheResponse]:
        try:
            return store.get(key)
        except Exception:
            self._store_failed("get", key, request)
            return None

    def _record_hit(self, store: HttpCacheStore, key: str, request: CacheRequest) -> Optional[int]:
        try:
            return store.record_hit(key)
        except Exception:
            self._store_failed("record_hit", key, request)
            return None


class AsyncHttpCache(_BaseHttpCache):
    """
    Async HTTP caching adaptor, for async stores and transports.

    Example:
        cache = AsyncHttpCache(AsyncMemoryCacheStore(), transport=send)
        response = await cache.execute(CacheRequest("GET", "/users"))
    """

    def __init__(
        self,
        store: Optional[AsyncHttpCacheStore] = None,
        *,
        config: Optional[HttpCacheConfig] = None,
        key_generator: Optional[KeyGenerator] = None,
        allow_private_cache: Optional[bool] = None,
        transport: Optional[AsyncTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(
            store,
            config=config,
            key_generator=key_generator,
            allow_private_cache=allow_private_cache,
            transport=transport,
            clock=clock,
        )

    async def execute(
        self,
        request: CacheRequest,
        transport: Optional[AsyncTransport] = None,
    ) -> CacheResponse:
        """Execute a request, serving it from the cache where possible."""
        transport = self._resolve_transport(transport)

        if self.is_bypass(request):
            return self._finish_bypass(request, await transport(request))

        return await self.lookup_or_populate(request, transport)

    async def lookup_or_populate(
        self,
        request: CacheRequest,
        transport: Optional[AsyncTransport] = None,
    ) -> CacheResponse:
        """Serve a cached response, or fetch one and store it if eligible."""
        transport = self._resolve_transport(transport)
        key = self.create_cache_key(request)
        store = self._store

        if store is not None and not self._skip_read(request):
            cached = await self._get(store, key, request)
            if cached is not None:
                hits = await self._record_hit(store, key, request)
                return self._serve_hit(key, request, cached, hits)

        self._mark_miss(key, request)

        context = RequestContext(request_time=self._clock())
        response = await transport(request)
        context.response_time = self._clock()

        if store is None:
            return response

        ttl = self._storage_ttl(key, request, response, context)
        if ttl is None:
            return response

        response.set_header(CACHE_STATUS_KEY, CacheStatus.SAVED.value)
        try:
            stored = bool(await store.set(key, response, ttl))
        except Exception:
            self._store_failed("set", key, request)
            stored = False

        return self._finish_store(key, request, response, ttl, stored)

    async def invalidate_cache(self, request: CacheRequest) -> None:
        """Remove the cached response for a request, if any."""
        if self._store is None:
            return

        key = self.create_cache_key(request)
        await self._store.delete(key)
        self._emit(HttpCacheEventType.CACHE_INVALIDATE, key, request)

    async def close(self) -> None:
        """Close the store and release resources."""
        if self._store is not None:
            await self._store.close()
        self._listeners.clear()

    async def _get(
        self, store: AsyncHttpCacheStore, key: str, request: CacheRequest
    ) -> Optional[CacheResponse]:
        try:
            return await store.get(key)
        except Exception:
            self._store_failed("get", key, request)
            return None

    async def _record_hit(
        self, store: AsyncHttpCacheStore, key: str, request: CacheRequest
    ) -> Optional[int]:
        try:
            return await store.record_hit(key)
        except Exception:
            self._store_failed("record_hit", key, request)
            return None


def create_http_cache(
    store: Optional[HttpCacheStore] = None,
    *,
    config: Optional[HttpCacheConfig] = None,
    transport: Optional[Transport] = None,
) -> HttpCache:
    """Create an HTTP cache instance."""
    return HttpCache(store, config=config, transport=transport)


def create_async_http_cache(
    store: Optional[AsyncHttpCacheStore] = None,
    *,
    config: Optional[HttpCacheConfig] = None,
    transport: Optional[AsyncTransport] = None,
) -> AsyncHttpCache:
    """Create an async HTTP cache instance."""
    return AsyncHttpCache(store, config=config, transport=transport)
