"""
Factory functions for creating HTTP cache transports.
"""
from typing import Callable, Optional

import httpx

from http_cache import (
    AsyncHttpCacheStore,
    HttpCacheConfig,
    HttpCacheStore,
    KeyGenerator,
)

from .transport import HttpCacheTransport, SyncHttpCacheTransport


def compose_transport(
    base: httpx.AsyncBaseTransport,
    *wrappers: Callable[[httpx.AsyncBaseTransport], httpx.AsyncBaseTransport],
) -> httpx.AsyncBaseTransport:
    """
    Compose multiple transport wrappers together.

    Args:
        base: The base transport
        wrappers: Transport wrapper functions to apply, innermost first

    Returns:
        Composed transport

    Example:
        base = httpx.AsyncHTTPTransport()
        transport = compose_transport(
            base,
            lambda inner: HttpCacheTransport(inner),
        )
    """
    transport = base
    for wrapper in wrappers:
        transport = wrapper(transport)
    return transport


def compose_sync_transport(
    base: httpx.BaseTransport,
    *wrappers: Callable[[httpx.BaseTransport], httpx.BaseTransport],
) -> httpx.BaseTransport:
    """Compose multiple sync transport wrappers together."""
    transport = base
    for wrapper in wrappers:
        transport = wrapper(transport)
    return transport


def create_http_cache_transport(
    inner: Optional[httpx.AsyncBaseTransport] = None,
    *,
    config: Optional[HttpCacheConfig] = None,
    store: Optional[AsyncHttpCacheStore] = None,
    key_generator: Optional[KeyGenerator] = None,
    on_cache_hit: Optional[Callable[[str, Optional[int]], None]] = None,
    on_cache_miss: Optional[Callable[[str], None]] = None,
    on_cache_store: Optional[Callable[[str, int], None]] = None,
) -> HttpCacheTransport:
    """
    Create an HTTP cache transport.

    Args:
        inner: The inner transport (defaults to AsyncHTTPTransport)
        config: Cache configuration
        store: Custom cache store
        key_generator: Custom cache key generator
        on_cache_hit: Callback when cache hit occurs
        on_cache_miss: Callback when cache miss occurs
        on_cache_store: Callback when response is cached

    Returns:
        HttpCacheTransport instance
    """
    if inner is None:
        inner = httpx.AsyncHTTPTransport()

    return HttpCacheTransport(
        inner,
        config=config,
        store=store,
        key_generator=key_generator,
        on_cache_hit=on_cache_hit,
        on_cache_miss=on_cache_miss,
        on_cache_store=on_cache_store,
    )


def create_http_cache_sync_transport(
    inner: Optional[httpx.BaseTransport] = None,
    *,
    config: Optional[HttpCacheConfig] = None,
    store: Optional[HttpCacheStore] = None,
    key_generator: Optional[KeyGenerator] = None,
    on_cache_hit: Optional[Callable[[str, Optional[int]], None]] = None,
    on_cache_miss: Optional[Callable[[str], None]] = None,
    on_cache_store: Optional[Callable[[str, int], None]] = None,
) -> SyncHttpCacheTransport:
    """Create a sync HTTP cache transport (inner defaults to HTTPTransport)."""
    if inner is None:
        inner = httpx.HTTPTransport()

    return SyncHttpCacheTransport(
        inner,
        config=config,
        store=store,
        key_generator=key_generator,
        on_cache_hit=on_cache_hit,
        on_cache_miss=on_cache_miss,
        on_cache_store=on_cache_store,
    )


def create_http_cache_client(
    *,
    config: Optional[HttpCacheConfig] = None,
    store: Optional[AsyncHttpCacheStore] = None,
    key_generator: Optional[KeyGenerator] = None,
    base_url: Optional[str] = None,
    **client_kwargs,
) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient with HTTP caching.

    Args:
        config: Cache configuration
        store: Custom cache store
        key_generator: Custom cache key generator
        base_url: Base URL for the client
        **client_kwargs: Additional arguments for httpx.AsyncClient

    Returns:
        AsyncClient with HTTP cache transport
    """
    transport = create_http_cache_transport(
        config=config,
        store=store,
        key_generator=key_generator,
    )

    return httpx.AsyncClient(
        transport=transport,
        base_url=base_url or "",
        **client_kwargs,
    )


def create_http_cache_sync_client(
    *,
    config: Optional[HttpCacheConfig] = None,
    store: Optional[HttpCacheStore] = None,
    key_generator: Optional[KeyGenerator] = None,
    base_url: Optional[str] = None,
    **client_kwargs,
) -> httpx.Client:
    """Create an httpx.Client with HTTP caching."""
    transport = create_http_cache_sync_transport(
        config=config,
        store=store,
        key_generator=key_generator,
    )

    return httpx.Client(
        transport=transport,
        base_url=base_url or "",
        **client_kwargs,
    )
