"""Pytest configuration and fixtures for http_cache tests."""
from email.utils import formatdate
from typing import AsyncGenerator, Dict, Generator, List, Optional

import httpx
import pytest

from http_cache import (
    AsyncMemoryCacheStore,
    CacheRequest,
    CacheResponse,
    HttpCache,
    MemoryCacheStore,
)
from fetch_compose_http_cache import HttpCacheTransport, SyncHttpCacheTransport


NOW = 1_700_000_000.0
"""Fixed wall-clock origin for time-dependent tests."""


def http_date(timestamp: float) -> str:
    """Format a timestamp as an HTTP-date."""
    return formatdate(timestamp, usegmt=True)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Sync transport collaborator that returns a fixed response."""

    def __init__(
        self,
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b'{"data": "fresh"}',
        status_code: int = 200,
        clock: Optional[FakeClock] = None,
        latency: float = 0,
    ) -> None:
        self.headers = headers if headers is not None else {"cache-control": "max-age=60"}
        self.body = body
        self.status_code = status_code
        self.clock = clock
        self.latency = latency
        self.requests: List[CacheRequest] = []

    def __call__(self, request: CacheRequest) -> CacheResponse:
        self.requests.append(request)
        if self.clock is not None:
            self.clock.advance(self.latency)
        return CacheResponse(
            status_code=self.status_code,
            headers=dict(self.headers),
            body=self.body,
        )


class AsyncRecordingTransport(RecordingTransport):
    """Async transport collaborator that returns a fixed response."""

    async def __call__(self, request: CacheRequest) -> CacheResponse:
        return super().__call__(request)


class FailingStore(MemoryCacheStore):
    """Store whose reads and writes raise."""

    def get(self, key: str) -> Optional[CacheResponse]:
        raise ConnectionError("store unavailable")

    def set(self, key: str, response: CacheResponse, ttl_seconds: int) -> bool:
        raise ConnectionError("store unavailable")


class MockSyncTransport(httpx.BaseTransport):
    """Mock httpx sync transport that counts requests."""

    def __init__(
        self,
        response_status: int = 200,
        response_content: bytes = b'{"success": true}',
        response_headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.response_status = response_status
        self.response_content = response_content
        self.response_headers = response_headers or {
            "content-type": "application/json",
            "cache-control": "max-age=3600",
        }
        self.requests: List[httpx.Request] = []

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Handle the sync request and return a mock response."""
        self.requests.append(request)
        return httpx.Response(
            status_code=self.response_status,
            headers=self.response_headers,
            content=self.response_content,
        )

    def close(self) -> None:
        """Close the transport."""
        pass


class MockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock httpx async transport that counts requests."""

    def __init__(
        self,
        response_status: int = 200,
        response_content: bytes = b'{"success": true}',
        response_headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.response_status = response_status
        self.response_content = response_content
        self.response_headers = response_headers or {
            "content-type": "application/json",
            "cache-control": "max-age=3600",
        }
        self.requests: List[httpx.Request] = []
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle the async request and return a mock response."""
        self.requests.append(request)
        return httpx.Response(
            status_code=self.response_status,
            headers=self.response_headers,
            content=self.response_content,
        )

    async def aclose(self) -> None:
        """Close the transport."""
        self.closed = True


class ErrorMockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock httpx async transport that raises errors."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Raise the configured error."""
        raise self.error

    async def aclose(self) -> None:
        """Close the transport."""
        pass


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at NOW."""
    return FakeClock()


@pytest.fixture
def memory_cache_store(clock: FakeClock) -> MemoryCacheStore:
    """Create a memory cache store driven by the fake clock."""
    return MemoryCacheStore(max_entries=100, clock=clock)


@pytest.fixture
def transport(clock: FakeClock) -> RecordingTransport:
    """Create a transport returning a cacheable response."""
    return RecordingTransport(clock=clock)


@pytest.fixture
def http_cache(
    memory_cache_store: MemoryCacheStore,
    transport: RecordingTransport,
    clock: FakeClock,
) -> HttpCache:
    """Create an HttpCache wired to the memory store, transport and clock."""
    return HttpCache(memory_cache_store, transport=transport, clock=clock)


@pytest.fixture
async def async_memory_cache_store(
    clock: FakeClock,
) -> AsyncGenerator[AsyncMemoryCacheStore, None]:
    """Create an async memory cache store driven by the fake clock."""
    store = AsyncMemoryCacheStore(max_entries=100, cleanup_interval_seconds=60.0, clock=clock)
    yield store
    await store.close()


@pytest.fixture
async def http_cache_transport() -> AsyncGenerator[HttpCacheTransport, None]:
    """Create an async HTTP cache transport for testing."""
    transport = HttpCacheTransport(MockAsyncTransport())
    yield transport
    await transport.aclose()


@pytest.fixture
def sync_http_cache_transport() -> Generator[SyncHttpCacheTransport, None, None]:
    """Create a sync HTTP cache transport for testing."""
    transport = SyncHttpCacheTransport(MockSyncTransport())
    yield transport
    transport.close()


def make_response(headers: Dict[str, str], body: bytes = b"body") -> CacheResponse:
    """Create a 200 response with the given headers."""
    return CacheResponse(status_code=200, headers=headers, body=body)


