"""
Cache key generation.
"""
import hashlib
from typing import Any

from .types import CACHE_STATUS_KEY, CacheRequest, InvalidKeyGeneratorError, KeyGenerator


def basic_cache_key_generator(request: CacheRequest) -> str:
    """
    Hash the entire request into a cache key.

    Suitable for static content, or dynamic content where user specific
    information is encoded into the request. Path, ordered query parameters,
    header values and body all contribute, so requests differing in any of
    them get different keys. The x-cache-status stamp written on a miss is
    not part of the request and is left out.

    Example:
        key = basic_cache_key_generator(CacheRequest("GET", "/users", [("page", "1")]))
    """
    query = "&".join(f"{name}={value}" for name, value in request.query)
    headers = "~".join(
        value for name, value in request.headers.items() if name != CACHE_STATUS_KEY
    )

    digest = hashlib.sha1()
    digest.update(f"{request.uri}?{query}~{headers}~".encode("utf-8"))
    digest.update(request.body or b"")
    return digest.hexdigest()


def validate_key_generator(generator: Any) -> KeyGenerator:
    """Reject anything that cannot be called with a request."""
    if not callable(generator):
        raise InvalidKeyGeneratorError(
            f"cache key generator must be callable, got {type(generator).__name__}"
        )
    return generator


def method_cache_key_generator(request: CacheRequest) -> str:
    """
    Hash the request like basic_cache_key_generator, scoped by method.

    Keeps HEAD responses, which carry no body, from being served to GET.
    """
    return f"{request.method}:{basic_cache_key_generator(request)}"
