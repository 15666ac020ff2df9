"""
Cacheability evaluation for responses.
"""
import time
from typing import Optional

from .parser import parse_cache_control, parse_date_header, parse_directive_seconds
from .types import CacheResponse


def is_cacheable(
    response: CacheResponse,
    allow_private: bool = False,
    now: Optional[float] = None,
) -> bool:
    """
    Decide whether a response may be stored at all.

    `no-cache` and `no-store` always win. A `private` response is only
    accepted when private caching is allowed, or when it carries `s-maxage`,
    which then stands in for `max-age` in the validity check below. An
    `expires` header is only consulted when no `max-age` is in effect, and an
    unparsable one counts as already expired.
    """
    if now is None:
        now = time.time()

    max_age: Optional[str] = None
    has_max_age = False

    cache_control = response.get_header("cache-control")
    if cache_control:
        directives = parse_cache_control(cache_control)

        if "no-cache" in directives or "no-store" in directives:
            return False

        if "max-age" in directives:
            has_max_age = True
            max_age = directives["max-age"]

        if not allow_private and "private" in directives:
            if "s-maxage" not in directives:
                return False
            has_max_age = True
            max_age = directives["s-maxage"]

        if has_max_age and parse_directive_seconds(max_age) < 1:
            return False

    expires = response.get_header("expires")
    if expires and not has_max_age:
        expires_at = parse_date_header(expires)
        if expires_at is None or expires_at <= now:
            return False

    return True
