"""
Freshness lifetime calculation (RFC 2616 section 13.2.3 age arithmetic).
"""
import math
import time
from typing import Optional

from .cacheability import is_cacheable
from .parser import parse_cache_control, parse_date_header, parse_directive_seconds
from .types import CacheResponse


def calculate_current_age(
    response: CacheResponse,
    request_time: float,
    response_time: float,
    now: float,
) -> float:
    """
    Calculate the current age of a response.

        apparent_age           = max(0, response_time - date)
        corrected_received_age = max(apparent_age, age)
        corrected_initial_age  = corrected_received_age + (response_time - request_time)
        current_age            = corrected_initial_age + (now - response_time)

    A missing or unparsable `date` gives an apparent age of 0; a missing `age`
    header falls back to the apparent age.
    """
    date = parse_date_header(response.get_header("date"))
    apparent_age = max(0.0, response_time - date) if date is not None else 0.0

    age = response.get_header("age")
    if age is not None:
        corrected_received_age = max(apparent_age, parse_directive_seconds(age))
    else:
        corrected_received_age = apparent_age

    corrected_initial_age = corrected_received_age + (response_time - request_time)
    resident_time = now - response_time

    return corrected_initial_age + resident_time


def cache_lifetime(
    response: CacheResponse,
    request_time: Optional[float],
    response_time: Optional[float],
    now: Optional[float] = None,
    allow_private: bool = False,
) -> Optional[int]:
    """
    Calculate the TTL in seconds for a response, or None if it must not be cached.

    The TTL may be negative, meaning the response was already stale on
    arrival. Directive rules are applied in order and each applicable rule
    overwrites the previous result:

    1. max-age
    2. s-maxage, for private responses when private caching is allowed
    3. current age + max-stale, unless must-revalidate is present

    Expires is only consulted when none of these applied.
    """
    if now is None:
        now = time.time()

    if not is_cacheable(response, allow_private, now):
        return None

    if request_time is None or response_time is None:
        return None

    current_age = calculate_current_age(response, request_time, response_time, now)

    ttl: Optional[float] = None

    cache_control = response.get_header("cache-control")
    if cache_control:
        directives = parse_cache_control(cache_control)

        if "max-age" in directives:
            ttl = parse_directive_seconds(directives["max-age"])

        if "s-maxage" in directives and "private" in directives and allow_private:
            ttl = parse_directive_seconds(directives["s-maxage"])

        if "max-stale" in directives and "must-revalidate" not in directives:
            ttl = current_age + parse_directive_seconds(directives["max-stale"])

    if ttl is not None:
        return math.floor(ttl)

    expires_at = parse_date_header(response.get_header("expires"))
    if expires_at is None:
        return None

    date = parse_date_header(response.get_header("date"))
    generated_at = date if date is not None else response_time

    return math.floor(expires_at - generated_at - current_age)
