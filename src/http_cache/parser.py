"""
Cache-Control header parsing and utilities.
"""
import re
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Iterable, Mapping, Optional, Union

from .types import CacheControlDirectives


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_cache_control(header: Optional[str]) -> CacheControlDirectives:
    """Parse Cache-Control header into a directive set."""
    directives: CacheControlDirectives = {}

    if not header:
        return directives

    for part in header.split(","):
        part = part.strip()
        if not part:
            continue

        if "=" in part:
            key, value = part.split("=", 1)
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]
            directives[key.strip().lower()] = value
        else:
            directives[part.lower()] = None

    return directives


def build_cache_control(
    directives: Union[Mapping[str, Optional[object]], Iterable[str]],
) -> str:
    """Build Cache-Control header from a directive set or a list of names."""
    if isinstance(directives, Mapping):
        parts = [
            key if value is None else f"{key}={value}"
            for key, value in directives.items()
        ]
    else:
        parts = list(directives)
    return ", ".join(parts)


def parse_directive_seconds(value: Optional[str]) -> int:
    """
    Parse a delta-seconds directive value leniently.

    A leading integer is honoured ("60abc" -> 60); anything else, including a
    missing value, yields 0 so that a malformed lifetime reads as expired.
    """
    if value is None:
        return 0
    match = _LEADING_INT.match(value)
    if not match:
        return 0
    return int(match.group(1))


def parse_date_header(header: Optional[str]) -> Optional[float]:
    """Parse an HTTP-date header to a timestamp."""
    if not header:
        return None
    try:
        dt = parsedate_to_datetime(header)
    except (TypeError, ValueError, IndexError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def get_header_value(headers: Dict[str, str], key: str) -> Optional[str]:
    """Get header value case-insensitively."""
    lower_key = key.lower()
    for k, v in headers.items():
        if k.lower() == lower_key:
            return v
    return None


def normalize_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Normalize headers to lowercase keys."""
    return {k.lower(): v for k, v in headers.items()}


def has_pragma_no_cache(headers: Dict[str, str]) -> bool:
    """Check whether a request carries `Pragma: no-cache`."""
    pragma = get_header_value(headers, "pragma")
    return "no-cache" in parse_cache_control(pragma)
