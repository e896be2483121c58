"""
Origin checks for public log ingestion.

Browser SDKs send an Origin (or at least a Referer) header; server-side
callers usually send neither. The check is a coarse anti-abuse measure
against other sites posting into a project, not authentication, so a
request without any declared origin is allowed.

Pattern forms (evaluated against the normalised origin):
  • "*"                        — anything
  • "https://app.example.com"  — exact origin
  • "https://*.example.com"    — any strict subdomain, same scheme/port
  • "https://staging-*"        — trailing "*" = prefix match

Everything here is pure: no I/O, no global state.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit

_WILDCARD = "*"
_HOST_WILDCARD = "*."


def normalize_origin(value: str) -> str:
    """
    Reduce a URL-like value to `scheme://host[:port]`.

    Scheme and host are lowercased; path, query and fragment are dropped.
    Values that don't look like a URL (no scheme or no host, e.g. the
    literal "null" origin) are returned stripped but otherwise as-is.
    """
    value = value.strip()
    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return value

    if not parts.scheme or not parts.hostname:
        return value.rstrip("/")

    host = parts.hostname.lower()
    if ":" in host:  # IPv6 literal
        host = f"[{host}]"
    origin = f"{parts.scheme.lower()}://{host}"
    if port is not None:
        origin += f":{port}"
    return origin


def extract_request_origin(
    origin_header: str | None,
    referer_header: str | None,
) -> str | None:
    """Origin header wins; otherwise the Referer's origin; otherwise None."""
    if origin_header and origin_header.strip():
        return origin_header.strip()
    if referer_header and referer_header.strip():
        return normalize_origin(referer_header)
    return None


def _matches_host_wildcard(origin: str, pattern: str) -> bool:
    """`scheme://*.domain[:port]` matches strict subdomains of `domain`."""
    scheme, sep, rest = pattern.partition("://")
    if not sep or not rest.startswith(_HOST_WILDCARD):
        return False
    suffix = normalize_origin(f"{scheme}://{rest[len(_HOST_WILDCARD):]}")

    o_scheme, o_sep, o_rest = origin.partition("://")
    s_scheme, _, s_rest = suffix.partition("://")
    if not o_sep or o_scheme != s_scheme:
        return False
    return o_rest.endswith("." + s_rest) and len(o_rest) > len(s_rest) + 1


def origin_matches(origin: str, pattern: str) -> bool:
    """Decide whether one already-normalised origin matches one pattern."""
    pattern = pattern.strip()
    if pattern == _WILDCARD:
        return True
    if "://" + _HOST_WILDCARD in pattern and _matches_host_wildcard(origin, pattern):
        return True
    if pattern.endswith(_WILDCARD):
        # Origins are compared lowercased (see normalize_origin).
        return origin.startswith(pattern[:-1].lower())
    return origin == normalize_origin(pattern)


def is_origin_allowed(
    declared_origin: str | None,
    patterns: Iterable[str],
) -> bool:
    """
    Return True if a request declaring `declared_origin` may write to a
    project whose allowed origins are `patterns`.

    An absent or blank origin is always allowed.
    """
    if declared_origin is None or not declared_origin.strip():
        return True

    origin = normalize_origin(declared_origin)
    return any(origin_matches(origin, p) for p in patterns)
