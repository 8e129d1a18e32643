"""URL normalization and allowlist validation for redirect targets.

This module is the open-redirect guard. A client-supplied ``to`` URL is parsed
into a ``StructuredUrl`` and its hostname is checked against the configured
allowlist before the gateway will ever emit it as a ``Location`` header.

Flow Diagram — Direct URL Check
===============================
::
    ┌─────────────┐
    │  raw "to"   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ parse_url() │──── malformed ───► UrlParseError
    │ urlsplit +  │
    │ validators  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lowercase   │
    │ scheme/host │
    └──────┬──────┘
           ▼
    ┌──────────────────┐
    │ is_allowed_target│──── not in set ──► False
    │ (exact match)    │
    └──────┬───────────┘
           ▼
         True

How to Use
===========
**Step 1 — Parse**::
    from golink.urls import parse_url
    url = parse_url("https://WWW.Amazon.in/dp/B08N5WRWNW")
    url.hostname  # "www.amazon.in"

**Step 2 — Check the allowlist**::
    from golink.urls import is_allowed_target
    is_allowed_target(url, settings.ALLOWED_HOSTS)

Key Behaviours
===============
- Only ``http`` and ``https`` parse; everything else is a ``UrlParseError``.
- Hostnames are lowercased at parse time, so allowlist checks are case-insensitive.
- An empty path is normalized to ``/``, dot segments are resolved and
  characters a browser would escape are percent-encoded.
- A backslash or whitespace in the authority is rejected, since browsers
  read ``\\`` as ``/`` and would land on a different host.
- There is no wildcard or subdomain matching: ``shop.amazon.in`` is not
  allowed just because ``amazon.in`` is.
- ``is_allowed_target(None, ...)`` is always ``False``.
"""

from collections.abc import Collection
from dataclasses import dataclass
from urllib.parse import quote, urlsplit, urlunsplit

import validators

from golink.errors import UrlParseError

__all__ = ["ALLOWED_SCHEMES", "StructuredUrl", "parse_url", "is_allowed_target"]

ALLOWED_SCHEMES = frozenset({"http", "https"})

# Sub-delims, ":" and "@" stay literal; "%" keeps existing escapes intact.
_PATH_SAFE = "/%:@!$&'()*+,;=~"
_QUERY_SAFE = "/?%:@!$&'()*+,;=~"

_SINGLE_DOT = frozenset({".", "%2e"})
_DOUBLE_DOT = frozenset({"..", ".%2e", "%2e.", "%2e%2e"})


@dataclass(frozen=True)
class StructuredUrl:
    scheme: str
    hostname: str
    url: str

    def __str__(self) -> str:
        return self.url


def _remove_dot_segments(path: str) -> str:
    output: list[str] = []
    segments = path.split("/")[1:]
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        lowered = segment.lower()
        if lowered in _DOUBLE_DOT:
            if output:
                output.pop()
            if last:
                output.append("")
        elif lowered in _SINGLE_DOT:
            if last:
                output.append("")
        else:
            output.append(segment)
    return "/" + "/".join(output)


def parse_url(raw: str) -> StructuredUrl:
    """Parse ``raw`` into a normalized ``StructuredUrl``.

    Characters a browser would percent-encode (spaces, ``|``, non-ASCII) are
    encoded in the path, query and fragment, and ``.``/``..`` path segments are
    resolved, so the returned URL is the one the client will actually follow.

    Raises:
        UrlParseError: If ``raw`` has no http(s) scheme, no host, an invalid
            port, a backslash or whitespace in its authority, or is otherwise
            not a well-formed URL.
    """
    candidate = (raw or "").strip()
    if not candidate:
        raise UrlParseError("URL is empty")

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        # Accessing .port validates it.
        parts.port
    except ValueError as exc:
        raise UrlParseError(f"Malformed URL: {exc}") from exc

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise UrlParseError(f"Unsupported scheme: {parts.scheme!r}")
    # Browsers read "\" as "/", so "https://evil.com\@amzn.to/" goes to evil.com.
    if "\\" in parts.netloc or any(ch.isspace() for ch in parts.netloc):
        raise UrlParseError("Backslash or whitespace in URL authority")
    if not hostname:
        raise UrlParseError("URL has no host")

    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"
    path = _remove_dot_segments(quote(parts.path or "/", safe=_PATH_SAFE))
    query = quote(parts.query, safe=_QUERY_SAFE)
    fragment = quote(parts.fragment, safe=_QUERY_SAFE + "#")
    normalized = urlunsplit((scheme, netloc, path, query, fragment))
    if not validators.url(normalized, strict_query=False):
        raise UrlParseError("URL failed validation")
    return StructuredUrl(scheme=scheme, hostname=hostname.lower(), url=normalized)


def is_allowed_target(url: StructuredUrl | None, allowed_hosts: Collection[str]) -> bool:
    if url is None:
        return False
    return url.hostname.lower() in allowed_hosts
