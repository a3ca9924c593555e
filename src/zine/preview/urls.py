"""URL normalization used as the preview cache key."""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """Canonical form of ``url`` for cache keys.

    Lowercases scheme and host, drops the default port and the fragment, and gives an
    empty path the value ``/``.

    >>> normalize_url(" HTTPS://Example.COM:443#top ")
    'https://example.com/'

    Malformed URLs are returned stripped but otherwise untouched.

    >>> normalize_url("https://[broken")
    'https://[broken'
    """
    stripped = url.strip()
    try:
        parts = urlsplit(stripped)
    except ValueError:
        return stripped
    if not parts.netloc:
        return stripped

    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError:
        return stripped

    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    userinfo, _, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}@{host}" if userinfo else host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{netloc}:{port}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))
