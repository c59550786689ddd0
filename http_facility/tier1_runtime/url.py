"""
http_facility.tier1_runtime.url
─────────────────────────────────
URL resolution against the configured base URL and additive query string
composition.
"""
from __future__ import annotations

from urllib.parse import urlencode, urlsplit, urlunsplit

from http_facility.tier1_runtime.options import QueryPairs


def resolve_url(path: str, base_url: str) -> str:
    """
    Resolve *path* against *base_url*.

    Absolute URLs (anything containing ``://``) are returned verbatim.
    Relative paths are joined with exactly one slash; a single leading slash
    on *path* is dropped so ``"/foo"`` and ``"foo"`` resolve identically.
    Nothing else is normalized: a bad result is left for the transport to
    reject.
    """
    if "://" in path:
        return path
    if path.startswith("/"):
        path = path[1:]
    return f"{base_url}/{path}"


def compose_query(url: str, defaults: QueryPairs, params: QueryPairs) -> str:
    """
    Append *defaults* then *params* to the query string of *url*.

    Keys are never overwritten: a key given in several places keeps every
    value, in the order existing → defaults → params. The existing query is
    kept byte for byte; only the added pairs are encoded.
    """
    if not defaults and not params:
        return url
    parts = urlsplit(url)
    added = urlencode([*defaults, *params])
    query = f"{parts.query}&{added}" if parts.query else added
    return urlunsplit(parts._replace(query=query))


__all__ = ["resolve_url", "compose_query"]
